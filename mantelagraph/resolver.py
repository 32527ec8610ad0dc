"""
Identity Resolver — create-or-merge for switch nodes.

A switch is known by its identifier, full stop. Whatever it is called
(by itself in aboutMe, or by a peer in its providers list) is appended
to the node's names. Matching is byte-literal: "pbx-01" and "PBX-01"
are two different switches.
"""

from __future__ import annotations
import logging

from .assembler import GraphAssembler, NodeEntry

logger = logging.getLogger("mantelagraph")


class IdentityResolver:

    def __init__(self, assembler: GraphAssembler):
        self._assembler = assembler

    def resolve_or_merge(self, identity: str, display_name: str,
                         node_type: str) -> NodeEntry:
        """
        Return the node for `identity`, creating it if unseen.
        A known node gets `display_name` appended (duplicates kept) and
        keeps its original type.
        """
        existing = self._assembler.get(identity)
        if existing is not None:
            existing.names.append(display_name)
            logger.debug(f"Alias for {identity}: {display_name!r} "
                         f"({len(existing.names)} names)")
            return existing

        logger.debug(f"New {node_type} node: {identity} ({display_name!r})")
        return self._assembler.add_node(NodeEntry(
            id=identity,
            names=[display_name],
            type=node_type,
        ))
