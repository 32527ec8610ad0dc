"""
Graph Assembler — append-only node table + edge list.

Nodes are keyed by identity and kept in discovery order. Nothing is ever
removed; the only in-place change is a switch picking up another name,
and that goes through the IdentityResolver.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from .models import Node, Edge, Graph


@dataclass
class NodeEntry:
    """Working (mutable) node record. Frozen into a Node on finalize."""
    id: str
    names: list[str] = field(default_factory=list)
    type: str = ""

    def snapshot(self) -> Node:
        return Node(id=self.id, names=tuple(self.names), type=self.type)


class GraphAssembler:

    def __init__(self):
        self._nodes: dict[str, NodeEntry] = {}     # insertion order = discovery order
        self._edges: list[Edge] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def get(self, node_id: str) -> Optional[NodeEntry]:
        return self._nodes.get(node_id)

    def add_node(self, entry: NodeEntry) -> NodeEntry:
        if entry.id in self._nodes:
            raise ValueError(f"Duplicate node id: {entry.id}")
        if not entry.names:
            raise ValueError(f"Node {entry.id} has no names")
        self._nodes[entry.id] = entry
        return entry

    def add_edge(self, from_id: str, to_id: str, label: str) -> Edge:
        edge = Edge(from_id=from_id, to_id=to_id, label=label)
        self._edges.append(edge)
        return edge

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def finalize(self) -> Graph:
        """Immutable snapshot. Later changes to the assembler don't leak in."""
        return Graph(
            nodes=tuple(e.snapshot() for e in self._nodes.values()),
            edges=tuple(self._edges),
        )
