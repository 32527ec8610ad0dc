"""
Mantela Graph — Core Data Models

Two layers:
  1. Descriptor — what a single mantela.json says about its own switch
  2. Graph      — what the crawl assembled out of many descriptors

Node identity is the self-reported switch identifier. Display names are
aliases: the same switch may be called different things by itself and by
each of its peers, so names accumulate instead of overwriting.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


PBX_TYPE = "PBX"


# ============================================================
# Descriptor — one mantela.json, parsed
# ============================================================

@dataclass
class AboutMe:
    """Self-identity section. Without it a switch cannot be registered."""
    identifier: str
    name: str


@dataclass
class ExtensionEntry:
    """A local line on the switch — phone, fax, voicemail, whatever."""
    name: str
    type: str
    extension: str                      # the number dialed to reach it


@dataclass
class ProviderEntry:
    """A peer or upstream switch, reached by dialing `prefix`."""
    identifier: str
    name: str
    prefix: str
    mantela: Optional[str] = None       # descriptor URL, if crawlable


@dataclass
class Descriptor:
    about_me: Optional[AboutMe] = None
    extensions: list[ExtensionEntry] = field(default_factory=list)
    providers: list[ProviderEntry] = field(default_factory=list)


# ============================================================
# Graph — the assembled network
# ============================================================

@dataclass(frozen=True)
class Node:
    """A switch (type "PBX") or one of its extensions."""
    id: str
    names: tuple[str, ...]
    type: str

    @property
    def primary_name(self) -> str:
        return self.names[0]

    @property
    def is_switch(self) -> bool:
        return self.type == PBX_TYPE

    def to_dict(self) -> dict:
        return {"id": self.id, "names": list(self.names), "type": self.type}


@dataclass(frozen=True)
class Edge:
    """
    Directed switch → extension (label = extension number) or
    switch → provider (label = dialing prefix). Never deduplicated.
    """
    from_id: str
    to_id: str
    label: str

    def to_dict(self) -> dict:
        return {"from": self.from_id, "to": self.to_id, "label": self.label}


@dataclass(frozen=True)
class Graph:
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def switches(self) -> list[Node]:
        return [n for n in self.nodes if n.is_switch]

    def edges_from(self, node_id: str) -> list[Edge]:
        return [e for e in self.edges if e.from_id == node_id]

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }
