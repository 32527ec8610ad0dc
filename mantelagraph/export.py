"""
Graph → consumer formats.

  to_vis_data  — the nodes/edges data set a vis-network view expects
  build_tree   — rich Tree for the terminal: switch → extensions, providers
"""

from __future__ import annotations
from typing import Optional

from rich.text import Text
from rich.tree import Tree

from .models import Graph, Node

EXTENSION_COLOR = "orange"


def to_vis_data(graph: Graph) -> dict:
    """
    vis-network data set. Label is the primary name; anything that
    isn't a switch is drawn orange; edges point from → to.
    """
    nodes = []
    for n in graph.nodes:
        vis_node = {"id": n.id, "label": n.primary_name}
        if not n.is_switch:
            vis_node["color"] = EXTENSION_COLOR
        nodes.append(vis_node)

    return {
        "nodes": nodes,
        "edges": [
            {"from": e.from_id, "to": e.to_id, "label": e.label, "arrows": "to"}
            for e in graph.edges
        ],
    }


def _switch_label(node: Node) -> Text:
    label = Text.assemble((node.primary_name, "bold #00d4ff"), f"  ({node.id})")
    aliases = [n for n in dict.fromkeys(node.names[1:]) if n != node.primary_name]
    if aliases:
        label.append(f"  aka {', '.join(aliases)}", style="#888888")
    return label


def build_tree(graph: Graph, title: Optional[str] = None) -> Tree:
    """One branch per switch, in discovery order."""
    switches = graph.switches()
    extensions = len(graph.nodes) - len(switches)
    root = Tree(Text.assemble(
        (f"📞 {title or 'mantela'}", "bold"),
        f"  {len(switches)} switches │ {extensions} extensions │ "
        f"{len(graph.edges)} edges",
    ))

    by_id = {n.id: n for n in graph.nodes}
    for switch in switches:
        branch = root.add(_switch_label(switch))
        for edge in graph.edges_from(switch.id):
            target = by_id.get(edge.to_id)
            if target is None:
                branch.add(Text(f"{edge.label}  → {edge.to_id} (unknown)",
                                style="#ff4444"))
            elif target.is_switch:
                branch.add(Text.assemble(
                    (f"{edge.label}", "#ffcc00"),
                    f"  → {target.primary_name} ({target.id})",
                ))
            else:
                branch.add(Text.assemble(
                    (f"{edge.label}", "#00ff88"),
                    f"  {target.primary_name} [{target.type}]",
                ))
    return root
