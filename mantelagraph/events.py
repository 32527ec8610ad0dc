"""
Shared event types for walker → consumer communication.

Two channels, both optional:
  - status: plain strings, one per step ("https://…/mantela.json",
    "Error: …", "Done."). Enough to drive a status line.
  - events: DiscoveryEvent objects for consumers that want structure
    (a live tree, a progress bar, a test).

Neither side imports the other — this is the only shared dependency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable


STATUS_DONE = "Done."
STATUS_CANCELLED = "Cancelled."


@dataclass
class DiscoveryEvent:
    """
    One event from the walker.

    Events:
        fetch_start   — about to GET a descriptor
        fetch_failed  — GET/parse failed, crawl continues
        switch_done   — switch registered and expanded
        crawl_done    — frontier empty (or cancelled), final summary
    """
    event: str

    # Per-fetch context
    url: str = ""
    depth: int = 0

    # switch_done
    identifier: str = ""
    name: str = ""
    extensions: int = 0
    providers: int = 0
    enqueued: int = 0

    # fetch_failed
    error: str = ""

    # crawl_done
    total_nodes: int = 0
    total_edges: int = 0
    failed_fetches: int = 0
    duration: float = 0.0
    cancelled: bool = False
    notes: list[str] = field(default_factory=list)


# Type aliases for the callbacks
StatusCallback = Callable[[str], None]
EventCallback = Callable[[DiscoveryEvent], None]
