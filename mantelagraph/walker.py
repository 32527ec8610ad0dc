"""
Mantela Walker — BFS discovery over mantela.json descriptors.

Switch identity comes from the descriptor's own aboutMe.identifier, not
from the URL we fetched it from. The same switch may publish its
mantela under several URLs, and peers may point at any of them; the
identifier IS the switch.

Sequence per frontier item:
    1. Skip if URL already fetched or item is past the hop limit
    2. Fetch descriptor (failure → report, continue)
    3. Mark URL visited
    4. No aboutMe → abandon (URL stays visited)
    5. Register self (create or add alias)
    6. Identity already expanded → stop here
    7. Extensions → fresh leaf nodes + edges
    8. Providers → create-or-merge nodes + edges, enqueue their mantela

Two visited sets, never mixed:
    _visited_urls  — documents fetched successfully
    _visited_ids   — switches fully expanded

Termination on cyclic networks (A → B → A) falls out of both: depth
grows by one per enqueue, and a URL is fetched at most once.

Hop depth:
          start (nest 0)            ← always fetched
          /          \\
      prov-A (1)   prov-B (1)       ← fetched when max_hops >= 1
         |
      prov-C (2)                    ← recorded as node + edge from prov-A,
                                      fetched only when max_hops >= 2
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging
import threading
import uuid

from .models import Descriptor, Graph, PBX_TYPE
from .assembler import GraphAssembler, NodeEntry
from .resolver import IdentityResolver
from .fetcher import DescriptorFetcher, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .diagnostics import CrawlDiagnostic, dump_crawl_summary, setup_logging
from .events import (
    DiscoveryEvent, EventCallback, StatusCallback,
    STATUS_DONE, STATUS_CANCELLED,
)

logger = logging.getLogger("mantelagraph")


# ============================================================
# Discovery Configuration
# ============================================================

@dataclass
class DiscoveryConfig:
    start_url: str

    # Walk behavior
    max_hops: Optional[int] = None          # None = unbounded
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    # Diagnostics
    log_file: Optional[str] = None          # text log, debug level
    diagnostics_file: Optional[str] = None  # CrawlDiagnostic as JSON
    verbose: bool = False
    debug: bool = False

    # Consumers — all optional, absence is a no-op
    status_callback: Optional[StatusCallback] = None
    event_callback: Optional[EventCallback] = None

    # Set from another thread to stop between fetches
    cancel_event: Optional[threading.Event] = None

    def __post_init__(self):
        if self.max_hops is not None and self.max_hops < 0:
            raise ValueError(f"max_hops must be >= 0, got {self.max_hops}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")


# ============================================================
# BFS Frontier Item
# ============================================================

@dataclass
class FrontierItem:
    """A descriptor to fetch. URL is where it lives, nest is how far out."""
    url: str
    nest: int


# ============================================================
# Mantela Walker
# ============================================================

class MantelaWalker:
    """
    BFS discovery of a switch network from one starting mantela.json.

    Usage:
        config = DiscoveryConfig(
            start_url="https://example.jp/mantela.json",
            max_hops=3,
            status_callback=print,
        )
        walker = MantelaWalker(config)
        graph = walker.walk()

        # graph.nodes → switches + extensions, discovery order
        # graph.edges → extension numbers and provider prefixes
        # walker.diagnostics.dump_json("/tmp/crawl.json")
    """

    def __init__(self, config: DiscoveryConfig,
                 fetcher: Optional[DescriptorFetcher] = None):
        self.config = config
        self._fetcher = fetcher

        self._visited_urls: set[str] = set()
        self._visited_ids: set[str] = set()

        self._assembler = GraphAssembler()
        self._resolver = IdentityResolver(self._assembler)
        self._graph: Optional[Graph] = None
        self._diagnostics: Optional[CrawlDiagnostic] = None

    @property
    def diagnostics(self) -> Optional[CrawlDiagnostic]:
        return self._diagnostics

    @property
    def graph(self) -> Optional[Graph]:
        return self._graph

    # ────────────────────────────────────────────
    # Consumer Output
    # ────────────────────────────────────────────

    def _status(self, msg: str) -> None:
        """Best-effort status line. A broken sink never stops the crawl."""
        cb = self.config.status_callback
        if cb is not None:
            try:
                cb(msg)
            except Exception as e:
                logger.debug(f"Status callback error: {e}")

    def _emit(self, event: DiscoveryEvent) -> None:
        cb = self.config.event_callback
        if cb is not None:
            try:
                cb(event)
            except Exception as e:
                logger.debug(f"Event callback error: {e}")

    def _cancel_requested(self) -> bool:
        ev = self.config.cancel_event
        return ev is not None and ev.is_set()

    def _within_limit(self, nest: int) -> bool:
        return self.config.max_hops is None or nest <= self.config.max_hops

    def _may_expand(self, nest: int) -> bool:
        """Providers found at this depth get their own mantela fetched."""
        return self.config.max_hops is None or nest < self.config.max_hops

    # ────────────────────────────────────────────
    # Main Walk
    # ────────────────────────────────────────────

    def walk(self) -> Graph:
        """Execute the BFS discovery. Returns the assembled Graph."""

        setup_logging(
            log_file=self.config.log_file,
            debug=self.config.debug,
            verbose=self.config.verbose,
        )

        limit = ("unbounded" if self.config.max_hops is None
                 else str(self.config.max_hops))
        logger.info(f"Starting discovery: {self.config.start_url} "
                    f"(max hops: {limit})")

        self._visited_urls.clear()
        self._visited_ids.clear()
        self._assembler = GraphAssembler()
        self._resolver = IdentityResolver(self._assembler)

        started_at = datetime.now()
        self._diagnostics = CrawlDiagnostic(
            start_url=self.config.start_url,
            started_at=started_at,
        )

        fetcher = self._fetcher
        owns_fetcher = fetcher is None
        if owns_fetcher:
            fetcher = DescriptorFetcher(
                timeout=self.config.timeout,
                user_agent=self.config.user_agent,
            )

        queue: deque[FrontierItem] = deque()
        queue.append(FrontierItem(url=self.config.start_url, nest=0))

        cancelled = False
        try:
            while queue:
                if self._cancel_requested():
                    logger.warning(f"Discovery cancelled with "
                                   f"{len(queue)} items left in frontier")
                    cancelled = True
                    break

                item = queue.popleft()

                # ── Guard: already fetched ──
                if item.url in self._visited_urls:
                    logger.debug(f"Skip {item.url}: already fetched")
                    self._diagnostics.skipped.append(f"{item.url} (visited)")
                    continue

                # ── Guard: hop limit ──
                if not self._within_limit(item.nest):
                    logger.debug(f"Skip {item.url}: nest {item.nest} "
                                 f"beyond max hops {self.config.max_hops}")
                    self._diagnostics.skipped.append(
                        f"{item.url} (nest {item.nest})"
                    )
                    continue

                self._visit(item, fetcher, queue)
        finally:
            if owns_fetcher:
                fetcher.close()

        # ── Finalize ──
        completed_at = datetime.now()
        elapsed = (completed_at - started_at).total_seconds()
        self._diagnostics.completed_at = completed_at
        self._diagnostics.cancelled = cancelled

        self._graph = self._assembler.finalize()
        failed = len(self._diagnostics.failed_fetches())

        logger.info(
            f"Discovery {'cancelled' if cancelled else 'complete'}: "
            f"{len(self._visited_ids)} switches expanded, "
            f"{len(self._graph.nodes)} nodes, {len(self._graph.edges)} edges, "
            f"{failed} failed fetches, {elapsed:.1f}s"
        )

        if self.config.diagnostics_file:
            self._diagnostics.dump_json(self.config.diagnostics_file)
            logger.info(f"Diagnostics written to {self.config.diagnostics_file}")

        self._emit(DiscoveryEvent(
            event="crawl_done",
            url=self.config.start_url,
            total_nodes=len(self._graph.nodes),
            total_edges=len(self._graph.edges),
            failed_fetches=failed,
            duration=elapsed,
            cancelled=cancelled,
            notes=list(self._diagnostics.abandoned),
        ))
        self._status(STATUS_CANCELLED if cancelled else STATUS_DONE)
        return self._graph

    # ────────────────────────────────────────────
    # One Frontier Item
    # ────────────────────────────────────────────

    def _visit(self, item: FrontierItem, fetcher: DescriptorFetcher,
               queue: deque[FrontierItem]) -> None:

        # ── 1. Fetch ──
        self._status(item.url)
        self._emit(DiscoveryEvent(event="fetch_start", url=item.url,
                                  depth=item.nest))

        result = fetcher.fetch(item.url)
        result.depth = item.nest
        self._diagnostics.fetches.append(result)

        if not result.ok:
            logger.error(f"Fetch failed: {item.url}: "
                         f"{result.status.value}: {result.error_message}")
            self._status(f"{result.describe()}: {item.url}")
            self._emit(DiscoveryEvent(event="fetch_failed", url=item.url,
                                      depth=item.nest,
                                      error=result.error_message))
            return

        self._visited_urls.add(item.url)
        descriptor = result.descriptor

        # ── 2. Identify — a switch that can't name itself is dropped ──
        if descriptor.about_me is None:
            logger.info(f"No aboutMe in {item.url}, abandoned")
            self._diagnostics.abandoned.append(item.url)
            return

        about_me = descriptor.about_me
        switch = self._resolver.resolve_or_merge(
            about_me.identifier, about_me.name, PBX_TYPE
        )

        # ── 3. Revisit check BY IDENTITY ──
        if switch.id in self._visited_ids:
            logger.info(f"{switch.id} already expanded, reached again via "
                        f"{item.url} (names: {', '.join(switch.names)})")
            return
        self._visited_ids.add(switch.id)

        logger.info(f"Hop {item.nest}: {switch.id} ({about_me.name}) "
                    f"via {item.url}")

        # ── 4. Expand ──
        self._register_extensions(switch, descriptor)
        enqueued = self._register_providers(switch, descriptor, item, queue)

        self._emit(DiscoveryEvent(
            event="switch_done",
            url=item.url,
            depth=item.nest,
            identifier=switch.id,
            name=about_me.name,
            extensions=len(descriptor.extensions),
            providers=len(descriptor.providers),
            enqueued=enqueued,
        ))

    def _register_extensions(self, switch: NodeEntry,
                             descriptor: Descriptor) -> None:
        """Every extension is a new leaf — never merged, even if repeated."""
        for ext in descriptor.extensions:
            node_id = f"{switch.id}-{uuid.uuid4()}"
            self._assembler.add_node(NodeEntry(
                id=node_id,
                names=[ext.name],
                type=ext.type,
            ))
            self._assembler.add_edge(switch.id, node_id, ext.extension)

    def _register_providers(self, switch: NodeEntry, descriptor: Descriptor,
                            item: FrontierItem,
                            queue: deque[FrontierItem]) -> int:
        """
        Record every provider as a PBX node + prefix edge. Enqueue its
        mantela only while under the hop limit. Returns items enqueued.
        """
        expand = self._may_expand(item.nest)
        enqueued = 0
        for prov in descriptor.providers:
            peer = self._resolver.resolve_or_merge(
                prov.identifier, prov.name, PBX_TYPE
            )
            self._assembler.add_edge(switch.id, peer.id, prov.prefix)

            if expand and prov.mantela:
                queue.append(FrontierItem(url=prov.mantela,
                                          nest=item.nest + 1))
                enqueued += 1

        if descriptor.providers and not expand:
            logger.debug(f"{switch.id}: {len(descriptor.providers)} providers "
                         f"recorded at hop limit, not fetched")
        return enqueued


# ============================================================
# Function Entry Point
# ============================================================

def discover(start_url: str, max_hops: Optional[int] = None,
             on_status: Optional[StatusCallback] = None,
             fetcher: Optional[DescriptorFetcher] = None) -> Graph:
    """
    Crawl from `start_url` and return the assembled Graph.
    Never fails on bad peers — the worst case is an empty Graph.
    """
    config = DiscoveryConfig(
        start_url=start_url,
        max_hops=max_hops,
        status_callback=on_status,
    )
    return MantelaWalker(config, fetcher=fetcher).walk()


# ============================================================
# CLI Entry Point
# ============================================================

def main(argv: Optional[list[str]] = None):
    """
    mantelagraph https://example.jp/mantela.json --max-nest 3 \\
                 --log /tmp/mantela.log --diagnostics /tmp/crawl.json
    """
    import argparse
    import json as json_mod

    from rich.console import Console
    from rich.text import Text

    from .export import build_tree, to_vis_data

    parser = argparse.ArgumentParser(
        description="Discover a VoIP switch network from a mantela.json.",
        epilog=(
            "Examples:\n"
            "  mantelagraph https://example.jp/mantela.json\n"
            "  mantelagraph https://example.jp/mantela.json --max-nest 2 -v\n"
            "  mantelagraph https://example.jp/mantela.json --json > graph.json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("url", help="Starting mantela.json URL")
    parser.add_argument("--max-nest", type=int, default=None,
                        help="Maximum provider hops to follow (default: unbounded)")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                        help="Per-fetch timeout in seconds")

    output = parser.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true",
                        help="Output graph as JSON")
    output.add_argument("--vis", action="store_true",
                        help="Output vis-network nodes/edges data as JSON")

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log per-switch progress and print a crawl summary")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--log", default=None,
                        help="Write debug log to file")
    parser.add_argument("--diagnostics", default=None,
                        help="Write crawl diagnostic JSON to file")

    args = parser.parse_args(argv)

    if args.max_nest is not None and args.max_nest < 0:
        parser.error(f"--max-nest must be >= 0, got {args.max_nest}")
    if args.timeout <= 0:
        parser.error(f"--timeout must be > 0, got {args.timeout}")

    err_console = Console(stderr=True)

    def _on_event(evt: DiscoveryEvent) -> None:
        if evt.event == "fetch_failed":
            err_console.print(Text.assemble(
                ("  ✗ ", "#ff4444"), (evt.url, "#ff4444"), f"  {evt.error}",
            ))

    config = DiscoveryConfig(
        start_url=args.url,
        max_hops=args.max_nest,
        timeout=args.timeout,
        log_file=args.log,
        diagnostics_file=args.diagnostics,
        verbose=args.verbose,
        debug=args.debug,
        event_callback=_on_event,
    )

    with err_console.status(args.url) as spinner:
        config.status_callback = spinner.update
        walker = MantelaWalker(config)
        graph = walker.walk()

    if args.verbose:
        err_console.print(dump_crawl_summary(walker.diagnostics),
                          markup=False, highlight=False)

    if args.json:
        print(json_mod.dumps(graph.to_dict(), indent=2, ensure_ascii=False))
    elif args.vis:
        print(json_mod.dumps(to_vis_data(graph), indent=2, ensure_ascii=False))
    else:
        Console().print(build_tree(graph, title=args.url))


if __name__ == "__main__":
    main()
