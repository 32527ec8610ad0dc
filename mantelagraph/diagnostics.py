"""
Mantela Graph — Diagnostic Framework

Every fetch — traceable. A crawl over other people's switches will hit
dead hosts, 404s, HTML error pages served as 200, and JSON that doesn't
look like a mantela. None of that stops the crawl, but all of it should
be answerable after the fact:
  - Did the request even go out?
  - What HTTP status came back?
  - Did the body decode as JSON?
  - Did the JSON have the shape we read?
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, TYPE_CHECKING
import json
import logging

if TYPE_CHECKING:
    from .models import Descriptor


# ============================================================
# Fetch Records
# ============================================================

class FetchStatus(Enum):
    SUCCESS = "success"
    TRANSPORT_ERROR = "transport-error"     # DNS, connect, timeout, bad URL
    HTTP_ERROR = "http-error"               # non-2xx response
    JSON_ERROR = "json-error"               # body isn't JSON
    SHAPE_ERROR = "shape-error"             # JSON, but not a mantela


@dataclass
class FetchResult:
    """
    Outcome of one descriptor fetch. Either ok with a descriptor, or a
    failure with a status kind and message — never an exception.
    """
    url: str
    status: FetchStatus = FetchStatus.SUCCESS
    descriptor: Optional["Descriptor"] = None
    http_status: Optional[int] = None
    error_message: str = ""
    duration_ms: Optional[float] = None
    depth: Optional[int] = None             # hop depth, filled in by the walker
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.SUCCESS and self.descriptor is not None

    def describe(self) -> str:
        """Short human-readable failure text for status lines."""
        if self.ok:
            return "ok"
        detail = self.error_message or self.status.value
        return f"Error: {detail}"

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "status": self.status.value,
            "http_status": self.http_status,
            "error_message": self.error_message,
            "duration_ms": self.duration_ms,
            "depth": self.depth,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class CrawlDiagnostic:
    """Complete diagnostic record for one discovery run."""
    start_url: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    fetches: list[FetchResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)        # "url (reason)"
    abandoned: list[str] = field(default_factory=list)      # fetched, no aboutMe
    cancelled: bool = False

    def failed_fetches(self) -> list[FetchResult]:
        return [f for f in self.fetches if not f.ok]

    def to_dict(self) -> dict:
        return {
            "start_url": self.start_url,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "cancelled": self.cancelled,
            "summary": {
                "total_fetches": len(self.fetches),
                "failed_fetches": len(self.failed_fetches()),
                "skipped": len(self.skipped),
                "abandoned": len(self.abandoned),
            },
            "fetches": [f.to_dict() for f in self.fetches],
            "skipped": self.skipped,
            "abandoned": self.abandoned,
        }

    def dump_json(self, path: str):
        """Write full diagnostic to JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)


# ============================================================
# Logger Setup
# ============================================================
#
#   (default)       : nothing but the status stream
#   --verbose / -v  : per-switch progress to stderr
#   --debug         : every skip, alias merge and fetch, to stderr
#   --log FILE      : debug-level to file, whatever else is set
#

def setup_logging(
    log_file: Optional[str] = None,
    debug: bool = False,
    verbose: bool = False,
) -> logging.Logger:
    """
    Configure logging for a discovery run.

    - log_file: write debug-level to file
    - debug: debug-level to stderr
    - verbose: info-level to stderr
    """
    logger = logging.getLogger("mantelagraph")
    logger.setLevel(logging.DEBUG)
    for h in logger.handlers:
        h.close()
    logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if log_file:
        fh = logging.FileHandler(log_file, mode="w")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    if debug or verbose:
        sh = logging.StreamHandler()
        sh.setLevel(logging.DEBUG if debug else logging.INFO)
        sh.setFormatter(formatter)
        logger.addHandler(sh)

    # Null handler if nothing else — prevent "no handler" warnings
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


# ============================================================
# Diagnostic Dump Formats
# ============================================================

_STATUS_ICON = {
    FetchStatus.SUCCESS: "✓",
    FetchStatus.TRANSPORT_ERROR: "✗",
    FetchStatus.HTTP_ERROR: "✗",
    FetchStatus.JSON_ERROR: "⚠",
    FetchStatus.SHAPE_ERROR: "⚠",
}


def dump_fetch_summary(result: FetchResult) -> str:
    """One-line summary of a single fetch."""
    icon = _STATUS_ICON.get(result.status, "?")
    depth = f"hop {result.depth}: " if result.depth is not None else ""
    time_str = f" ({result.duration_ms:.0f}ms)" if result.duration_ms else ""
    line = f"[{icon}] {depth}{result.url}{time_str}"
    if not result.ok:
        line += f" → {result.status.value}"
        if result.error_message:
            line += f": {result.error_message}"
    return line


def dump_crawl_summary(diag: CrawlDiagnostic) -> str:
    """Full crawl summary — suitable for terminal or report output."""
    lines = [
        f"Mantela crawl: {diag.start_url}",
        f"{'─' * 50}",
    ]
    for fetch in diag.fetches:
        lines.append(dump_fetch_summary(fetch))
    for url in diag.abandoned:
        lines.append(f"[○] {url} → no aboutMe, abandoned")

    s = diag.to_dict()["summary"]
    lines.append(f"{'─' * 50}")
    lines.append(
        f"Fetches: {s['total_fetches']} | "
        f"Failed: {s['failed_fetches']} | "
        f"Skipped: {s['skipped']} | "
        f"Abandoned: {s['abandoned']}"
        + (" | CANCELLED" if diag.cancelled else "")
    )
    return "\n".join(lines)
