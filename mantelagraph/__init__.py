"""
mantelagraph — VoIP switch network discovery from mantela.json descriptors.

Start at one switch, follow its providers, build the graph.
"""

__version__ = "0.1.0"

from .models import (
    AboutMe, ExtensionEntry, ProviderEntry, Descriptor,
    Node, Edge, Graph, PBX_TYPE,
)
from .assembler import GraphAssembler, NodeEntry
from .resolver import IdentityResolver
from .fetcher import DescriptorFetcher
from .diagnostics import CrawlDiagnostic, FetchResult, FetchStatus
from .events import DiscoveryEvent
from .parsers import DescriptorShapeError, parse_descriptor
from .walker import MantelaWalker, DiscoveryConfig, discover

__all__ = [
    "AboutMe", "ExtensionEntry", "ProviderEntry", "Descriptor",
    "Node", "Edge", "Graph", "PBX_TYPE",
    "GraphAssembler", "NodeEntry", "IdentityResolver",
    "DescriptorFetcher", "CrawlDiagnostic", "FetchResult", "FetchStatus",
    "DiscoveryEvent", "DescriptorShapeError", "parse_descriptor",
    "MantelaWalker", "DiscoveryConfig", "discover",
]
