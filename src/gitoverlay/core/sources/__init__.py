"""Overlay sources: remote clone cache, catalog sources and resolution."""
from .cache import RemoteCache
from .catalog import CatalogSource
from .manager import MultiSourceManager, ResolvedOverlay
from .resolver import Resolution, SourceResolver, parse_catalog_reference
from .upstream import RemoteScopeDetector

__all__ = [
    "CatalogSource",
    "MultiSourceManager",
    "RemoteCache",
    "RemoteScopeDetector",
    "Resolution",
    "ResolvedOverlay",
    "SourceResolver",
    "parse_catalog_reference",
]
