"""Overlay data model, placement, conflict detection and state.

The engine lives in :mod:`gitoverlay.core.overlay.engine`; it is not
re-exported here because it depends on :mod:`gitoverlay.core.sources`, which
in turn imports this package.
"""
from .models import (
    CataloguedSource,
    EntryKind,
    FileEntry,
    LocalSource,
    OverlayConfig,
    OverlayState,
    PlacementKind,
    RemoteSource,
    ResolvedVia,
    normalize_overlay_name,
)

__all__ = [
    "CataloguedSource",
    "EntryKind",
    "FileEntry",
    "LocalSource",
    "OverlayConfig",
    "OverlayState",
    "PlacementKind",
    "RemoteSource",
    "ResolvedVia",
    "normalize_overlay_name",
]
