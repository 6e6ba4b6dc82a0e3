"""Multi-source resolution of catalogued overlays.

Given ``<scope>/<name>``, sources are searched strictly in registry order and
the first one holding the overlay wins. When none does and the working tree
has an ``upstream`` remote, the search is repeated for the upstream scope and
a hit is tagged as resolved via upstream.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from gitoverlay.core.exceptions import OverlayNotFound, SourceNotFound
from gitoverlay.core.overlay.models import ResolvedVia
from gitoverlay.core.sources.catalog import CatalogOverlay, CatalogSource

logger = logging.getLogger(__name__)


class UpstreamDetector(Protocol):
    def upstream_scope(self, target: Path) -> Optional[str]: ...


@dataclass(frozen=True, slots=True)
class ResolvedOverlay:
    """Where a catalogued overlay was found.

    Attributes:
        path: Overlay directory inside the source clone
        source: Name of the source that matched
        scope: Scope the overlay was found under (upstream scope on fallback)
        name: Overlay name
        commit: Source clone HEAD at resolution time
        resolved_via: Direct match or upstream fallback
    """

    path: Path
    source: str
    scope: str
    name: str
    commit: str
    resolved_via: ResolvedVia


class MultiSourceManager:
    """Searches an ordered list of catalog sources."""

    def __init__(self, sources: list[CatalogSource], detector: Optional[UpstreamDetector] = None) -> None:
        self.sources = list(sources)
        self.detector = detector

    def get(self, name: str) -> CatalogSource:
        for source in self.sources:
            if source.name == name:
                return source
        raise SourceNotFound(
            f"Source '{name}' is not configured (known: {', '.join(s.name for s in self.sources) or 'none'})",
            context={"source": name},
        )

    def _search(
        self,
        candidates: list[CatalogSource],
        scope: str,
        name: str,
        searched: list[dict[str, str]],
    ) -> Optional[tuple[CatalogSource, Path]]:
        for source in candidates:
            source.ensure_cloned()
            searched.append({"source": source.name, "scope": scope})
            path = source.find(scope, name)
            if path is not None:
                return source, path
        return None

    def resolve(
        self,
        scope: str,
        name: str,
        *,
        target: Path,
        source_override: Optional[str] = None,
    ) -> ResolvedOverlay:
        """Find ``<scope>/<name>``.

        Args:
            scope: ``org/repo`` scope
            name: Overlay name within the scope
            target: Working tree, consulted for its upstream scope
            source_override: Search only this source

        Raises:
            SourceNotFound: If ``source_override`` is not configured.
            OverlayNotFound: If no searched source holds the overlay.
        """
        candidates = [self.get(source_override)] if source_override else self.sources
        searched: list[dict[str, str]] = []

        hit = self._search(candidates, scope, name, searched)
        if hit is not None:
            return self._resolved(hit, scope, name, ResolvedVia.DIRECT)

        upstream = self.detector.upstream_scope(target) if self.detector is not None else None
        if upstream and upstream != scope:
            logger.debug("'%s/%s' not found directly, trying upstream scope %s", scope, name, upstream)
            hit = self._search(candidates, upstream, name, searched)
            if hit is not None:
                return self._resolved(hit, upstream, name, ResolvedVia.UPSTREAM)

        raise OverlayNotFound(scope, name, searched=searched)

    def locate(self, source_name: str, scope: str, name: str) -> ResolvedOverlay:
        """Re-find an overlay at a recorded (source, scope) with no fallback."""
        source = self.get(source_name)
        searched: list[dict[str, str]] = []
        hit = self._search([source], scope, name, searched)
        if hit is None:
            raise OverlayNotFound(scope, name, searched=searched)
        return self._resolved(hit, scope, name, ResolvedVia.DIRECT)

    @staticmethod
    def _resolved(hit: tuple[CatalogSource, Path], scope: str, name: str, via: ResolvedVia) -> ResolvedOverlay:
        source, path = hit
        return ResolvedOverlay(
            path=path,
            source=source.name,
            scope=scope,
            name=name,
            commit=source.current_commit(),
            resolved_via=via,
        )

    def list_overlays(self, source_name: Optional[str] = None) -> list[CatalogOverlay]:
        candidates = [self.get(source_name)] if source_name else self.sources
        found: list[CatalogOverlay] = []
        for source in candidates:
            found.extend(source.list_overlays())
        return found


__all__ = ["MultiSourceManager", "ResolvedOverlay", "UpstreamDetector"]
