"""Overlay reference resolution.

Turns what the user typed into a local directory plus a source descriptor
that can later be re-resolved without user input:

- ``https://…``, ``git@host:…``, ``file://…``  -> remote clone cache
- an existing local directory                 -> used in place
- ``org/repo/name``                           -> catalog sources, in priority order
- ``name``                                    -> catalog sources, scope taken from ``origin``
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from gitoverlay.core.exceptions import AmbiguousReference, SourceNotFound
from gitoverlay.core.git.remote import RemoteReference, is_remote_reference
from gitoverlay.core.overlay.models import (
    CataloguedSource,
    LocalSource,
    RemoteSource,
    SourceDescriptor,
)
from gitoverlay.core.overlay.placement import resolve_within
from gitoverlay.core.sources.cache import RemoteCache
from gitoverlay.core.sources.manager import MultiSourceManager, ResolvedOverlay
from gitoverlay.core.sources.upstream import RemoteScopeDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Resolution:
    """A resolved overlay source.

    Attributes:
        path: Directory holding the overlay files
        descriptor: Persistable description of where they came from
        default_name: Overlay name to use absent config or user override
    """

    path: Path
    descriptor: SourceDescriptor
    default_name: str


def parse_catalog_reference(value: str) -> Optional[tuple[str, str]]:
    """Split ``org/repo/name`` into ``("org/repo", "name")``.

    Returns ``None`` for anything that is not exactly three non-empty
    segments.

    >>> parse_catalog_reference("acme/widgets/ai-config")
    ('acme/widgets', 'ai-config')
    """
    if "://" in value or value.startswith((".", "/", "~")):
        return None
    parts = value.split("/")
    if len(parts) != 3 or not all(parts):
        return None
    return f"{parts[0]}/{parts[1]}", parts[2]


class SourceResolver:
    """Resolves references and re-resolves stored descriptors."""

    def __init__(
        self,
        cache: RemoteCache,
        manager_factory: Callable[[], MultiSourceManager],
        detector: Optional[RemoteScopeDetector] = None,
    ) -> None:
        self.cache = cache
        self._manager_factory = manager_factory
        self._manager: Optional[MultiSourceManager] = None
        self.detector = detector or RemoteScopeDetector(cache.git)

    @property
    def manager(self) -> MultiSourceManager:
        # Built on first catalog lookup so a broken source registry only
        # affects catalogued references.
        if self._manager is None:
            self._manager = self._manager_factory()
        return self._manager

    def resolve(
        self,
        reference: str,
        *,
        target: Path,
        source_override: Optional[str] = None,
        update: bool = False,
    ) -> Resolution:
        """Resolve a user supplied reference.

        Raises:
            SourceNotFound: Missing path, unparsable URL, unknown source.
            AmbiguousReference: Bare name with no way to pick a scope.
            OverlayNotFound: Catalogued reference absent from every source.
            ExternalProcessFailed: Clone or fetch failure.
        """
        ref = reference.strip()
        if is_remote_reference(ref):
            return self._resolve_remote(RemoteReference.parse(ref), update=update)

        local = Path(ref).expanduser()
        if local.exists():
            if not local.is_dir():
                raise SourceNotFound(f"Overlay source is not a directory: {local}", context={"reference": ref})
            resolved = local.resolve()
            return Resolution(path=resolved, descriptor=LocalSource(path=str(resolved)), default_name=resolved.name)

        catalog = parse_catalog_reference(ref)
        if catalog is not None:
            scope, name = catalog
            found = self.manager.resolve(scope, name, target=target, source_override=source_override)
            return self._catalogued(found)

        if ref.startswith((".", "/", "~")) or "/" in ref:
            raise SourceNotFound(f"Overlay source not found: {ref}", context={"reference": ref})

        return self._resolve_bare_name(ref, target=target, source_override=source_override)

    def _resolve_bare_name(self, name: str, *, target: Path, source_override: Optional[str]) -> Resolution:
        if not self.manager.sources:
            raise AmbiguousReference(
                f"'{name}' is not a local directory and no sources are configured; "
                "add one with 'gitoverlay source add', or pass a path, URL or org/repo/name",
                context={"reference": name},
            )
        scope = self.detector.origin_scope(target)
        if scope is None:
            raise AmbiguousReference(
                f"Cannot infer a scope for '{name}': the target has no usable 'origin' remote; "
                "use org/repo/name",
                context={"reference": name},
            )
        found = self.manager.resolve(scope, name, target=target, source_override=source_override)
        return self._catalogued(found)

    def _resolve_remote(self, ref: RemoteReference, *, update: bool) -> Resolution:
        checkout = self.cache.ensure(ref, update=update)
        path = checkout.path
        if ref.subpath:
            path = resolve_within(checkout.path, ref.subpath, what="remote subpath")
            if not path.is_dir():
                raise SourceNotFound(
                    f"Subdirectory '{ref.subpath}' not found in {ref.scope}",
                    context={"subpath": ref.subpath, "repository": ref.scope},
                )
        descriptor = RemoteSource(
            url=ref.clone_url,
            owner=ref.owner,
            repo=ref.repo,
            commit=checkout.commit,
            ref=ref.ref,
            subpath=ref.subpath,
            cached_at=checkout.cached_at,
        )
        return Resolution(path=path, descriptor=descriptor, default_name=ref.display_name)

    @staticmethod
    def _catalogued(found: ResolvedOverlay) -> Resolution:
        descriptor = CataloguedSource(
            source=found.source,
            scope=found.scope,
            overlay=found.name,
            commit=found.commit,
            resolved_via=found.resolved_via,
        )
        return Resolution(path=found.path, descriptor=descriptor, default_name=found.name)

    # ------------------------------------------------------------ re-resolve

    def resolve_descriptor(self, descriptor: SourceDescriptor, *, update: bool = False) -> Resolution:
        """Re-resolve a stored descriptor (restore, update, sync)."""
        if isinstance(descriptor, LocalSource):
            path = Path(descriptor.path)
            if not path.is_dir():
                raise SourceNotFound(
                    f"Overlay source directory no longer exists: {path}",
                    context={"path": descriptor.path},
                )
            return Resolution(path=path, descriptor=descriptor, default_name=path.name)

        if isinstance(descriptor, RemoteSource):
            return self._resolve_remote(self.remote_reference(descriptor), update=update)

        found = self.manager.locate(descriptor.source, descriptor.scope, descriptor.overlay)
        if update:
            self.manager.get(descriptor.source).pull()
            found = self.manager.locate(descriptor.source, descriptor.scope, descriptor.overlay)
        return Resolution(
            path=found.path,
            descriptor=CataloguedSource(
                source=found.source,
                scope=found.scope,
                overlay=found.name,
                commit=found.commit,
                resolved_via=descriptor.resolved_via,
            ),
            default_name=found.name,
        )

    @staticmethod
    def remote_reference(descriptor: RemoteSource) -> RemoteReference:
        return RemoteReference(
            clone_url=descriptor.url,
            owner=descriptor.owner,
            repo=descriptor.repo,
            ref=descriptor.ref,
            subpath=descriptor.subpath,
        )


__all__ = ["Resolution", "SourceResolver", "parse_catalog_reference"]
