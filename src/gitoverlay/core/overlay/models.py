"""Overlay data models.

Immutable dataclasses for applied overlays, their file entries and the
descriptors recording where their files came from.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from gitoverlay.core.exceptions import InvalidOverlayName, StateCorrupt
from gitoverlay.core.git.excludes import STATE_SECTION


class PlacementKind(str, Enum):
    """How a file lands in the target: a symlink to the source or a copy."""

    SYMLINK = "symlink"
    COPY = "copy"


class EntryKind(str, Enum):
    """A single file, or a directory placed as one unit."""

    FILE = "file"
    DIRECTORY = "directory"


class ResolvedVia(str, Enum):
    DIRECT = "direct"
    UPSTREAM = "upstream"


_NAME_RE = re.compile(r"[^a-z0-9_-]")


def normalize_overlay_name(raw: str) -> str:
    """Normalize a user supplied overlay name.

    Lowercases, turns spaces into ``-`` and drops anything outside
    ``[a-z0-9_-]``.

    >>> normalize_overlay_name("My AI Config!")
    'my-ai-config'

    Raises:
        InvalidOverlayName: If nothing is left, or the name is reserved.
    """
    name = _NAME_RE.sub("", str(raw).strip().lower().replace(" ", "-"))
    if not name:
        raise InvalidOverlayName(
            f"Overlay name '{raw}' is empty after normalization",
            context={"name": raw},
        )
    if name == STATE_SECTION:
        raise InvalidOverlayName(f"Overlay name '{name}' is reserved", context={"name": raw})
    return name


@dataclass(frozen=True, slots=True)
class FileEntry:
    """One managed path.

    Attributes:
        source: Path relative to the overlay source directory
        target: Path relative to the target working tree
        placement: Symlink or copy
        kind: Single file, or a directory placed as a unit
    """

    source: str
    target: str
    placement: PlacementKind = PlacementKind.SYMLINK
    kind: EntryKind = EntryKind.FILE

    @property
    def exclude_pattern(self) -> str:
        """Anchored pattern hiding this entry from ``git status``.

        No trailing slash for directory units: git sees a symlinked directory
        as a file, and ``/dir/`` would only match a real directory.
        """
        return "/" + self.target.strip("/")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileEntry:
        return cls(
            source=str(data["source"]),
            target=str(data["target"]),
            placement=PlacementKind(data.get("placement", PlacementKind.SYMLINK.value)),
            kind=EntryKind(data.get("kind", EntryKind.FILE.value)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "placement": self.placement.value,
            "kind": self.kind.value,
        }


@dataclass(frozen=True, slots=True)
class LocalSource:
    """Overlay files read from a directory on this machine."""

    path: str

    type = "local"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "path": self.path}

    def describe(self) -> str:
        return self.path


@dataclass(frozen=True, slots=True)
class RemoteSource:
    """Overlay files read from a cached clone of a remote repository."""

    url: str
    owner: str
    repo: str
    commit: str
    ref: Optional[str] = None
    subpath: Optional[str] = None
    cached_at: str = ""

    type = "remote"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "url": self.url,
            "owner": self.owner,
            "repo": self.repo,
            "ref": self.ref,
            "subpath": self.subpath,
            "commit": self.commit,
            "cached_at": self.cached_at,
        }

    def describe(self) -> str:
        text = f"{self.owner}/{self.repo}"
        if self.subpath:
            text += f"/{self.subpath}"
        if self.ref:
            text += f"@{self.ref}"
        return text


@dataclass(frozen=True, slots=True)
class CataloguedSource:
    """Overlay files read from ``<scope>/<overlay>`` in a registered source."""

    source: str
    scope: str
    overlay: str
    commit: str
    resolved_via: ResolvedVia = ResolvedVia.DIRECT

    type = "catalogued"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "source": self.source,
            "scope": self.scope,
            "overlay": self.overlay,
            "commit": self.commit,
            "resolved_via": self.resolved_via.value,
        }

    def describe(self) -> str:
        text = f"{self.source}:{self.scope}/{self.overlay}"
        if self.resolved_via is ResolvedVia.UPSTREAM:
            text += " (via upstream)"
        return text


SourceDescriptor = Union[LocalSource, RemoteSource, CataloguedSource]


def source_from_dict(data: dict[str, Any]) -> SourceDescriptor:
    """Rebuild a source descriptor from its serialized form.

    Raises:
        StateCorrupt: If the type tag is missing or unknown.
    """
    kind = data.get("type")
    if kind == LocalSource.type:
        return LocalSource(path=str(data["path"]))
    if kind == RemoteSource.type:
        return RemoteSource(
            url=str(data["url"]),
            owner=str(data["owner"]),
            repo=str(data["repo"]),
            commit=str(data["commit"]),
            ref=data.get("ref"),
            subpath=data.get("subpath"),
            cached_at=str(data.get("cached_at") or ""),
        )
    if kind == CataloguedSource.type:
        return CataloguedSource(
            source=str(data["source"]),
            scope=str(data["scope"]),
            overlay=str(data["overlay"]),
            commit=str(data["commit"]),
            resolved_via=ResolvedVia(data.get("resolved_via", ResolvedVia.DIRECT.value)),
        )
    raise StateCorrupt(f"Unknown source type: {kind!r}", context={"source": data})


@dataclass(frozen=True, slots=True)
class OverlayState:
    """A persisted applied overlay."""

    name: str
    source: SourceDescriptor
    applied_at: str
    placement: PlacementKind = PlacementKind.SYMLINK
    files: tuple[FileEntry, ...] = field(default_factory=tuple)

    @property
    def targets(self) -> list[str]:
        return [f.target for f in self.files]

    @property
    def exclude_patterns(self) -> list[str]:
        return [f.exclude_pattern for f in self.files]

    def with_files(self, files: list[FileEntry]) -> OverlayState:
        return replace(self, files=tuple(files))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OverlayState:
        return cls(
            name=str(data["name"]),
            source=source_from_dict(dict(data["source"])),
            applied_at=str(data["applied_at"]),
            placement=PlacementKind(data.get("placement", PlacementKind.SYMLINK.value)),
            files=tuple(FileEntry.from_dict(f) for f in data.get("files") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "source": self.source.to_dict(),
            "applied_at": self.applied_at,
            "placement": self.placement.value,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass(frozen=True, slots=True)
class OverlayConfig:
    """Options read from ``gitoverlay.yaml`` inside an overlay source."""

    name: Optional[str] = None
    description: Optional[str] = None
    mappings: dict[str, str] = field(default_factory=dict)
    directories: tuple[str, ...] = field(default_factory=tuple)

    def target_for(self, source_rel: str) -> str:
        return self.mappings.get(source_rel, source_rel)


__all__ = [
    "PlacementKind",
    "EntryKind",
    "ResolvedVia",
    "FileEntry",
    "LocalSource",
    "RemoteSource",
    "CataloguedSource",
    "SourceDescriptor",
    "source_from_dict",
    "OverlayState",
    "OverlayConfig",
    "normalize_overlay_name",
]
