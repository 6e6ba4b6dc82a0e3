"""Result objects returned by the overlay engine.

Each result is plain data with ``to_dict`` for ``--json`` output.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from gitoverlay.core.overlay.models import FileEntry, OverlayState, PlacementKind, SourceDescriptor


@dataclass(frozen=True, slots=True)
class ApplyResult:
    name: str
    source: SourceDescriptor
    placement: PlacementKind
    files: tuple[FileEntry, ...]
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "overlay": self.name,
            "source": self.source.to_dict(),
            "placement": self.placement.value,
            "files": [f.to_dict() for f in self.files],
            "dry_run": self.dry_run,
        }


@dataclass(frozen=True, slots=True)
class RemoveResult:
    name: str
    removed: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"overlay": self.name, "removed": list(self.removed), "missing": list(self.missing)}


@dataclass(frozen=True, slots=True)
class EntryStatus:
    entry: FileEntry
    present: bool


@dataclass(frozen=True, slots=True)
class OverlayStatus:
    state: OverlayState
    entries: tuple[EntryStatus, ...]

    @property
    def healthy(self) -> bool:
        return all(e.present for e in self.entries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overlay": self.state.name,
            "source": self.state.source.to_dict(),
            "applied_at": self.state.applied_at,
            "placement": self.state.placement.value,
            "files": [{**e.entry.to_dict(), "present": e.present} for e in self.entries],
        }


@dataclass(frozen=True, slots=True)
class RestoreResult:
    """Outcome for one recorded overlay.

    ``action`` is one of ``present`` (nothing to do), ``restored``,
    ``would-restore`` (dry run) or ``failed``.
    """

    name: str
    action: str
    files: tuple[str, ...] = ()
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"overlay": self.name, "action": self.action, "files": list(self.files), "error": self.error}


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """``action`` is ``updated``, ``would-update``, ``up-to-date`` or ``skipped``."""

    name: str
    action: str
    old_commit: Optional[str] = None
    new_commit: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "overlay": self.name,
            "action": self.action,
            "old_commit": self.old_commit,
            "new_commit": self.new_commit,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class SyncResult:
    name: str
    changed: tuple[str, ...] = ()
    committed: bool = False
    pushed: bool = False
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "overlay": self.name,
            "changed": list(self.changed),
            "committed": self.committed,
            "pushed": self.pushed,
            "dry_run": self.dry_run,
        }


@dataclass(frozen=True, slots=True)
class AddFilesResult:
    name: str
    added: tuple[FileEntry, ...]
    committed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"overlay": self.name, "added": [f.to_dict() for f in self.added], "committed": self.committed}


@dataclass(frozen=True, slots=True)
class CreateResult:
    name: str
    location: str
    files: tuple[str, ...] = ()
    committed: bool = False
    applied: Optional[ApplyResult] = None
    candidates: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "overlay": self.name,
            "location": self.location,
            "files": list(self.files),
            "committed": self.committed,
            "applied": self.applied.to_dict() if self.applied else None,
            "candidates": list(self.candidates),
        }


__all__ = [
    "AddFilesResult",
    "ApplyResult",
    "CreateResult",
    "EntryStatus",
    "OverlayStatus",
    "RemoveResult",
    "RestoreResult",
    "SyncResult",
    "UpdateResult",
]
