"""Conflict detection for a proposed overlay.

Runs over the complete proposed entry set before anything is written: either
every entry passes, or the operation stops with nothing placed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from gitoverlay.core.exceptions import OverlayConflict, PathCollision, UnsafePath
from gitoverlay.core.overlay.models import FileEntry, OverlayState
from gitoverlay.core.overlay.placement import resolve_within


def _overlaps(a: FileEntry, b: FileEntry) -> bool:
    """True if two entries claim the same path, or one target sits beneath the other.

    Entry kind does not matter: replacing a file entry ``conf`` would delete
    whatever another overlay placed under ``conf/``.
    """
    if a.target == b.target:
        return True
    return b.target.startswith(a.target + "/") or a.target.startswith(b.target + "/")


@dataclass
class ConflictReport:
    """Outcome of a passed check.

    Attributes:
        replace: Target paths occupied on disk that placement must clear first
            (left over from this overlay's previous application, or confirmed
            with ``overwrite``).
    """

    replace: set[str] = field(default_factory=set)


class ConflictDetector:
    """Validates a proposed entry set against the disk and other overlays."""

    def __init__(self, target_root: Path, *, reserved: Iterable[str] = (".git",)) -> None:
        self.target_root = Path(target_root).resolve()
        self.reserved = frozenset(reserved)

    def check(
        self,
        name: str,
        proposed: list[FileEntry],
        applied: Iterable[OverlayState],
        *,
        previous: Optional[OverlayState] = None,
        overwrite: bool = False,
    ) -> ConflictReport:
        """Check ``proposed`` entries for overlay ``name``.

        Args:
            name: Overlay being applied
            proposed: Every entry the overlay would place
            applied: Currently applied overlays; a record named ``name`` is ignored
            previous: This overlay's earlier state, whose paths may be replaced
            overwrite: Explicit confirmation to replace unmanaged files

        Raises:
            UnsafePath: If a target escapes the working tree, or lands in a
                reserved top-level directory (``.git``, the state directory).
            OverlayConflict: If a path is owned by another overlay, or mapped twice.
            PathCollision: If a path is occupied by unmanaged content.
        """
        for entry in proposed:
            head = entry.target.split("/", 1)[0]
            if head in self.reserved:
                raise UnsafePath(
                    f"Overlay '{name}' may not place '{entry.target}' inside reserved directory '{head}'",
                    context={"overlay": name, "path": entry.target},
                )

        seen: dict[str, FileEntry] = {}
        for entry in proposed:
            for other in seen.values():
                if _overlaps(entry, other):
                    raise OverlayConflict(
                        f"Overlay '{name}' maps two sources onto '{entry.target}' "
                        f"('{other.source}' and '{entry.source}')",
                        context={"overlay": name, "path": entry.target},
                    )
            seen[entry.target] = entry

        for state in applied:
            if state.name == name:
                continue
            for owned in state.files:
                for entry in proposed:
                    if _overlaps(entry, owned):
                        raise OverlayConflict(
                            f"'{entry.target}' is already managed by overlay '{state.name}'",
                            context={"overlay": name, "owner": state.name, "path": entry.target},
                        )

        previously_owned = set(previous.targets) if previous is not None else set()
        report = ConflictReport()
        for entry in proposed:
            target = resolve_within(self.target_root, entry.target, what="target path")
            blocker = self._blocking_ancestor(entry.target)
            if blocker is not None:
                raise PathCollision(
                    f"Cannot place '{entry.target}': '{blocker}' exists and is not a directory",
                    context={"overlay": name, "path": blocker},
                )
            if not (target.exists() or target.is_symlink()):
                continue
            if entry.target in previously_owned or overwrite:
                report.replace.add(entry.target)
                continue
            raise PathCollision(
                f"'{entry.target}' already exists and is not managed by gitoverlay "
                "(use --force to overwrite)",
                context={"overlay": name, "path": entry.target},
            )
        return report

    def _blocking_ancestor(self, rel: str) -> Optional[str]:
        parts = rel.split("/")[:-1]
        current = self.target_root
        walked: list[str] = []
        for part in parts:
            current = current / part
            walked.append(part)
            if current.is_dir():
                continue
            if current.exists() or current.is_symlink():
                return "/".join(walked)
            return None
        return None


__all__ = ["ConflictDetector", "ConflictReport"]
