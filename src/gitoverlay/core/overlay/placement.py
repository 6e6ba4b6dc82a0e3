"""Path safety checks and file placement.

Creates symlinks or copies from an overlay source into a target working
tree, never writing outside the working tree.
"""
from __future__ import annotations

import logging
import os
import posixpath
import shutil
from pathlib import Path

from gitoverlay.core.exceptions import UnsafePath
from gitoverlay.core.overlay.models import EntryKind, FileEntry, PlacementKind

logger = logging.getLogger(__name__)


def normalize_relative(rel: str, *, what: str = "path") -> str:
    """Normalize a root-relative POSIX path and reject escapes.

    Raises:
        UnsafePath: If ``rel`` is empty, absolute, home-relative, or climbs
            out of its root (``../outside``).
    """
    raw = str(rel).replace("\\", "/").strip()
    if not raw or raw.startswith(("/", "~")) or (len(raw) > 1 and raw[1] == ":"):
        raise UnsafePath(f"Unsafe {what}: {rel!r}", context={"path": str(rel)})
    norm = posixpath.normpath(raw)
    if norm in (".", "") or norm == ".." or norm.startswith("../"):
        raise UnsafePath(f"Unsafe {what}: {rel!r} escapes its root", context={"path": str(rel)})
    return norm


def resolve_within(root: Path, rel: str, *, what: str = "path") -> Path:
    """Return ``root / rel`` after checking it stays inside ``root``.

    The final component is not resolved, so an existing symlink placed by an
    earlier apply (pointing outside the tree) is still addressable. Parent
    directories are resolved: a symlinked parent that leads outside ``root``
    is rejected.
    """
    norm = normalize_relative(rel, what=what)
    root_resolved = Path(root).resolve()
    candidate = root_resolved / norm
    if not candidate.parent.resolve().is_relative_to(root_resolved):
        raise UnsafePath(
            f"Unsafe {what}: {rel!r} resolves outside {root_resolved}",
            context={"path": str(rel), "root": str(root_resolved)},
        )
    return candidate


def effective_placement(copy: bool) -> PlacementKind:
    """Copy when asked to, or when the platform cannot be trusted with symlinks."""
    if copy or os.name == "nt":
        return PlacementKind.COPY
    return PlacementKind.SYMLINK


def remove_path(path: Path) -> bool:
    """Delete a file, symlink or directory tree. Returns False if nothing existed."""
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        shutil.rmtree(path)
        return True
    return False


class FilePlacer:
    """Places and removes overlay entries inside one target working tree."""

    def __init__(self, target_root: Path) -> None:
        self.target_root = Path(target_root).resolve()

    def place(self, source_dir: Path, entry: FileEntry, *, replace_existing: bool = False) -> Path:
        """Place ``entry`` from ``source_dir`` into the target tree.

        Args:
            source_dir: Overlay source directory
            entry: Entry to place
            replace_existing: Remove whatever occupies the target path first

        Returns:
            The absolute target path.

        Raises:
            UnsafePath: If either side escapes its root.
            FileNotFoundError: If the source path is missing.
            FileExistsError: If the target exists and ``replace_existing`` is off.
        """
        source_root = Path(source_dir).resolve()
        source = resolve_within(source_root, entry.source, what="source path")
        target = resolve_within(self.target_root, entry.target, what="target path")

        if not (source.exists() or source.is_symlink()):
            raise FileNotFoundError(f"Overlay source missing: {source}")

        if target.exists() or target.is_symlink():
            if not replace_existing:
                raise FileExistsError(f"Target already exists: {target}")
            remove_path(target)

        target.parent.mkdir(parents=True, exist_ok=True)

        if entry.placement is PlacementKind.SYMLINK:
            target.symlink_to(source, target_is_directory=source.is_dir())
        elif entry.kind is EntryKind.DIRECTORY or source.is_dir():
            shutil.copytree(source, target, symlinks=True)
        else:
            shutil.copy2(source, target)

        logger.debug("placed %s (%s) -> %s", entry.source, entry.placement.value, target)
        return target

    def remove(self, entry: FileEntry) -> bool:
        """Remove a placed entry and prune emptied parents.

        Returns False if the entry was already gone.
        """
        target = resolve_within(self.target_root, entry.target, what="target path")
        removed = remove_path(target)
        self.prune_empty_parents(target)
        return removed

    def prune_empty_parents(self, path: Path) -> None:
        """Remove empty directories above ``path``, stopping at the target root."""
        current = path.parent
        while current != self.target_root and current.is_relative_to(self.target_root):
            try:
                current.rmdir()
            except OSError:
                # Not empty (or already gone): stop climbing.
                break
            current = current.parent


__all__ = [
    "FilePlacer",
    "effective_placement",
    "normalize_relative",
    "remove_path",
    "resolve_within",
]
