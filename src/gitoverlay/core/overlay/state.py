"""Overlay state persistence.

Every applied overlay is recorded twice:

- in-tree: ``<target>/.gitoverlay/overlays/<name>.yaml``
- external: ``<data_dir>/applied/<target-key>/<name>.yaml``

The external copy is keyed by a hash of the target's canonical path, so it
survives ``git clean -fdx`` wiping the in-tree copy. An external record with
no in-tree counterpart means the overlay needs ``restore``.
"""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Optional

import yaml

from gitoverlay.core.exceptions import OverlayNotApplied, StateCorrupt, StateWriteError
from gitoverlay.core.overlay.models import OverlayState
from gitoverlay.core.schemas import SchemaValidationError, validate_payload
from gitoverlay.core.utils.io import read_yaml, write_text, write_yaml
from gitoverlay.core.utils.time import utc_timestamp

logger = logging.getLogger(__name__)

STATE_VERSION = 1
TARGET_MARKER = ".target_path"
RECORD_SUFFIX = ".yaml"


def target_key(target_root: Path) -> str:
    """Stable identity of a working tree: hash of its canonical path."""
    canonical = str(Path(target_root).resolve())
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _read_record(path: Path) -> OverlayState:
    try:
        data = read_yaml(path, default=None, raise_on_error=True)
    except (OSError, yaml.YAMLError) as exc:
        raise StateCorrupt(f"Cannot parse state record {path}: {exc}", context={"path": str(path)}) from exc
    try:
        validate_payload(data, "state")
        return OverlayState.from_dict(data)
    except (SchemaValidationError, KeyError, TypeError, ValueError) as exc:
        raise StateCorrupt(f"Invalid state record {path}: {exc}", context={"path": str(path)}) from exc


class OverlayStateStore:
    """Reads and writes overlay state records for one target working tree."""

    def __init__(self, target_root: Path, applied_dir: Path, *, state_dir_name: str = ".gitoverlay") -> None:
        self.target_root = Path(target_root).resolve()
        self.state_dir = self.target_root / state_dir_name
        self.overlays_dir = self.state_dir / "overlays"
        self.external_dir = Path(applied_dir) / target_key(self.target_root)

    def _in_tree_path(self, name: str) -> Path:
        return self.overlays_dir / f"{name}{RECORD_SUFFIX}"

    def _external_path(self, name: str) -> Path:
        return self.external_dir / f"{name}{RECORD_SUFFIX}"

    # ------------------------------------------------------------------ write

    def save(self, state: OverlayState) -> None:
        """Persist ``state``: external copy first, then in-tree.

        Raises:
            StateWriteError: If either copy cannot be written. A failed external
                write leaves the in-tree copy untouched.
        """
        payload = state.to_dict()
        validate_payload(payload, "state")

        try:
            write_yaml(self._external_path(state.name), payload)
            marker = self.external_dir / TARGET_MARKER
            if not marker.exists():
                write_text(marker, str(self.target_root) + "\n")
        except OSError as exc:
            raise StateWriteError(
                f"Failed to write external state for '{state.name}': {exc}",
                context={"overlay": state.name, "path": str(self.external_dir)},
            ) from exc

        try:
            meta = self.state_dir / "meta.yaml"
            if not meta.exists():
                write_yaml(meta, {"version": STATE_VERSION, "created_at": utc_timestamp()})
            write_yaml(self._in_tree_path(state.name), payload)
        except OSError as exc:
            raise StateWriteError(
                f"Failed to write state for '{state.name}': {exc}",
                context={"overlay": state.name, "path": str(self.overlays_dir)},
            ) from exc
        logger.debug("saved state for overlay '%s'", state.name)

    def delete(self, name: str) -> None:
        """Delete both copies of ``name``. Missing copies are ignored."""
        for path in (self._in_tree_path(name), self._external_path(name)):
            path.unlink(missing_ok=True)

        if self.external_dir.is_dir():
            leftovers = [p for p in self.external_dir.iterdir() if p.name != TARGET_MARKER]
            if not leftovers:
                (self.external_dir / TARGET_MARKER).unlink(missing_ok=True)
                self.external_dir.rmdir()

        if self.state_dir.is_dir() and not self.names():
            for child in sorted(self.state_dir.rglob("*"), reverse=True):
                if child.is_dir():
                    child.rmdir()
                else:
                    child.unlink()
            self.state_dir.rmdir()
        logger.debug("deleted state for overlay '%s'", name)

    # ------------------------------------------------------------------- read

    def names(self) -> list[str]:
        if not self.overlays_dir.is_dir():
            return []
        return sorted(p.stem for p in self.overlays_dir.glob(f"*{RECORD_SUFFIX}"))

    def external_names(self) -> list[str]:
        if not self.external_dir.is_dir():
            return []
        return sorted(p.stem for p in self.external_dir.glob(f"*{RECORD_SUFFIX}"))

    def exists(self, name: str) -> bool:
        return self._in_tree_path(name).is_file()

    def get(self, name: str) -> Optional[OverlayState]:
        path = self._in_tree_path(name)
        return _read_record(path) if path.is_file() else None

    def load(self, name: str) -> OverlayState:
        """Load the in-tree record for ``name``.

        Raises:
            OverlayNotApplied: If no record exists.
            StateCorrupt: If the record cannot be parsed.
        """
        state = self.get(name)
        if state is None:
            raise OverlayNotApplied(f"Overlay '{name}' is not applied", context={"overlay": name})
        return state

    def load_external(self, name: str) -> Optional[OverlayState]:
        path = self._external_path(name)
        return _read_record(path) if path.is_file() else None

    def list(self) -> list[OverlayState]:
        return [self.load(n) for n in self.names()]

    def pending_restore(self) -> list[str]:
        """Overlays with an external record but no in-tree record."""
        present = set(self.names())
        return [n for n in self.external_names() if n not in present]


__all__ = ["OverlayStateStore", "STATE_VERSION", "target_key"]
