"""Enumeration of the files an overlay source contributes.

An overlay source directory may carry a ``gitoverlay.yaml``::

    overlay:
      name: ai-config
      description: Claude and Cursor settings
    mappings:
      claude.md: CLAUDE.md          # source -> target rename
    directories:
      - .claude                     # placed as one unit, not walked

The config file and anything under ``.git/`` are never part of the overlay.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

import yaml

from gitoverlay.core.exceptions import SourceConfigError
from gitoverlay.core.overlay.models import EntryKind, FileEntry, OverlayConfig, PlacementKind
from gitoverlay.core.overlay.placement import normalize_relative, resolve_within
from gitoverlay.core.schemas import SchemaValidationError, validate_payload
from gitoverlay.core.utils.io import read_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "gitoverlay.yaml"


def load_overlay_config(source_dir: Path, filename: str = DEFAULT_CONFIG_FILE) -> OverlayConfig:
    """Read the per-overlay config file, or return defaults when absent.

    Raises:
        SourceConfigError: If the file is not valid YAML or fails the schema.
    """
    path = Path(source_dir) / filename
    if not path.is_file():
        return OverlayConfig()
    try:
        data = read_yaml(path, default={}, raise_on_error=True)
        validate_payload(data, "overlay-config")
    except SchemaValidationError as exc:
        raise SourceConfigError(f"Invalid overlay config {path}: {exc}", context={"path": str(path)}) from exc
    except (OSError, yaml.YAMLError) as exc:
        raise SourceConfigError(f"Cannot read overlay config {path}: {exc}", context={"path": str(path)}) from exc

    section = data.get("overlay") or {}
    return OverlayConfig(
        name=section.get("name"),
        description=section.get("description"),
        mappings=dict(data.get("mappings") or {}),
        directories=tuple(data.get("directories") or ()),
    )


def _is_under(rel: str, parents: Iterable[str]) -> bool:
    return any(rel == p or rel.startswith(p + "/") for p in parents)


def enumerate_entries(
    source_dir: Path,
    config: OverlayConfig,
    placement: PlacementKind,
    *,
    config_file: str = DEFAULT_CONFIG_FILE,
) -> list[FileEntry]:
    """List the entries an overlay would place, sorted by target path.

    Directory units short-circuit the walk: their contents are covered by the
    single directory entry.

    Raises:
        UnsafePath: If a source path, mapping or directory escapes its root.
    """
    root = Path(source_dir).resolve()
    entries: list[FileEntry] = []

    units: list[str] = []
    for raw in config.directories:
        rel = normalize_relative(raw.rstrip("/"), what="directory")
        if not resolve_within(root, rel, what="directory").is_dir():
            logger.warning("configured directory '%s' not found in %s; skipping", rel, root)
            continue
        units.append(rel)
        target = normalize_relative(config.target_for(rel), what="target path")
        entries.append(FileEntry(source=rel, target=target, placement=placement, kind=EntryKind.DIRECTORY))

    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        rel_dir = "" if rel_dir == "." else rel_dir
        kept = []
        for d in sorted(dirnames):
            rel = f"{rel_dir}/{d}" if rel_dir else d
            if d == ".git" or rel in units:
                continue
            kept.append(d)
        dirnames[:] = kept

        for fname in sorted(filenames):
            rel = f"{rel_dir}/{fname}" if rel_dir else fname
            if fname == ".git" or rel == config_file or _is_under(rel, units):
                continue
            target = normalize_relative(config.target_for(rel), what="target path")
            entries.append(FileEntry(source=rel, target=target, placement=placement, kind=EntryKind.FILE))

    unused = set(config.mappings) - {e.source for e in entries}
    for src in sorted(unused):
        logger.warning("mapping for '%s' matches no file in %s", src, root)

    entries.sort(key=lambda e: e.target)
    return entries


__all__ = ["DEFAULT_CONFIG_FILE", "enumerate_entries", "load_overlay_config"]
