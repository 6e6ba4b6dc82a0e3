"""Shared CLI utilities."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict

from gitoverlay.core.config import ConfigManager, SourceRegistry
from gitoverlay.core.git.client import GitClient
from gitoverlay.core.overlay.engine import OverlayEngine
from gitoverlay.core.sources import CatalogSource, MultiSourceManager
from gitoverlay.core.utils.paths import UserDirs
from gitoverlay.core.utils.stdlib_logging import configure_logging


def get_repo_root(args: argparse.Namespace) -> Path:
    """Target working tree from ``--repo-root``, else the repository around the cwd.

    Falls back to the cwd itself when it is not inside a repository; the
    engine then reports :class:`NotAGitRepository`.
    """
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).expanduser().resolve()
    cwd = Path.cwd()
    result = GitClient().run(["rev-parse", "--show-toplevel"], cwd=cwd, check=False)
    if result.returncode == 0 and result.stdout.strip():
        return Path(result.stdout.strip()).resolve()
    return cwd.resolve()


def load_settings(args: argparse.Namespace, dirs: UserDirs) -> Dict[str, Any]:
    """Load configuration and set up logging for this invocation."""
    settings = ConfigManager(dirs.config_dir).load_config()
    log_cfg = settings.get("logging") or {}
    level = "DEBUG" if getattr(args, "verbose", False) else str(log_cfg.get("level") or "WARNING")
    log_file = str(log_cfg.get("file") or "").strip()
    configure_logging(level=level, log_path=Path(log_file) if log_file else None)
    return settings


def build_engine(args: argparse.Namespace) -> OverlayEngine:
    dirs = UserDirs.from_environment()
    settings = load_settings(args, dirs)
    return OverlayEngine.create(get_repo_root(args), dirs=dirs, settings=settings)


def build_source_manager(args: argparse.Namespace) -> MultiSourceManager:
    """Catalog sources in priority order, independent of any target tree."""
    dirs = UserDirs.from_environment()
    load_settings(args, dirs)
    registry = SourceRegistry(dirs.config_dir)
    return MultiSourceManager([CatalogSource(entry, dirs.sources_dir) for entry in registry.sources])


__all__ = ["build_engine", "build_source_manager", "get_repo_root", "load_settings"]
