"""
gitoverlay source remove command.

SUMMARY: Unregister a source
"""
from __future__ import annotations

import argparse
import shutil

from gitoverlay.cli import OutputFormatter, add_json_flag
from gitoverlay.core.config import SourceRegistry
from gitoverlay.core.exceptions import GitOverlayError
from gitoverlay.core.sources import CatalogSource
from gitoverlay.core.utils.paths import UserDirs

SUMMARY = "Unregister a source"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Source to remove")
    parser.add_argument("--keep-clone", action="store_true", help="Leave the local clone on disk")
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        dirs = UserDirs.from_environment()
        registry = SourceRegistry(dirs.config_dir)
        entry = registry.remove(args.name)
        registry.save()
    except GitOverlayError as e:
        formatter.error(e, error_code="source_remove_error")
        return 1

    clone = CatalogSource(entry, dirs.sources_dir).path
    deleted = False
    if not args.keep_clone and clone.is_dir():
        shutil.rmtree(clone)
        deleted = True

    formatter.success(
        {"source": entry.name, "clone_deleted": deleted},
        f"Removed source '{entry.name}'",
    )
    return 0
