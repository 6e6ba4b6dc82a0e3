"""
gitoverlay source add command.

SUMMARY: Register an overlay source
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_json_flag, add_verbose_flag, load_settings
from gitoverlay.core.config import SourceRegistry
from gitoverlay.core.exceptions import GitOverlayError
from gitoverlay.core.git.redaction import redact_url_credentials
from gitoverlay.core.sources import CatalogSource
from gitoverlay.core.utils.paths import UserDirs

SUMMARY = "Register an overlay source"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Source name (letters, digits, '-', '_')")
    parser.add_argument("url", help="Git URL of the source repository")
    parser.add_argument(
        "--position",
        type=int,
        help="1-based priority position (default: last, lowest priority)",
    )
    parser.add_argument("--no-clone", action="store_true", help="Register without cloning now")
    add_json_flag(parser)
    add_verbose_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        dirs = UserDirs.from_environment()
        load_settings(args, dirs)
        registry = SourceRegistry(dirs.config_dir)
        position = args.position - 1 if args.position is not None else None
        entry = registry.add(args.name, args.url, position=position)
        if not args.no_clone:
            CatalogSource(entry, dirs.sources_dir).ensure_cloned()
        registry.save()
    except GitOverlayError as e:
        formatter.error(e, error_code="source_add_error")
        return 1

    formatter.success(
        {
            "source": entry.name,
            "url": redact_url_credentials(entry.url),
            "position": registry.position(entry.name) + 1,
            "cloned": not args.no_clone,
        },
        f"Added source '{entry.name}' at position {registry.position(entry.name) + 1}",
    )
    return 0
