"""
gitoverlay source move command.

SUMMARY: Change a source's priority
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_json_flag
from gitoverlay.core.config import SourceRegistry
from gitoverlay.core.exceptions import GitOverlayError
from gitoverlay.core.utils.paths import UserDirs

SUMMARY = "Change a source's priority"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Source to move")
    parser.add_argument("position", type=int, help="New 1-based position (1 = highest priority)")
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        registry = SourceRegistry(UserDirs.from_environment().config_dir)
        registry.move(args.name, args.position - 1)
        registry.save()
    except GitOverlayError as e:
        formatter.error(e, error_code="source_move_error")
        return 1

    formatter.success(
        {"source": args.name, "order": registry.names()},
        f"Moved '{args.name}' to position {registry.position(args.name) + 1}: {', '.join(registry.names())}",
    )
    return 0
