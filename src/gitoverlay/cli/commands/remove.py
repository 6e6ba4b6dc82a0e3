"""
gitoverlay remove command.

SUMMARY: Remove an applied overlay
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_standard_flags, build_engine
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Remove an applied overlay"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", nargs="?", help="Overlay to remove")
    parser.add_argument("--all", action="store_true", help="Remove every applied overlay")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    if not args.name and not args.all:
        formatter.error(ValueError("Pass an overlay name or --all"), error_code="usage_error")
        return 2

    try:
        engine = build_engine(args)
        results = engine.remove_all() if args.all else [engine.remove(args.name)]
    except GitOverlayError as e:
        formatter.error(e, error_code="remove_error")
        return 1

    if formatter.json_mode:
        formatter.json_output({"removed": [r.to_dict() for r in results]})
        return 0

    if not results:
        formatter.text("No overlays applied.")
    for result in results:
        formatter.text(f"Removed overlay '{result.name}' ({len(result.removed)} entries)")
        for target in result.missing:
            formatter.text(f"  already gone: {target}")
    return 0
