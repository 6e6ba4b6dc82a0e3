"""
gitoverlay create command.

SUMMARY: Create a new overlay from files in the target working tree
"""
from __future__ import annotations

import argparse
from pathlib import Path

from gitoverlay.cli import OutputFormatter, add_source_flag, add_standard_flags, build_engine
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Create a new overlay from files in the target working tree"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Name of the new overlay")
    parser.add_argument(
        "--include",
        "-i",
        action="append",
        default=[],
        metavar="PATH",
        help="File or directory to include (repeatable); omit to list candidates",
    )
    parser.add_argument("--scope", help="org/repo scope in the source (default: from the origin remote)")
    parser.add_argument("--output", "-o", help="Write the overlay to this directory instead of a source")
    parser.add_argument("--no-apply", action="store_true", help="Do not apply the new overlay")
    add_source_flag(parser, help_text="Source to create the overlay in (default: highest priority)")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        result = engine.create_overlay(
            args.name,
            args.include,
            source=args.source,
            scope=args.scope,
            output=Path(args.output) if args.output else None,
            apply=not args.no_apply,
        )
    except GitOverlayError as e:
        formatter.error(e, error_code="create_error")
        return 1

    if formatter.json_mode:
        formatter.json_output(result.to_dict())
        return 0

    if not args.include:
        if not result.candidates:
            formatter.text("No untracked or ignored files found.")
            return 0
        formatter.text("Candidate files (pass them with --include):")
        for path in result.candidates:
            formatter.text(f"  {path}")
        return 0

    formatter.text(f"Created overlay '{result.name}' at {result.location}")
    for path in result.files:
        formatter.text(f"  {path}")
    if result.applied is not None:
        formatter.text(f"Applied ({result.applied.placement.value}).")
    return 0
