"""
gitoverlay apply command.

SUMMARY: Apply an overlay to the target working tree
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import (
    OutputFormatter,
    add_copy_flag,
    add_dry_run_flag,
    add_force_flag,
    add_source_flag,
    add_standard_flags,
    build_engine,
)
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Apply an overlay to the target working tree"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "reference",
        help="Local directory, git URL (optionally .../tree/<ref>/<path>), org/repo/name, or name",
    )
    parser.add_argument("--name", help="Record the overlay under this name")
    add_copy_flag(parser)
    add_force_flag(parser)
    add_source_flag(parser)
    add_dry_run_flag(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        result = engine.apply(
            args.reference,
            name=args.name,
            copy=args.copy,
            overwrite=args.force,
            source_override=args.source,
            dry_run=args.dry_run,
        )
    except GitOverlayError as e:
        formatter.error(e, error_code="apply_error")
        return 1

    if formatter.json_mode:
        formatter.json_output(result.to_dict())
        return 0

    verb = "Would apply" if result.dry_run else "Applied"
    formatter.text(f"{verb} overlay '{result.name}' from {result.source.describe()} ({result.placement.value})")
    for entry in result.files:
        suffix = "/" if entry.kind.value == "directory" else ""
        formatter.text(f"  {entry.target}{suffix}")
    return 0
