"""
gitoverlay sync command.

SUMMARY: Copy edited overlay files back to their source and publish them
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_dry_run_flag, add_standard_flags, build_engine
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Copy edited overlay files back to their source and publish them"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Overlay to sync")
    parser.add_argument("--message", "-m", help="Commit message")
    parser.add_argument("--no-push", action="store_true", help="Commit in the source clone without pushing")
    add_dry_run_flag(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        result = engine.sync(args.name, dry_run=args.dry_run, push=not args.no_push, message=args.message)
    except GitOverlayError as e:
        formatter.error(e, error_code="sync_error")
        return 1

    if formatter.json_mode:
        formatter.json_output(result.to_dict())
        return 0

    if not result.changed:
        formatter.text(f"Overlay '{result.name}' has no local changes.")
        return 0
    heading = "Would sync" if result.dry_run else "Synced"
    formatter.text(f"{heading} {len(result.changed)} file(s) of '{result.name}':")
    for path in result.changed:
        formatter.text(f"  {path}")
    if result.pushed:
        formatter.text("Pushed.")
    elif result.committed:
        formatter.text("Committed (not pushed).")
    return 0
