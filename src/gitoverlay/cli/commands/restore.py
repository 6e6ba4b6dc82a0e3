"""
gitoverlay restore command.

SUMMARY: Re-apply overlays lost from the working tree (e.g. after git clean)
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_dry_run_flag, add_standard_flags, build_engine
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Re-apply overlays lost from the working tree (e.g. after git clean)"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_dry_run_flag(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        results = engine.restore(dry_run=args.dry_run)
    except GitOverlayError as e:
        formatter.error(e, error_code="restore_error")
        return 1

    failed = [r for r in results if r.action == "failed"]
    if formatter.json_mode:
        formatter.json_output({"results": [r.to_dict() for r in results]})
        return 1 if failed else 0

    if not results:
        formatter.text("Nothing to restore.")
        return 0
    for result in results:
        formatter.text(f"  {result.name}: {result.action}")
        if result.error:
            formatter.text(f"    Error: {result.error}")
    return 1 if failed else 0
