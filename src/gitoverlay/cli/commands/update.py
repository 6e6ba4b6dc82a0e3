"""
gitoverlay update command.

SUMMARY: Update overlays from remote repositories to their latest commit
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_dry_run_flag, add_standard_flags, build_engine
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Update overlays from remote repositories to their latest commit"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", nargs="?", help="Overlay to update (all if omitted)")
    add_dry_run_flag(parser)
    add_standard_flags(parser)


def _short(commit: str | None) -> str:
    return commit[:12] if commit else "-"


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        results = engine.update(args.name, dry_run=args.dry_run)
    except GitOverlayError as e:
        formatter.error(e, error_code="update_error")
        return 1

    if formatter.json_mode:
        formatter.json_output({"results": [r.to_dict() for r in results]})
        return 0

    if not results:
        formatter.text("No overlays applied.")
    for result in results:
        if result.action in ("updated", "would-update"):
            formatter.text(f"  {result.name}: {result.action} {_short(result.old_commit)} -> {_short(result.new_commit)}")
        elif result.action == "skipped":
            formatter.text(f"  {result.name}: skipped ({result.reason})")
        else:
            formatter.text(f"  {result.name}: up to date ({_short(result.old_commit)})")
    return 0
