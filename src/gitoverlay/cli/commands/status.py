"""
gitoverlay status command.

SUMMARY: Show applied overlays and the health of their files
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_standard_flags, build_engine
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Show applied overlays and the health of their files"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", nargs="?", help="Only show this overlay")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        statuses = engine.status(args.name)
        pending = [] if args.name else engine.pending_restore()
    except GitOverlayError as e:
        formatter.error(e, error_code="status_error")
        return 1

    if formatter.json_mode:
        formatter.json_output({
            "overlays": [s.to_dict() for s in statuses],
            "pending_restore": pending,
        })
        return 0

    if not statuses and not pending:
        formatter.text("No overlays applied.")
        return 0

    for status in statuses:
        state = status.state
        health = "ok" if status.healthy else "missing files"
        formatter.text(f"{state.name} [{health}]")
        formatter.text_kv("source", state.source.describe())
        formatter.text_kv("applied", state.applied_at)
        formatter.text_kv("placement", state.placement.value)
        for entry_status in status.entries:
            mark = " " if entry_status.present else "!"
            formatter.text(f"   {mark} {entry_status.entry.target}")
    if pending:
        formatter.text("")
        formatter.text("Needs restore (run 'gitoverlay restore'):")
        for name in pending:
            formatter.text(f"  {name}")
    return 0
