"""
gitoverlay add-files command.

SUMMARY: Move untracked files into an applied overlay
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_standard_flags, build_engine
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Move untracked files into an applied overlay"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Applied overlay to extend")
    parser.add_argument("paths", nargs="+", help="Untracked files or directories of the target")
    parser.add_argument("--no-commit", action="store_true", help="Stage in the source clone without committing")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        result = engine.add_files(args.name, args.paths, commit=not args.no_commit)
    except GitOverlayError as e:
        formatter.error(e, error_code="add_files_error")
        return 1

    if formatter.json_mode:
        formatter.json_output(result.to_dict())
        return 0

    formatter.text(f"Added {len(result.added)} entr{'y' if len(result.added) == 1 else 'ies'} to '{result.name}':")
    for entry in result.added:
        formatter.text(f"  {entry.target}")
    if result.committed:
        formatter.text("Committed to source (run 'gitoverlay push' to publish).")
    return 0
