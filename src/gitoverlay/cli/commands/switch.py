"""
gitoverlay switch command.

SUMMARY: Remove all applied overlays and apply another one
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import (
    OutputFormatter,
    add_copy_flag,
    add_force_flag,
    add_source_flag,
    add_standard_flags,
    build_engine,
)
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Remove all applied overlays and apply another one"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("reference", help="Overlay to apply after removing the current ones")
    parser.add_argument("--name", help="Record the overlay under this name")
    add_copy_flag(parser)
    add_force_flag(parser)
    add_source_flag(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        engine = build_engine(args)
        removed, applied = engine.switch(
            args.reference,
            name=args.name,
            copy=args.copy,
            overwrite=args.force,
            source_override=args.source,
        )
    except GitOverlayError as e:
        formatter.error(e, error_code="switch_error")
        return 1

    if formatter.json_mode:
        formatter.json_output({
            "removed": [r.to_dict() for r in removed],
            "applied": applied.to_dict(),
        })
        return 0

    for result in removed:
        formatter.text(f"Removed overlay '{result.name}'")
    formatter.text(f"Applied overlay '{applied.name}' from {applied.source.describe()} ({len(applied.files)} entries)")
    return 0
