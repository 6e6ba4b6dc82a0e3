"""
gitoverlay list command.

SUMMARY: List overlays available from configured sources
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_json_flag, add_source_flag, add_verbose_flag, build_source_manager
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "List overlays available from configured sources"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_source_flag(parser, help_text="Only list this source")
    add_json_flag(parser)
    add_verbose_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manager = build_source_manager(args)
        for catalog in [manager.get(args.source)] if args.source else manager.sources:
            catalog.ensure_cloned()
        overlays = manager.list_overlays(args.source)
    except GitOverlayError as e:
        formatter.error(e, error_code="list_error")
        return 1

    if formatter.json_mode:
        formatter.json_output({
            "overlays": [
                {"source": o.source, "scope": o.scope, "name": o.name, "reference": o.reference}
                for o in overlays
            ]
        })
        return 0

    if not manager.sources:
        formatter.text("No sources configured. Add one with 'gitoverlay source add <name> <url>'.")
        return 0
    if not overlays:
        formatter.text("No overlays found.")
        return 0
    current = None
    for overlay in overlays:
        if overlay.source != current:
            current = overlay.source
            formatter.text(f"{current}:")
        formatter.text(f"  {overlay.reference}")
    return 0
