"""
gitoverlay push command.

SUMMARY: Push committed overlay changes in source clones
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_json_flag, add_source_flag, add_verbose_flag, build_source_manager
from gitoverlay.core.exceptions import GitOverlayError

SUMMARY = "Push committed overlay changes in source clones"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_source_flag(parser, help_text="Only push this source")
    add_json_flag(parser)
    add_verbose_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    pushed: list[str] = []
    try:
        manager = build_source_manager(args)
        for catalog in [manager.get(args.source)] if args.source else manager.sources:
            if catalog.is_cloned() and catalog.has_unpushed():
                catalog.push()
                pushed.append(catalog.name)
    except GitOverlayError as e:
        formatter.error(e, error_code="push_error")
        return 1

    if formatter.json_mode:
        formatter.json_output({"pushed": pushed})
        return 0
    if not pushed:
        formatter.text("Nothing to push.")
    for name in pushed:
        formatter.text(f"Pushed source '{name}'")
    return 0
