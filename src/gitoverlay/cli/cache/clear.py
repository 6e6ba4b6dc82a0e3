"""
gitoverlay cache clear command.

SUMMARY: Drop every cached remote clone
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_json_flag
from gitoverlay.core.sources import RemoteCache
from gitoverlay.core.utils.paths import UserDirs

SUMMARY = "Drop every cached remote clone"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    count = RemoteCache(UserDirs.from_environment().remotes_dir).clear()
    formatter.success({"removed": count}, f"Removed {count} cached clone(s)")
    return 0
