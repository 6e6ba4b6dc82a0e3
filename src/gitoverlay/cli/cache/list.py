"""
gitoverlay cache list command.

SUMMARY: List cached remote clones
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_json_flag
from gitoverlay.core.git.redaction import redact_url_credentials
from gitoverlay.core.sources import RemoteCache
from gitoverlay.core.utils.paths import UserDirs

SUMMARY = "List cached remote clones"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_json_flag(parser)


def _human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    entries = RemoteCache(UserDirs.from_environment().remotes_dir).list()

    if formatter.json_mode:
        formatter.json_output({
            "entries": [{**e.to_dict(), "url": redact_url_credentials(e.url)} for e in entries]
        })
        return 0

    if not entries:
        formatter.text("Cache is empty.")
        return 0
    for entry in entries:
        formatter.text(f"  {entry.owner}/{entry.repo} [{entry.key}]  {entry.commit[:12]}  {_human_size(entry.size_bytes)}")
        formatter.text_kv("fetched", entry.last_fetched or "-", prefix="    ")
    return 0
