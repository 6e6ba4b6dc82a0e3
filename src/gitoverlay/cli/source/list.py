"""
gitoverlay source list command.

SUMMARY: List sources in priority order
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_json_flag
from gitoverlay.core.config import SourceRegistry
from gitoverlay.core.exceptions import GitOverlayError
from gitoverlay.core.git.redaction import redact_url_credentials
from gitoverlay.core.sources import CatalogSource
from gitoverlay.core.utils.paths import UserDirs

SUMMARY = "List sources in priority order"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        dirs = UserDirs.from_environment()
        sources = SourceRegistry(dirs.config_dir).sources
    except GitOverlayError as e:
        formatter.error(e, error_code="source_list_error")
        return 1

    rows = [
        {
            "position": index,
            "name": entry.name,
            "url": redact_url_credentials(entry.url),
            "cloned": CatalogSource(entry, dirs.sources_dir).is_cloned(),
        }
        for index, entry in enumerate(sources, start=1)
    ]

    if formatter.json_mode:
        formatter.json_output({"sources": rows})
        return 0

    if not rows:
        formatter.text("No sources configured.")
        return 0
    for row in rows:
        cloned = "" if row["cloned"] else " (not cloned)"
        formatter.text(f"  {row['position']}. {row['name']}  {row['url']}{cloned}")
    return 0
