"""
gitoverlay cache remove command.

SUMMARY: Drop the cached clones of one repository
"""
from __future__ import annotations

import argparse

from gitoverlay.cli import OutputFormatter, add_json_flag
from gitoverlay.core.exceptions import SourceNotFound
from gitoverlay.core.sources import RemoteCache
from gitoverlay.core.utils.paths import UserDirs

SUMMARY = "Drop the cached clones of one repository"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("repository", help="owner/repo")
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    owner, _, repo = args.repository.strip("/").partition("/")
    if not owner or not repo or "/" in repo:
        formatter.error(ValueError(f"Expected owner/repo, got '{args.repository}'"), error_code="usage_error")
        return 2

    cache = RemoteCache(UserDirs.from_environment().remotes_dir)
    if not cache.remove(owner, repo):
        error = SourceNotFound(f"No cached clones of {owner}/{repo}", context={"repository": f"{owner}/{repo}"})
        formatter.error(error, error_code="cache_remove_error")
        return 1

    formatter.success({"repository": f"{owner}/{repo}"}, f"Removed cached clones of {owner}/{repo}")
    return 0
