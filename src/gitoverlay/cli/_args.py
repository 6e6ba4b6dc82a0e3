"""Common CLI argument registration helpers."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add ``--repo-root`` (alias ``--target``) selecting the target working tree."""
    parser.add_argument(
        "--repo-root",
        "--target",
        dest="repo_root",
        type=str,
        help="Target git working tree (default: the repository containing the current directory)",
    )


def add_force_flag(parser: argparse.ArgumentParser, help_text: str = "Overwrite existing unmanaged files") -> None:
    parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help=help_text,
    )


def add_dry_run_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Show what would be done without making changes",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging on stderr",
    )


def add_copy_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--copy",
        action="store_true",
        help="Copy files instead of symlinking them",
    )


def add_source_flag(parser: argparse.ArgumentParser, help_text: str = "Only use this configured source") -> None:
    parser.add_argument(
        "--from",
        "--source",
        dest="source",
        metavar="SOURCE",
        help=help_text,
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add the flags every target-bound command takes: --json, --repo-root, --verbose."""
    add_json_flag(parser)
    add_repo_root_flag(parser)
    add_verbose_flag(parser)


__all__ = [
    "add_copy_flag",
    "add_dry_run_flag",
    "add_force_flag",
    "add_json_flag",
    "add_repo_root_flag",
    "add_source_flag",
    "add_standard_flags",
    "add_verbose_flag",
]
