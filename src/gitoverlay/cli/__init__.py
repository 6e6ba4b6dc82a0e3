"""
gitoverlay CLI package.

Commands are discovered automatically: top-level commands live in
``commands/``, grouped ones in domain folders (``source/``, ``cache/``).

Helpers for building commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Repository root detection and engine construction
"""
from ._output import OutputFormatter
from ._args import (
    add_copy_flag,
    add_dry_run_flag,
    add_force_flag,
    add_json_flag,
    add_repo_root_flag,
    add_source_flag,
    add_standard_flags,
    add_verbose_flag,
)
from ._utils import build_engine, build_source_manager, get_repo_root, load_settings

__all__ = [
    # Output formatting
    "OutputFormatter",
    # Argument helpers
    "add_copy_flag",
    "add_dry_run_flag",
    "add_force_flag",
    "add_json_flag",
    "add_repo_root_flag",
    "add_source_flag",
    "add_standard_flags",
    "add_verbose_flag",
    # Utilities
    "build_engine",
    "build_source_manager",
    "get_repo_root",
    "load_settings",
]
