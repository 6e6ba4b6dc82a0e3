"""I/O helpers: atomic text and YAML writes."""
from .core import (
    PathLike,
    atomic_write,
    ensure_directory,
    ensure_parent_dir,
    write_text,
)
from .yaml import read_yaml, write_yaml

__all__ = [
    "PathLike",
    "atomic_write",
    "ensure_directory",
    "ensure_parent_dir",
    "write_text",
    "read_yaml",
    "write_yaml",
]
