"""User-level directory resolution.

Three per-machine roots are shared by every invocation of the tool:

- config dir: ``config.yaml`` (settings + source registry)
- data dir: external state backups under ``applied/``
- cache dir: remote clones under ``remotes/`` and catalog sources under ``sources/``

Precedence (highest to lowest):
1. ``GITOVERLAY_CONFIG_DIR`` / ``GITOVERLAY_DATA_DIR`` / ``GITOVERLAY_CACHE_DIR``
2. ``$XDG_CONFIG_HOME`` / ``$XDG_DATA_HOME`` / ``$XDG_CACHE_HOME`` + ``/gitoverlay``
3. ``~/.config/gitoverlay``, ``~/.local/share/gitoverlay``, ``~/.cache/gitoverlay``
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

APP_DIR_NAME = "gitoverlay"


def _resolve_dir(env_override: str, xdg_var: str, fallback: str) -> Path:
    raw = os.environ.get(env_override, "").strip()
    if raw:
        return Path(raw).expanduser()
    xdg = os.environ.get(xdg_var, "").strip()
    if xdg:
        return Path(xdg).expanduser() / APP_DIR_NAME
    return Path.home() / fallback / APP_DIR_NAME


def get_user_config_dir() -> Path:
    return _resolve_dir("GITOVERLAY_CONFIG_DIR", "XDG_CONFIG_HOME", ".config")


def get_user_data_dir() -> Path:
    return _resolve_dir("GITOVERLAY_DATA_DIR", "XDG_DATA_HOME", ".local/share")


def get_user_cache_dir() -> Path:
    return _resolve_dir("GITOVERLAY_CACHE_DIR", "XDG_CACHE_HOME", ".cache")


@dataclass(frozen=True, slots=True)
class UserDirs:
    """Explicit roots for the shared per-machine stores.

    Passed to collaborators instead of being looked up globally, so tests can
    point every store at an isolated temporary directory.
    """

    config_dir: Path
    data_dir: Path
    cache_dir: Path

    @classmethod
    def from_environment(cls) -> UserDirs:
        return cls(
            config_dir=get_user_config_dir(),
            data_dir=get_user_data_dir(),
            cache_dir=get_user_cache_dir(),
        )

    @property
    def config_file(self) -> Path:
        return self.config_dir / "config.yaml"

    @property
    def applied_dir(self) -> Path:
        return self.data_dir / "applied"

    @property
    def remotes_dir(self) -> Path:
        return self.cache_dir / "remotes"

    @property
    def sources_dir(self) -> Path:
        return self.cache_dir / "sources"


__all__ = [
    "UserDirs",
    "get_user_config_dir",
    "get_user_data_dir",
    "get_user_cache_dir",
]
