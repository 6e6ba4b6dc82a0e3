"""Layered YAML configuration.

Precedence (lowest to highest):

1. Bundled defaults: ``gitoverlay/data/config/defaults.yaml``
2. User file: ``<config_dir>/config.yaml``
3. Environment: ``GITOVERLAY_<section>__<key>=<value>``

Environment values are coerced to bool/int/float/JSON when they parse as
such, so ``GITOVERLAY_placement__copy=true`` yields ``True``.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from gitoverlay.core.exceptions import SourceConfigError
from gitoverlay.core.utils.io import read_yaml
from gitoverlay.core.utils.merge import deep_merge
from gitoverlay.data import read_yaml as read_bundled_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "GITOVERLAY_"


class ConfigManager:
    """Loads the effective configuration for one user config directory."""

    def __init__(self, config_dir: Path) -> None:
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / "config.yaml"

    # ----------------------------------------------------------- env coercion

    @staticmethod
    def _as_bool(v: str) -> Optional[bool]:
        s = v.strip().lower()
        if s in {"true", "yes", "on"}:
            return True
        if s in {"false", "no", "off"}:
            return False
        return None

    @staticmethod
    def _as_int(v: str) -> Optional[int]:
        s = v.strip()
        if s.lstrip("-").isdigit():
            return int(s)
        return None

    @staticmethod
    def _as_float(v: str) -> Optional[float]:
        s = v.strip()
        if "." not in s:
            return None
        try:
            return float(s)
        except ValueError:
            return None

    @staticmethod
    def _as_json(v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _iter_env_overrides(self):
        for key in sorted(os.environ):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            # Single-segment names (GITOVERLAY_CONFIG_DIR, ...) are directory
            # overrides handled in utils.paths, not config keys.
            if "__" not in raw:
                continue
            segments = [seg.lower() for seg in raw.split("__")]
            if any(not seg for seg in segments):
                logger.warning("ignoring malformed override %s", key)
                continue
            yield segments, self._coerce_type(os.environ[key])

    @staticmethod
    def _set_nested(root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur = root
        for part in path[:-1]:
            nxt = cur.get(part)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[part] = nxt
            cur = nxt
        cur[path[-1]] = value

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, value in self._iter_env_overrides():
            self._set_nested(cfg, path, value)

    # ------------------------------------------------------------------ load

    def load_user_file(self) -> Dict[str, Any]:
        """Raw contents of the user config file (empty if absent).

        Raises:
            SourceConfigError: If the file is not a valid YAML mapping.
        """
        try:
            data = read_yaml(self.config_file, default={}, raise_on_error=self.config_file.exists())
        except (OSError, yaml.YAMLError) as exc:
            raise SourceConfigError(
                f"Cannot read config file {self.config_file}: {exc}",
                context={"path": str(self.config_file)},
            ) from exc
        if not isinstance(data, dict):
            raise SourceConfigError(
                f"Config file must be a YAML mapping: {self.config_file}",
                context={"path": str(self.config_file)},
            )
        return data

    def load_config(self) -> Dict[str, Any]:
        defaults = copy.deepcopy(read_bundled_yaml("config", "defaults.yaml") or {})
        cfg = deep_merge(defaults, self.load_user_file())
        self.apply_env_overrides(cfg)
        return cfg


__all__ = ["ConfigManager", "ENV_PREFIX"]
