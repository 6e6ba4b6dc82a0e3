"""Source registry: the ordered list of named overlay sources.

Stored in the user ``config.yaml``::

    sources:
      - name: personal
        url: git@github.com:me/overlays.git
      - name: team
        url: https://github.com/acme/overlays

List order is resolution priority (index 0 first); no other index exists.

Older configs held a single ``overlay_repo: {url: ...}``. The first load of
such a file rewrites it as one source named ``default``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from gitoverlay.core.config.manager import ConfigManager
from gitoverlay.core.exceptions import SourceConfigError, SourceNotFound
from gitoverlay.core.git.redaction import redact_url_credentials
from gitoverlay.core.schemas import SchemaValidationError, validate_payload
from gitoverlay.core.utils.io import write_yaml

logger = logging.getLogger(__name__)

LEGACY_SOURCE_NAME = "default"
_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


@dataclass(frozen=True, slots=True)
class SourceEntry:
    name: str
    url: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceEntry:
        return cls(name=str(data["name"]), url=str(data["url"]))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "url": self.url}


class SourceRegistry:
    """Loads, edits and saves the ordered source list."""

    def __init__(self, config_dir: Path) -> None:
        self.manager = ConfigManager(config_dir)
        self._sources: Optional[list[SourceEntry]] = None

    @property
    def path(self) -> Path:
        return self.manager.config_file

    # ------------------------------------------------------------------ load

    def _load(self) -> list[SourceEntry]:
        data = self.manager.load_user_file()
        try:
            validate_payload(
                {k: v for k, v in data.items() if k in ("sources", "overlay_repo")},
                "sources",
            )
        except SchemaValidationError as exc:
            raise SourceConfigError(f"Invalid sources in {self.path}: {exc}", context={"path": str(self.path)}) from exc

        entries = [SourceEntry.from_dict(item) for item in data.get("sources") or []]
        names = [e.name for e in entries]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise SourceConfigError(
                f"Duplicate source names in {self.path}: {', '.join(dupes)}",
                context={"path": str(self.path), "duplicates": dupes},
            )

        legacy = data.get("overlay_repo")
        if legacy and not entries:
            entries = [SourceEntry(name=LEGACY_SOURCE_NAME, url=str(legacy["url"]))]
            self._sources = entries
            self.save()
            logger.info(
                "migrated legacy overlay_repo (%s) to source '%s'",
                redact_url_credentials(entries[0].url),
                LEGACY_SOURCE_NAME,
            )
        return entries

    @property
    def sources(self) -> list[SourceEntry]:
        if self._sources is None:
            self._sources = self._load()
        return list(self._sources)

    def names(self) -> list[str]:
        return [s.name for s in self.sources]

    def get(self, name: str) -> SourceEntry:
        for entry in self.sources:
            if entry.name == name:
                return entry
        raise SourceNotFound(
            f"Source '{name}' is not configured (known: {', '.join(self.names()) or 'none'})",
            context={"source": name},
        )

    def position(self, name: str) -> int:
        self.get(name)
        return self.names().index(name)

    # ------------------------------------------------------------------ edit

    def add(self, name: str, url: str, *, position: Optional[int] = None) -> SourceEntry:
        """Insert a source at ``position`` (default: lowest priority).

        Raises:
            SourceConfigError: If the name is invalid or already used.
        """
        if not _NAME_RE.match(name or ""):
            raise SourceConfigError(f"Invalid source name: {name!r}", context={"source": name})
        if not url or not url.strip():
            raise SourceConfigError(f"Source '{name}' needs a URL", context={"source": name})
        current = self.sources
        if any(s.name == name for s in current):
            raise SourceConfigError(f"Source '{name}' already exists", context={"source": name})
        entry = SourceEntry(name=name, url=url.strip())
        index = len(current) if position is None else max(0, min(position, len(current)))
        current.insert(index, entry)
        self._sources = current
        return entry

    def remove(self, name: str) -> SourceEntry:
        entry = self.get(name)
        self._sources = [s for s in self.sources if s.name != name]
        return entry

    def move(self, name: str, position: int) -> None:
        """Move ``name`` to ``position``; other sources keep their relative order."""
        entry = self.get(name)
        rest = [s for s in self.sources if s.name != name]
        index = max(0, min(position, len(rest)))
        rest.insert(index, entry)
        self._sources = rest

    def save(self) -> None:
        """Write the source list back, preserving unrelated config keys."""
        data = self.manager.load_user_file()
        data.pop("overlay_repo", None)
        data["sources"] = [s.to_dict() for s in self.sources]
        write_yaml(self.path, data)


__all__ = ["SourceEntry", "SourceRegistry", "LEGACY_SOURCE_NAME"]
