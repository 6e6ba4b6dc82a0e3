"""Local clones of catalog sources.

A catalog source is a git repository laid out as ``<org>/<repo>/<name>/``,
one directory per overlay, cloned to ``<cache_dir>/sources/<source-name>``.
"""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from gitoverlay.core.config.sources import SourceEntry
from gitoverlay.core.git.client import GitClient
from gitoverlay.core.git.redaction import redact_url_credentials
from gitoverlay.core.overlay.placement import resolve_within

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CatalogOverlay:
    source: str
    scope: str
    name: str
    path: Path

    @property
    def reference(self) -> str:
        return f"{self.scope}/{self.name}"


class CatalogSource:
    """One registered source and its local clone."""

    def __init__(self, entry: SourceEntry, sources_dir: Path, git: Optional[GitClient] = None) -> None:
        self.entry = entry
        self.path = Path(sources_dir) / entry.name
        self.git = git or GitClient()

    @property
    def name(self) -> str:
        return self.entry.name

    @property
    def url(self) -> str:
        return self.entry.url

    def is_cloned(self) -> bool:
        return (self.path / ".git").exists()

    def ensure_cloned(self) -> None:
        if self.is_cloned():
            return
        logger.info("cloning source '%s' from %s", self.name, redact_url_credentials(self.url))
        self.git.clone_shallow(self.url, self.path)

    def pull(self) -> None:
        self.ensure_cloned()
        self.git.pull_ff_only(self.path)

    def current_commit(self) -> str:
        return self.git.head_commit(self.path)

    def overlay_dir(self, scope: str, name: str) -> Path:
        """Where ``<scope>/<name>`` lives (or would live) in the clone."""
        return resolve_within(self.path, f"{scope}/{name}", what="overlay reference")

    def find(self, scope: str, name: str) -> Optional[Path]:
        if not self.is_cloned():
            return None
        candidate = self.overlay_dir(scope, name)
        return candidate if candidate.is_dir() else None

    def list_overlays(self) -> list[CatalogOverlay]:
        found: list[CatalogOverlay] = []
        if not self.is_cloned():
            return found
        for org in sorted(p for p in self.path.iterdir() if p.is_dir() and not p.name.startswith(".")):
            for repo in sorted(p for p in org.iterdir() if p.is_dir() and not p.name.startswith(".")):
                for overlay in sorted(p for p in repo.iterdir() if p.is_dir() and not p.name.startswith(".")):
                    found.append(
                        CatalogOverlay(
                            source=self.name,
                            scope=f"{org.name}/{repo.name}",
                            name=overlay.name,
                            path=overlay,
                        )
                    )
        return found

    # --------------------------------------------------------------- publish

    def stage_files(self, scope: str, name: str, files: dict[str, Path]) -> Path:
        """Copy ``files`` (overlay-relative path -> file on disk) into the clone and stage them."""
        self.ensure_cloned()
        dest_root = self.overlay_dir(scope, name)
        for rel, src in files.items():
            dest = resolve_within(dest_root, rel, what="overlay path")
            dest.parent.mkdir(parents=True, exist_ok=True)
            if src.is_dir():
                if dest.exists():
                    shutil.rmtree(dest)
                shutil.copytree(src, dest, symlinks=True)
            else:
                shutil.copy2(src, dest)
        self.git.add(self.path, [f"{scope}/{name}"])
        return dest_root

    def pending_changes(self, scope: str, name: str) -> list[str]:
        """Overlay-relative paths edited in the clone but not yet committed."""
        if not self.is_cloned():
            return []
        prefix = f"{scope}/{name}/"
        return [p[len(prefix):] for p in self.git.changed_paths(self.path, f"{scope}/{name}") if p.startswith(prefix)]

    def commit(self, message: str) -> bool:
        return self.git.commit(self.path, message)

    def push(self) -> None:
        self.git.push(self.path)

    def has_unpushed(self) -> bool:
        return self.git.has_unpushed_commits(self.path)


__all__ = ["CatalogOverlay", "CatalogSource"]
