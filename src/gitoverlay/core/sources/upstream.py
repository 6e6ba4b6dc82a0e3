"""Fork/upstream scope detection.

The scope of a working tree is the ``owner/repo`` of its ``origin`` remote.
A fork conventionally also has an ``upstream`` remote pointing at the
repository it was forked from; that remote's scope is used as a one-level
fallback when resolving catalogued overlays.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from gitoverlay.core.git.client import GitClient
from gitoverlay.core.git.remote import parse_remote_url

logger = logging.getLogger(__name__)

UPSTREAM_REMOTE = "upstream"


class RemoteScopeDetector:
    """Derives ``owner/repo`` scopes from a working tree's git remotes."""

    def __init__(self, git: Optional[GitClient] = None) -> None:
        self.git = git or GitClient()

    def scope_of(self, target: Path, remote: str) -> Optional[str]:
        url = self.git.remote_url(target, remote)
        if url is None:
            return None
        scope = parse_remote_url(url)
        if scope is None:
            logger.debug("remote '%s' URL does not name owner/repo: %s", remote, url)
        return scope

    def origin_scope(self, target: Path) -> Optional[str]:
        return self.scope_of(target, "origin")

    def upstream_scope(self, target: Path) -> Optional[str]:
        return self.scope_of(target, UPSTREAM_REMOTE)


__all__ = ["RemoteScopeDetector", "UPSTREAM_REMOTE"]
