"""Remote clone cache.

Shallow clones of remote overlay repositories, shared by every working tree
on the machine. Each (owner, repo, ref) gets its own clone::

    <cache_dir>/remotes/<owner>/<repo>/<ref-key>/        shallow clone
    <cache_dir>/remotes/<owner>/<repo>/<ref-key>.yaml    metadata

``ref-key`` is ``default`` (remote HEAD), ``branch-<name>`` or
``commit-<sha12>``. Entries are created on first use and only removed by an
explicit ``remove``/``clear``.
"""
from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from gitoverlay.core.exceptions import ExternalProcessFailed
from gitoverlay.core.git.client import GitClient
from gitoverlay.core.git.redaction import redact_url_credentials
from gitoverlay.core.git.remote import RemoteReference, is_commit_sha
from gitoverlay.core.utils.io import read_yaml, write_yaml
from gitoverlay.core.utils.time import utc_timestamp

logger = logging.getLogger(__name__)

_UNSAFE_KEY_RE = re.compile(r"[^A-Za-z0-9._-]")


def ref_key(ref: Optional[str]) -> str:
    if not ref:
        return "default"
    if is_commit_sha(ref):
        return f"commit-{ref[:12].lower()}"
    return "branch-" + _UNSAFE_KEY_RE.sub("_", ref)


@dataclass(frozen=True, slots=True)
class CachedCheckout:
    """A local checkout of a remote reference.

    Attributes:
        path: Clone directory
        commit: Commit checked out
        cached_at: When the clone was last fetched
    """

    path: Path
    commit: str
    cached_at: str


@dataclass(frozen=True, slots=True)
class CacheEntry:
    owner: str
    repo: str
    key: str
    path: Path
    url: str
    commit: str
    last_fetched: str
    size_bytes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "repo": self.repo,
            "ref": self.key,
            "path": str(self.path),
            "url": self.url,
            "commit": self.commit,
            "last_fetched": self.last_fetched,
            "size_bytes": self.size_bytes,
        }


class RemoteCache:
    """Manages shallow clones of remote overlay repositories."""

    def __init__(self, remotes_dir: Path, git: Optional[GitClient] = None) -> None:
        self.remotes_dir = Path(remotes_dir)
        self.git = git or GitClient()

    def checkout_path(self, ref: RemoteReference) -> Path:
        return self.remotes_dir / ref.owner / ref.repo / ref_key(ref.ref)

    def _meta_path(self, ref: RemoteReference) -> Path:
        path = self.checkout_path(ref)
        return path.with_name(path.name + ".yaml")

    def is_cached(self, ref: RemoteReference) -> bool:
        return (self.checkout_path(ref) / ".git").exists()

    def ensure(self, ref: RemoteReference, *, update: bool = False) -> CachedCheckout:
        """Return a local checkout of ``ref``, cloning it on first use.

        An existing clone is returned as-is unless ``update`` is set, in which
        case it is fetched and moved to the remote's latest commit for the ref.
        Commit refs never move, so they are not refetched.

        Raises:
            ExternalProcessFailed: If cloning or fetching fails.
        """
        path = self.checkout_path(ref)
        if not self.is_cached(ref):
            self._clone(ref, path)
        elif update and not ref.is_commit:
            self._refresh(ref, path)
        else:
            meta = read_yaml(self._meta_path(ref), default={}) or {}
            commit = self.git.head_commit(path)
            return CachedCheckout(path=path, commit=commit, cached_at=str(meta.get("last_fetched") or ""))
        return self._record(ref, path)

    def latest_commit(self, ref: RemoteReference) -> str:
        """Commit the remote currently advertises for ``ref`` (no local writes)."""
        if ref.is_commit:
            return str(ref.ref)
        return self.git.remote_head_commit(ref.clone_url, ref.ref)

    def _clone(self, ref: RemoteReference, path: Path) -> None:
        if path.exists():
            shutil.rmtree(path)
        logger.info("cloning %s into cache", redact_url_credentials(ref.clone_url))
        try:
            if ref.is_commit:
                path.mkdir(parents=True)
                self.git.run(["init", "--quiet"], cwd=path)
                self.git.run(["remote", "add", "origin", ref.clone_url], cwd=path)
                self.git.fetch(path, str(ref.ref))
                self.git.checkout(path, "FETCH_HEAD")
            else:
                branch = ref.ref or self.git.remote_default_branch(ref.clone_url)
                self.git.clone_shallow(ref.clone_url, path, branch=branch)
        except ExternalProcessFailed:
            if path.exists():
                shutil.rmtree(path)
            raise

    def _refresh(self, ref: RemoteReference, path: Path) -> None:
        logger.info("updating cached clone of %s", ref.scope)
        self.git.fetch(path, ref.ref or "HEAD")
        self.git.checkout(path, "FETCH_HEAD")

    def _record(self, ref: RemoteReference, path: Path) -> CachedCheckout:
        commit = self.git.head_commit(path)
        now = utc_timestamp()
        write_yaml(
            self._meta_path(ref),
            {
                "clone_url": redact_url_credentials(ref.clone_url),
                "requested_ref": ref.ref,
                "commit": commit,
                "last_fetched": now,
            },
        )
        return CachedCheckout(path=path, commit=commit, cached_at=now)

    # -------------------------------------------------------------- inventory

    def list(self) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        if not self.remotes_dir.is_dir():
            return entries
        for meta_path in sorted(self.remotes_dir.glob("*/*/*.yaml")):
            clone = meta_path.with_suffix("")
            if not clone.is_dir():
                continue
            meta = read_yaml(meta_path, default={}) or {}
            repo_dir = clone.parent
            entries.append(
                CacheEntry(
                    owner=repo_dir.parent.name,
                    repo=repo_dir.name,
                    key=clone.name,
                    path=clone,
                    url=str(meta.get("clone_url") or ""),
                    commit=str(meta.get("commit") or ""),
                    last_fetched=str(meta.get("last_fetched") or ""),
                    size_bytes=sum(p.stat().st_size for p in clone.rglob("*") if p.is_file() and not p.is_symlink()),
                )
            )
        return entries

    def remove(self, owner: str, repo: str) -> bool:
        """Drop every cached clone of ``owner/repo``. Returns False if none existed."""
        repo_dir = self.remotes_dir / owner / repo
        if not repo_dir.is_dir():
            return False
        shutil.rmtree(repo_dir)
        owner_dir = repo_dir.parent
        if owner_dir.is_dir() and not any(owner_dir.iterdir()):
            owner_dir.rmdir()
        return True

    def clear(self) -> int:
        """Remove the whole cache. Returns the number of clones dropped."""
        count = len(self.list())
        if self.remotes_dir.is_dir():
            shutil.rmtree(self.remotes_dir)
        return count


__all__ = ["CacheEntry", "CachedCheckout", "RemoteCache", "ref_key"]
