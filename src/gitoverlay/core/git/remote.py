"""Parsing of git remote URLs and remote overlay references.

A remote overlay reference is a clone URL optionally followed by a hosting
style ``/tree/<ref>[/<subpath>]`` suffix (GitLab's ``/-/tree/`` works too)::

    https://github.com/acme/overlays
    https://github.com/acme/overlays/tree/main/claude
    git@github.com:acme/overlays.git
    file:///srv/git/acme/overlays.git/tree/v2/cursor
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from gitoverlay.core.exceptions import SourceNotFound

REMOTE_SCHEMES = ("https://", "http://", "ssh://", "git://", "file://")
_SCP_RE = re.compile(r"^(?P<user>[A-Za-z0-9_.-]+)@(?P<host>[^:/\s]+):(?P<path>.+)$")
_COMMIT_RE = re.compile(r"^[0-9a-fA-F]{40}$")


def is_remote_reference(value: str) -> bool:
    """True if ``value`` looks like a git URL rather than a path or name."""
    return value.startswith(REMOTE_SCHEMES) or bool(_SCP_RE.match(value))


def is_commit_sha(ref: Optional[str]) -> bool:
    return bool(ref) and bool(_COMMIT_RE.match(ref or ""))


def _strip_git_suffix(name: str) -> str:
    return name[:-4] if name.endswith(".git") else name


def parse_remote_url(url: str) -> Optional[str]:
    """Extract the ``owner/repo`` scope from a git remote URL.

    Returns ``None`` for URLs that carry fewer than two path segments.

    >>> parse_remote_url("git@github.com:acme/widgets.git")
    'acme/widgets'
    >>> parse_remote_url("https://github.com/acme/widgets")
    'acme/widgets'
    """
    raw = (url or "").strip()
    if not raw:
        return None
    m = _SCP_RE.match(raw)
    if m:
        path = m.group("path")
    elif "://" in raw:
        path = urlsplit(raw).path
    else:
        return None
    segments = [s for s in path.strip("/").split("/") if s]
    if len(segments) < 2:
        return None
    return f"{segments[-2]}/{_strip_git_suffix(segments[-1])}"


@dataclass(frozen=True, slots=True)
class RemoteReference:
    """A parsed remote overlay reference.

    Attributes:
        clone_url: URL handed to ``git clone`` (without any tree suffix)
        owner: Owner/organization segment
        repo: Repository name (``.git`` stripped)
        ref: Branch, tag or commit; ``None`` means the remote's default branch
        subpath: Directory inside the repository holding the overlay
    """

    clone_url: str
    owner: str
    repo: str
    ref: Optional[str] = None
    subpath: Optional[str] = None

    @property
    def is_commit(self) -> bool:
        return is_commit_sha(self.ref)

    @property
    def scope(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def display_name(self) -> str:
        """Last meaningful segment, used as the default overlay name."""
        if self.subpath:
            return self.subpath.rstrip("/").rsplit("/", 1)[-1]
        return self.repo

    @classmethod
    def parse(cls, value: str) -> RemoteReference:
        """Parse a remote reference string.

        Raises:
            SourceNotFound: If the URL has no owner/repo, or links to a single
                file (``/blob/``) instead of a directory.
        """
        raw = value.strip().rstrip("/")
        m = _SCP_RE.match(raw)
        if m:
            segments = [s for s in m.group("path").split("/") if s]
            prefix = f"{m.group('user')}@{m.group('host')}:"
        elif raw.startswith(REMOTE_SCHEMES):
            parts = urlsplit(raw)
            segments = [s for s in parts.path.split("/") if s]
            leading = "/" if parts.path.startswith("/") else ""
            prefix = f"{parts.scheme}://{parts.netloc}{leading}"
        else:
            raise SourceNotFound(f"Not a remote URL: {value}", context={"reference": value})

        ref: Optional[str] = None
        subpath: Optional[str] = None
        repo_segments = segments
        for idx, seg in enumerate(segments):
            if seg == "blob":
                raise SourceNotFound(
                    f"URL points at a single file, not an overlay directory: {value}",
                    context={"reference": value},
                )
            if seg == "tree":
                repo_segments = segments[:idx]
                if repo_segments and repo_segments[-1] == "-":
                    repo_segments = repo_segments[:-1]
                rest = segments[idx + 1:]
                ref = rest[0] if rest else None
                subpath = "/".join(rest[1:]) or None
                break

        if len(repo_segments) < 2:
            raise SourceNotFound(
                f"Remote URL must name an owner and repository: {value}",
                context={"reference": value},
            )
        return cls(
            clone_url=prefix + "/".join(repo_segments),
            owner=repo_segments[-2],
            repo=_strip_git_suffix(repo_segments[-1]),
            ref=ref,
            subpath=subpath,
        )


__all__ = [
    "REMOTE_SCHEMES",
    "RemoteReference",
    "is_commit_sha",
    "is_remote_reference",
    "parse_remote_url",
]
