"""Git command wrapper.

Every interaction with the git executable goes through :class:`GitClient`.
Each method is one fallible external call; failures surface as
:class:`~gitoverlay.core.exceptions.ExternalProcessFailed` carrying the
(redacted) command line and exit status. Commands are never retried and run
without a timeout.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from gitoverlay.core.exceptions import ExternalProcessFailed
from gitoverlay.core.git.redaction import redact_git_args, redact_text_credentials

logger = logging.getLogger(__name__)


class GitClient:
    """Thin, injectable facade over the ``git`` CLI."""

    def __init__(self, executable: str = "git") -> None:
        self.executable = executable

    def run(
        self,
        args: list[str],
        cwd: Path,
        *,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run git with ``args`` in ``cwd`` and capture its output.

        Raises:
            ExternalProcessFailed: If git is missing, or exits non-zero while
                ``check`` is set.
        """
        safe_cmd = " ".join([self.executable, *redact_git_args(args)])
        logger.debug("running %s (cwd=%s)", safe_cmd, cwd)
        try:
            result = subprocess.run(
                [self.executable, *args],
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ExternalProcessFailed(
                f"git executable not found: {self.executable}",
                command=safe_cmd,
                returncode=None,
            ) from exc

        if check and result.returncode != 0:
            stderr = redact_text_credentials((result.stderr or "").strip())
            raise ExternalProcessFailed(
                f"Command failed ({result.returncode}): {safe_cmd}"
                + (f"\n{stderr}" if stderr else ""),
                command=safe_cmd,
                returncode=result.returncode,
                stderr=stderr,
            )
        return result

    # ---------------------------------------------------------------- clones

    def clone_shallow(self, url: str, dest: Path, *, branch: Optional[str] = None) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        args = ["clone", "--depth", "1"]
        if branch:
            args += ["--branch", branch]
        args += ["--", url, str(dest)]
        self.run(args, cwd=dest.parent)

    def fetch(self, repo: Path, ref: Optional[str] = None) -> None:
        args = ["fetch", "--depth", "1", "origin"]
        if ref:
            args.append(ref)
        self.run(args, cwd=repo)

    def checkout(self, repo: Path, ref: str) -> None:
        self.run(["checkout", "--force", "--detach", ref], cwd=repo)

    def pull_ff_only(self, repo: Path) -> None:
        self.run(["pull", "--ff-only"], cwd=repo)

    def head_commit(self, repo: Path) -> str:
        return self.run(["rev-parse", "HEAD"], cwd=repo).stdout.strip()

    def remote_head_commit(self, url: str, ref: Optional[str] = None) -> str:
        """Return the commit ``ref`` (default: ``HEAD``) points at on ``url``.

        Raises:
            ExternalProcessFailed: If the remote does not advertise the ref.
        """
        wanted = ref or "HEAD"
        result = self.run(["ls-remote", "--", url, wanted], cwd=Path.cwd())
        # Peeled tags (^{}) point at the commit rather than the tag object.
        preference = [
            wanted,
            f"refs/heads/{wanted}",
            f"refs/tags/{wanted}^{{}}",
            f"refs/tags/{wanted}",
        ]
        found: dict[str, str] = {}
        for line in result.stdout.splitlines():
            sha, _, name = line.partition("\t")
            found[name.strip()] = sha.strip()
        for name in preference:
            if name in found:
                return found[name]
        raise ExternalProcessFailed(
            f"Remote ref '{wanted}' not found",
            command=f"git ls-remote {redact_git_args([url])[0]} {wanted}",
            returncode=0,
        )

    def remote_default_branch(self, url: str) -> Optional[str]:
        """Return the branch a remote's ``HEAD`` points to, if advertised."""
        result = self.run(["ls-remote", "--symref", "--", url, "HEAD"], cwd=Path.cwd())
        for line in result.stdout.splitlines():
            if line.startswith("ref:"):
                target = line[len("ref:"):].split("\t", 1)[0].strip()
                if target.startswith("refs/heads/"):
                    return target[len("refs/heads/"):]
        return None

    def remote_url(self, repo: Path, remote: str = "origin") -> Optional[str]:
        """Return the URL configured for ``remote``, or ``None`` if absent."""
        result = self.run(["remote", "get-url", remote], cwd=repo, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    # ------------------------------------------------------------ work tree

    def is_work_tree(self, path: Path) -> bool:
        result = self.run(["rev-parse", "--is-inside-work-tree"], cwd=path, check=False)
        return result.returncode == 0 and result.stdout.strip() == "true"

    def exclude_file(self, repo: Path) -> Path:
        """Return the absolute path of the repository's ``info/exclude``."""
        raw = self.run(
            ["rev-parse", "--path-format=absolute", "--git-path", "info/exclude"],
            cwd=repo,
        ).stdout.strip()
        path = Path(raw)
        if not path.is_absolute():
            path = (repo / path).resolve()
        return path

    def list_ignored_and_untracked(self, repo: Path) -> list[str]:
        """List untracked paths (ignored ones included), relative to ``repo``."""
        untracked = self.run(
            ["ls-files", "--others", "--exclude-standard", "--directory"], cwd=repo
        ).stdout.splitlines()
        ignored = self.run(
            ["ls-files", "--others", "--ignored", "--exclude-standard", "--directory"],
            cwd=repo,
        ).stdout.splitlines()
        return sorted({p for p in [*untracked, *ignored] if p})

    def is_tracked(self, repo: Path, rel_path: str) -> bool:
        result = self.run(["ls-files", "--error-unmatch", "--", rel_path], cwd=repo, check=False)
        return result.returncode == 0

    # -------------------------------------------------------- stage / commit

    def add(self, repo: Path, paths: list[str] | None = None) -> None:
        self.run(["add", "--all", "--", *(paths or ["."])], cwd=repo)

    def changed_paths(self, repo: Path, pathspec: str) -> list[str]:
        """Paths under ``pathspec`` with uncommitted changes, untracked files included."""
        out = self.run(
            ["status", "--porcelain", "--untracked-files=all", "--", pathspec], cwd=repo
        ).stdout
        paths = []
        for line in out.splitlines():
            path = line[3:].split(" -> ")[-1].strip().strip('"')
            if path:
                paths.append(path)
        return sorted(paths)

    def has_staged_changes(self, repo: Path) -> bool:
        return self.run(["diff", "--cached", "--quiet"], cwd=repo, check=False).returncode != 0

    def commit(self, repo: Path, message: str) -> bool:
        """Commit staged changes. Returns False when there was nothing to commit."""
        if not self.has_staged_changes(repo):
            return False
        self.run(["commit", "-m", message], cwd=repo)
        return True

    def push(self, repo: Path) -> None:
        self.run(["push"], cwd=repo)

    def has_unpushed_commits(self, repo: Path) -> bool:
        result = self.run(["rev-list", "--count", "@{upstream}..HEAD"], cwd=repo, check=False)
        if result.returncode != 0:
            return False
        return int(result.stdout.strip() or "0") > 0


__all__ = ["GitClient"]
