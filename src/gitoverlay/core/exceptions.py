from __future__ import annotations

from typing import Any, Dict, Mapping, Sequence


class GitOverlayError(Exception):
    """Base exception for gitoverlay."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class SourceNotFound(GitOverlayError):
    """Raised when a local path, remote or named source cannot be found."""


class AmbiguousReference(GitOverlayError):
    """Raised when a bare overlay name cannot be resolved without a source."""


class OverlayNotFound(GitOverlayError):
    """Raised when no configured source holds the requested overlay.

    ``context["searched"]`` lists every (source, scope) pair that was tried.
    """

    def __init__(
        self,
        scope: str,
        name: str,
        *,
        searched: Sequence[Mapping[str, str]],
    ) -> None:
        tried = ", ".join(f"{s['source']}:{s['scope']}" for s in searched) or "no sources"
        super().__init__(
            f"Overlay '{scope}/{name}' not found (searched: {tried})",
            context={"scope": scope, "name": name, "searched": [dict(s) for s in searched]},
        )


class OverlayConflict(GitOverlayError):
    """Raised when an overlay would place a path owned by another overlay."""


class PathCollision(GitOverlayError):
    """Raised when an overlay would overwrite an unmanaged file on disk."""


class UnsafePath(GitOverlayError):
    """Raised when a relative path escapes its root directory."""


class OverlayNotApplied(GitOverlayError):
    """Raised when an operation targets an overlay with no state record."""


class StateCorrupt(GitOverlayError):
    """Raised when a state record exists but cannot be parsed or validated."""


class StateWriteError(GitOverlayError):
    """Raised when a state record could not be persisted."""


class PlacementFailed(GitOverlayError):
    """Raised when file placement stopped partway through an apply.

    ``context["placed"]`` lists the entries that landed, ``context["failed"]``
    the entry that did not. Nothing is rolled back.
    """


class ExternalProcessFailed(GitOverlayError):
    """Raised when an external command (git) exits with an error."""

    def __init__(
        self,
        message: str,
        *,
        command: str,
        returncode: int | None,
        stderr: str = "",
    ) -> None:
        super().__init__(
            message,
            context={"command": command, "returncode": returncode, "stderr": stderr},
        )
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class SourceConfigError(GitOverlayError):
    """Raised for invalid source registry edits or configuration files."""


class InvalidOverlayName(GitOverlayError):
    """Raised when an overlay name normalizes to nothing or is reserved."""


class NotAGitRepository(GitOverlayError):
    """Raised when the target directory is not a git working tree."""


__all__ = [
    "GitOverlayError",
    "SourceNotFound",
    "AmbiguousReference",
    "OverlayNotFound",
    "OverlayConflict",
    "PathCollision",
    "UnsafePath",
    "OverlayNotApplied",
    "StateCorrupt",
    "StateWriteError",
    "PlacementFailed",
    "ExternalProcessFailed",
    "SourceConfigError",
    "InvalidOverlayName",
    "NotAGitRepository",
]
