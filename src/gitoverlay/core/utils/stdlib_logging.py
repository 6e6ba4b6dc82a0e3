from __future__ import annotations

import logging
import sys
from pathlib import Path

from gitoverlay.core.utils.io import ensure_directory

_STREAM_HANDLER: logging.Handler | None = None
_FILE_HANDLER: logging.Handler | None = None
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level_from_name(name: str) -> int:
    value = getattr(logging, str(name).upper(), None)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(*, level: str = "WARNING", log_path: Path | None = None) -> None:
    """Configure stdlib logging for CLI runs.

    Installs one stderr handler (never stdout, so ``--json`` output stays
    clean) and, when ``log_path`` is given, a file handler. Calling again
    replaces the handlers this module installed and leaves others alone.
    """
    global _STREAM_HANDLER, _FILE_HANDLER

    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    for handler in (_STREAM_HANDLER, _FILE_HANDLER):
        if handler is not None:
            root.removeHandler(handler)
            handler.close()
    _STREAM_HANDLER = None
    _FILE_HANDLER = None

    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(_level_from_name(level))
    sh.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(sh)
    _STREAM_HANDLER = sh

    if log_path is not None:
        resolved = Path(log_path).expanduser().resolve()
        ensure_directory(resolved.parent)
        fh = logging.FileHandler(resolved, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(fh)
        _FILE_HANDLER = fh


def reset_logging_for_tests() -> None:
    """Test-only: drop the handlers installed by :func:`configure_logging`."""
    global _STREAM_HANDLER, _FILE_HANDLER
    root = logging.getLogger()
    for handler in (_STREAM_HANDLER, _FILE_HANDLER):
        if handler is not None:
            root.removeHandler(handler)
            handler.close()
    _STREAM_HANDLER = None
    _FILE_HANDLER = None


__all__ = ["configure_logging", "reset_logging_for_tests"]
