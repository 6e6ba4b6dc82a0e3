"""CLI output formatting.

Every command prints through :class:`OutputFormatter` so ``--json`` mode
produces one machine-readable document on stdout and errors on stderr.
"""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional

from gitoverlay.core.exceptions import GitOverlayError


class OutputFormatter:
    """Output formatter shared by all commands."""

    def __init__(self, json_mode: bool = False, indent: int = 2):
        self.json_mode = json_mode
        self.indent = indent

    def success(
        self,
        data: Dict[str, Any],
        message: str,
        *,
        status: str = "success",
    ) -> None:
        """Print ``message``, or ``data`` with a status field in JSON mode."""
        if self.json_mode:
            output = {"status": status, **data}
            print(json.dumps(output, indent=self.indent, default=str))
        else:
            print(message)

    def error(
        self,
        error: Exception,
        message: Optional[str] = None,
        *,
        error_code: str = "error",
    ) -> None:
        """Report ``error`` on stderr.

        In JSON mode a :class:`GitOverlayError` is rendered with its kind and
        context so callers can branch on it.
        """
        msg = message or str(error)
        if self.json_mode:
            if isinstance(error, GitOverlayError):
                output = {"error": error_code, **error.to_json_error()}
                if message:
                    output["message"] = message
            else:
                output = {"error": error_code, "message": msg}
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(json.dumps(data, indent=self.indent, default=str))

    def text(self, message: str) -> None:
        """Print a plain text line (suppressed in JSON mode)."""
        if not self.json_mode:
            print(message)

    def text_kv(self, key: str, value: Any, prefix: str = "  ") -> None:
        if not self.json_mode:
            print(f"{prefix}{key}: {value}")


__all__ = ["OutputFormatter"]
