"""Exclusion ledger kept in ``.git/info/exclude``.

Each applied overlay owns one delimited section::

    # gitoverlay:<name> start
    /.claude
    /CLAUDE.md
    # gitoverlay:<name> end

``info/exclude`` is local to the clone and never committed, so tracked
``.gitignore`` files are left alone. Only whole sections between our own
markers are ever appended, replaced or deleted; every other line of the file
is preserved byte for byte, line endings included.

A reserved section (:data:`STATE_SECTION`) hides the in-tree state directory.
It is added alongside the first overlay section and dropped together with the
last one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from gitoverlay.core.utils.io import write_text

logger = logging.getLogger(__name__)

MARKER_PREFIX = "# gitoverlay:"
STATE_SECTION = "gitoverlay-state"

# Start-marker suffix for a section that had to add a newline to the line
# before it. Removing such a section takes that newline away again.
NOEOL_FLAG = " (newline added)"


def start_marker(name: str) -> str:
    return f"{MARKER_PREFIX}{name} start"


def end_marker(name: str) -> str:
    return f"{MARKER_PREFIX}{name} end"


def _newline(lines: List[str]) -> str:
    """Line ending used by the file, taken from its first line."""
    if lines and lines[0].endswith("\r\n"):
        return "\r\n"
    return "\n"


def _strip_newline(line: str) -> str:
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


def _is_start(line: str, name: str | None = None) -> bool:
    s = line.strip()
    if s.endswith(NOEOL_FLAG):
        s = s[: -len(NOEOL_FLAG)]
    if name is not None:
        return s == start_marker(name)
    return s.startswith(MARKER_PREFIX) and s.endswith(" start")


def _is_flagged(line: str) -> bool:
    return line.strip().endswith(NOEOL_FLAG)


def _flag(line: str, nl: str) -> str:
    return _strip_newline(line) + NOEOL_FLAG + nl


def _render_section(name: str, patterns: Iterable[str], nl: str, *, flagged: bool = False) -> List[str]:
    head = start_marker(name) + (NOEOL_FLAG if flagged else "")
    return [head + nl, *[p + nl for p in patterns if p], end_marker(name) + nl]


def _find_section(lines: List[str], name: str) -> tuple[int, int] | None:
    """Return ``(start, end_exclusive)`` line indices of a section.

    A start marker without an end marker runs to the end of the file.
    """
    end_line = end_marker(name)
    for i, line in enumerate(lines):
        if not _is_start(line, name):
            continue
        for j in range(i + 1, len(lines)):
            if lines[j].strip() == end_line:
                return i, j + 1
        return i, len(lines)
    return None


def replace_section(content: str, name: str, patterns: Iterable[str]) -> str:
    """Return ``content`` with section ``name`` set to ``patterns``.

    An existing section is replaced in place; otherwise the section is
    appended at the end. Lines outside the section keep their own endings;
    new lines use the file's. If the last line has no newline one is added
    and the section is flagged so :func:`remove_section` can drop it again.
    """
    lines = content.splitlines(keepends=True)
    nl = _newline(lines)
    found = _find_section(lines, name)
    if found is not None:
        start, end = found
        lines[start:end] = _render_section(name, patterns, nl, flagged=_is_flagged(lines[start]))
        return "".join(lines)
    flagged = bool(lines) and _strip_newline(lines[-1]) == lines[-1]
    if flagged:
        lines[-1] += nl
    lines.extend(_render_section(name, patterns, nl, flagged=flagged))
    return "".join(lines)


def remove_section(content: str, name: str) -> str:
    """Return ``content`` without section ``name`` (no-op if absent).

    A flagged section at the end of the file gives back the newline it
    added; one followed by another section passes its flag on.
    """
    lines = content.splitlines(keepends=True)
    found = _find_section(lines, name)
    if found is None:
        return content
    start, end = found
    flagged = _is_flagged(lines[start])
    nl = _newline(lines)
    del lines[start:end]
    if flagged:
        if start < len(lines) and _is_start(lines[start]) and not _is_flagged(lines[start]):
            lines[start] = _flag(lines[start], nl)
        elif start == len(lines) and start > 0:
            lines[start - 1] = _strip_newline(lines[start - 1])
    return "".join(lines)


def section_names(content: str) -> List[str]:
    """Names of all gitoverlay sections in ``content``, in file order."""
    names: List[str] = []
    for line in content.splitlines():
        if _is_start(line):
            s = line.strip()
            if s.endswith(NOEOL_FLAG):
                s = s[: -len(NOEOL_FLAG)]
            names.append(s[len(MARKER_PREFIX):-len(" start")])
    return names


def section_patterns(content: str, name: str) -> List[str]:
    lines = content.splitlines()
    found = _find_section(lines, name)
    if found is None:
        return []
    start, end = found
    return [l for l in lines[start + 1:end] if l.strip() != end_marker(name)]


class ExcludeLedger:
    """Reads and edits the gitoverlay sections of one exclude file."""

    def __init__(self, exclude_path: Path, *, state_dir_name: str = ".gitoverlay") -> None:
        self.path = Path(exclude_path)
        self.state_pattern = f"/{state_dir_name}/"

    def read(self) -> str:
        if not self.path.exists():
            return ""
        # newline="" keeps CRLF endings intact
        with self.path.open(encoding="utf-8", newline="") as fh:
            return fh.read()

    def _write(self, content: str) -> None:
        write_text(self.path, content)

    def overlay_sections(self) -> List[str]:
        return [n for n in section_names(self.read()) if n != STATE_SECTION]

    def patterns(self, name: str) -> List[str]:
        return section_patterns(self.read(), name)

    def add(self, name: str, patterns: Iterable[str]) -> None:
        """Write (or replace) the section for overlay ``name``.

        The state-directory section is kept after the overlay sections so
        removing the last overlay strips exactly what the first apply added.
        """
        content = self.read()
        had_state = STATE_SECTION in section_names(content)
        if had_state:
            content = remove_section(content, STATE_SECTION)
        content = replace_section(content, name, patterns)
        content = replace_section(content, STATE_SECTION, [self.state_pattern])
        self._write(content)
        logger.debug("exclude section '%s' written to %s", name, self.path)

    def remove(self, name: str) -> bool:
        """Remove the section for ``name``. Returns True if the file changed."""
        before = self.read()
        content = remove_section(before, name)
        if not [n for n in section_names(content) if n != STATE_SECTION]:
            content = remove_section(content, STATE_SECTION)
        if content == before:
            return False
        self._write(content)
        logger.debug("exclude section '%s' removed from %s", name, self.path)
        return True


__all__ = [
    "ExcludeLedger",
    "MARKER_PREFIX",
    "NOEOL_FLAG",
    "STATE_SECTION",
    "end_marker",
    "remove_section",
    "replace_section",
    "section_names",
    "section_patterns",
    "start_marker",
]
