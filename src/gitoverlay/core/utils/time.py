"""Timezone-aware time helpers."""
from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def utc_timestamp() -> str:
    """ISO 8601 UTC timestamp with a ``Z`` suffix, e.g. ``2024-05-01T12:00:00Z``."""
    return utc_now().isoformat().replace("+00:00", "Z")


__all__ = ["utc_now", "utc_timestamp"]
