"""Session clock helpers for ``HH:MM`` snapshot timestamps."""

from __future__ import annotations


class SnapshotParseError(ValueError):
    """Raised when a snapshot payload carries no usable session time."""


def clock_minutes(value: str) -> int:
    """Return minutes since midnight for an ``HH:MM`` (or ``HH:MM:SS``) token."""

    token = str(value or "").strip()
    parts = token.split(":")
    if len(parts) not in (2, 3):
        raise SnapshotParseError(f"invalid_time:{token!r}")
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError as exc:
        raise SnapshotParseError(f"invalid_time:{token!r}") from exc
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise SnapshotParseError(f"invalid_time:{token!r}")
    return hours * 60 + minutes


def normalize_clock(value: str) -> str:
    """Canonical zero-padded ``HH:MM`` form, so string order matches time order."""

    total = clock_minutes(value)
    return f"{total // 60:02d}:{total % 60:02d}"


__all__ = ["SnapshotParseError", "clock_minutes", "normalize_clock"]
