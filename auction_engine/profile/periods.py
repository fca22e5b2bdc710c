"""TPO period codes.

Each snapshot is assigned the letter of the period it falls in, counted from
the session anchor.  Pre-market snapshots share one reserved code.  Once the
single-symbol alphabet runs out, codes continue as multi-symbol strings in
bijective base-70 (``AA``, ``AB`` ...), so later periods never collide with
earlier ones.
"""

from __future__ import annotations

import logging

from ..snapshots.clock import SnapshotParseError, clock_minutes
from ..telemetry import record_alphabet_exhausted

PERIOD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*"
PRE_MARKET_CODE = "~"
PRE_MARKET_INDEX = -1
DEFAULT_ANCHOR = "09:30"
RESOLUTION_MINUTES = {"5m": 5, "30m": 30}

logger = logging.getLogger(__name__)


class ProfileConfigError(ValueError):
    """Raised for caller contract violations in profile construction."""


def resolve_resolution(value: str | int) -> str:
    token = str(value or "").strip().lower()
    if token in {"5", "5m", "5-minute", "5min"}:
        return "5m"
    if token in {"30", "30m", "30-minute", "30min"}:
        return "30m"
    raise ProfileConfigError(f"unsupported_resolution:{value!r}")


def period_minutes(resolution: str | int) -> int:
    return RESOLUTION_MINUTES[resolve_resolution(resolution)]


def anchor_minutes(anchor: str) -> int:
    try:
        return clock_minutes(anchor)
    except SnapshotParseError as exc:
        raise ProfileConfigError(f"invalid_anchor:{anchor!r}") from exc


def period_index(time: str, length_minutes: int, anchor: str = DEFAULT_ANCHOR) -> int:
    """Floor of minutes since the anchor over the period length; -1 before the anchor."""

    elapsed = clock_minutes(time) - anchor_minutes(anchor)
    if elapsed < 0:
        return PRE_MARKET_INDEX
    return elapsed // int(length_minutes)


def code_for_index(index: int) -> str:
    if index < 0:
        return PRE_MARKET_CODE
    size = len(PERIOD_ALPHABET)
    if index >= size:
        record_alphabet_exhausted()
        logger.warning("period alphabet exhausted", extra={"period_index": index})
    chars = []
    value = index + 1
    while value > 0:
        value, rem = divmod(value - 1, size)
        chars.append(PERIOD_ALPHABET[rem])
    return "".join(reversed(chars))


def period_code(time: str, resolution: str | int, anchor: str = DEFAULT_ANCHOR) -> str:
    return code_for_index(period_index(time, period_minutes(resolution), anchor))


__all__ = [
    "DEFAULT_ANCHOR",
    "PERIOD_ALPHABET",
    "PRE_MARKET_CODE",
    "PRE_MARKET_INDEX",
    "ProfileConfigError",
    "anchor_minutes",
    "code_for_index",
    "period_code",
    "period_index",
    "period_minutes",
    "resolve_resolution",
]
