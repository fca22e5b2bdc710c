"""Snapshot records and normalization of upstream payloads.

Upstream payloads arrive in two shapes: a flat record (``time``, ``open``,
``close`` ...) and the nested analysis packet produced by the session
recorder (``input.intraday.ib.current_close`` and friends).  Every field is
resolved through an ordered list of candidate paths; the first path that
yields a usable value wins.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .clock import SnapshotParseError, clock_minutes, normalize_clock

Path = Tuple[str, ...]


@dataclass(frozen=True)
class MigrationSlice:
    time: str
    dominant_price: float

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "dominant_price": self.dominant_price}


@dataclass(frozen=True)
class Snapshot:
    """One intraday observation.  Never mutated by the engine."""

    time: str
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    volume: Optional[float] = None
    ib_high: Optional[float] = None
    ib_low: Optional[float] = None
    poc: Optional[float] = None
    vah: Optional[float] = None
    val: Optional[float] = None
    tpo_poc: Optional[float] = None
    tpo_vah: Optional[float] = None
    tpo_val: Optional[float] = None
    vwap: Optional[float] = None
    dominant_history: Tuple[MigrationSlice, ...] = ()
    migration_slices: Tuple[MigrationSlice, ...] = ()
    session_date: Optional[str] = None
    decoded: Optional[Mapping[str, Any]] = field(default=None, compare=False, hash=False)

    @property
    def minutes(self) -> int:
        return clock_minutes(self.time)


_FIELD_PATHS: Mapping[str, Sequence[Path]] = {
    "time": (("time",), ("current_et_time",), ("input", "current_et_time")),
    "open": (("open",), ("input", "intraday", "ib", "current_open")),
    "high": (("high",), ("input", "intraday", "ib", "current_high")),
    "low": (("low",), ("input", "intraday", "ib", "current_low")),
    "close": (("close",), ("input", "intraday", "ib", "current_close")),
    "volume": (("volume",), ("input", "intraday", "ib", "current_volume")),
    "ib_high": (("ib_high",), ("input", "intraday", "ib", "ib_high")),
    "ib_low": (("ib_low",), ("input", "intraday", "ib", "ib_low")),
    "vwap": (("vwap",), ("input", "intraday", "ib", "current_vwap")),
    "poc": (("poc",), ("input", "intraday", "volume_profile", "current_session", "poc")),
    "vah": (("vah",), ("input", "intraday", "volume_profile", "current_session", "vah")),
    "val": (("val",), ("input", "intraday", "volume_profile", "current_session", "val")),
    "tpo_poc": (("tpo_poc",), ("input", "intraday", "tpo_profile", "current_poc")),
    "tpo_vah": (("tpo_vah",), ("input", "intraday", "tpo_profile", "current_vah")),
    "tpo_val": (("tpo_val",), ("input", "intraday", "tpo_profile", "current_val")),
    "session_date": (("session_date",), ("input", "session_date")),
}

_HISTORY_PATHS: Sequence[Path] = (
    ("dominant_history",),
    ("dpoc_history",),
    ("input", "intraday", "dpoc_migration", "dpoc_history"),
    ("input", "intraday", "dpoc_history"),
)

_SLICE_PATHS: Sequence[Path] = (
    ("migration_slices",),
    ("dpoc_slices",),
    ("input", "intraday", "dpoc_migration", "dpoc_slices"),
)

_SLICE_PRICE_KEYS = ("dominant_price", "dpoc", "price")

_NUMERIC_FIELDS = tuple(key for key in _FIELD_PATHS if key not in {"time", "session_date"})


def _dig(payload: Any, path: Path) -> Any:
    node = payload
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node


def _first(payload: Mapping[str, Any], paths: Iterable[Path], accept) -> Any:
    for path in paths:
        value = accept(_dig(payload, path))
        if value is not None:
            return value
    return None


def coerce_float(value: Any) -> Optional[float]:
    """Return a finite float or ``None`` for anything unusable."""

    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    token = str(value).strip()
    if not token or token.upper() == "N/A":
        return None
    return token


def _coerce_slices(value: Any) -> Optional[Tuple[MigrationSlice, ...]]:
    if not isinstance(value, (list, tuple)) or not value:
        return None
    slices: List[MigrationSlice] = []
    for item in value:
        if isinstance(item, MigrationSlice):
            slices.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        price = None
        for key in _SLICE_PRICE_KEYS:
            price = coerce_float(item.get(key))
            if price is not None:
                break
        try:
            time = normalize_clock(item.get("time"))
        except SnapshotParseError:
            continue
        if price is None:
            continue
        slices.append(MigrationSlice(time=time, dominant_price=price))
    return tuple(slices) or None


def snapshot_from_payload(payload: Mapping[str, Any] | Snapshot) -> Snapshot:
    """Normalize a flat or nested upstream payload into a :class:`Snapshot`."""

    if isinstance(payload, Snapshot):
        return payload
    if not isinstance(payload, Mapping):
        raise SnapshotParseError("payload_not_mapping")

    raw_time = _first(payload, _FIELD_PATHS["time"], _coerce_text)
    if raw_time is None:
        raise SnapshotParseError("missing_time")
    values: Dict[str, Any] = {"time": normalize_clock(raw_time)}
    for key in _NUMERIC_FIELDS:
        values[key] = _first(payload, _FIELD_PATHS[key], coerce_float)
    values["session_date"] = _first(payload, _FIELD_PATHS["session_date"], _coerce_text)
    values["dominant_history"] = _first(payload, _HISTORY_PATHS, _coerce_slices) or ()
    values["migration_slices"] = _first(payload, _SLICE_PATHS, _coerce_slices) or ()
    decoded = payload.get("decoded")
    values["decoded"] = decoded if isinstance(decoded, Mapping) else None
    return Snapshot(**values)


def snapshots_from_payloads(payloads: Iterable[Mapping[str, Any] | Snapshot]) -> List[Snapshot]:
    return [snapshot_from_payload(item) for item in payloads]


__all__ = [
    "MigrationSlice",
    "Snapshot",
    "coerce_float",
    "snapshot_from_payload",
    "snapshots_from_payloads",
]
