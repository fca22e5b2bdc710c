"""Dominant-price (DPOC) migration trace.

Three sources are tried in order; the first one that produces at least one
slice wins:

1. ``history``: a precomputed per-time history carried by the most recent
   snapshot that has one, used verbatim.
2. ``slices``: provisional slice lists from every snapshot, merged by time
   with later snapshots overriding earlier ones.
3. ``value_area``: synthesized from each snapshot's centre of value, emitted
   only when it moves by more than the tolerance.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..snapshots.clock import clock_minutes
from ..snapshots.models import MigrationSlice, Snapshot
from ..snapshots.ordering import history_until, order_snapshots

DEFAULT_TOLERANCE = 0.01

logger = logging.getLogger(__name__)


class MigrationInputError(ValueError):
    """Raised when the migration tracker receives no snapshots."""


@dataclass(frozen=True)
class MigrationTrace:
    slices: Tuple[MigrationSlice, ...]
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "slices": [item.to_dict() for item in self.slices]}


@dataclass(frozen=True)
class MigrationSummary:
    first: Optional[float]
    last: Optional[float]
    net: float
    direction: str
    slice_count: int


SourceFn = Callable[[Sequence[Snapshot], float], List[MigrationSlice]]


def _sorted_slices(slices: Iterable[MigrationSlice]) -> List[MigrationSlice]:
    return sorted(slices, key=lambda item: clock_minutes(item.time))


def _from_history(history: Sequence[Snapshot], tolerance: float) -> List[MigrationSlice]:
    for snap in reversed(history):
        if snap.dominant_history:
            return _sorted_slices(snap.dominant_history)
    return []


def _from_slice_map(history: Sequence[Snapshot], tolerance: float) -> List[MigrationSlice]:
    merged: Dict[str, float] = {}
    for snap in history:
        for item in snap.migration_slices:
            merged[item.time] = item.dominant_price
    return [MigrationSlice(time=time, dominant_price=merged[time]) for time in sorted(merged, key=clock_minutes)]


def _midpoint(high: Optional[float], low: Optional[float]) -> Optional[float]:
    if not high or not low:
        return None
    return (high + low) / 2.0


def value_center(snap: Snapshot) -> Optional[float]:
    """Nearest structural centre of value; zero placeholders count as missing."""

    for candidate in (
        snap.poc,
        snap.tpo_poc,
        _midpoint(snap.vah, snap.val),
        _midpoint(snap.tpo_vah, snap.tpo_val),
    ):
        if candidate:
            return candidate
    return None


def _from_value_center(history: Sequence[Snapshot], tolerance: float) -> List[MigrationSlice]:
    slices: List[MigrationSlice] = []
    last: Optional[float] = None
    for snap in history:
        center = value_center(snap)
        if center is None:
            continue
        if last is None or abs(center - last) > tolerance:
            slices.append(MigrationSlice(time=snap.time, dominant_price=center))
            last = center
    return slices


MIGRATION_SOURCES: Tuple[Tuple[str, SourceFn], ...] = (
    ("history", _from_history),
    ("slices", _from_slice_map),
    ("value_area", _from_value_center),
)


def track_migration(
    snapshots: Iterable[Snapshot | Mapping[str, Any]],
    selected_time: Optional[str] = None,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
) -> MigrationTrace:
    """Return the dominant-price trace up to and including ``selected_time``.

    When ``selected_time`` is omitted the whole sequence is used.
    """

    snapshots = list(snapshots)
    if not snapshots:
        raise MigrationInputError("empty_snapshots")
    if selected_time is None:
        history = order_snapshots(snapshots)
    else:
        history = history_until(snapshots, selected_time)

    tolerance = max(0.0, float(tolerance))
    for name, source in MIGRATION_SOURCES:
        slices = source(history, tolerance)
        if slices:
            return MigrationTrace(slices=tuple(slices), source=name)
    logger.info("no migration source produced slices", extra={"snapshots": len(history)})
    return MigrationTrace(slices=(), source="none")


def active_dominant_price(
    slices: Sequence[MigrationSlice],
    time: str,
    fallback: Optional[float] = None,
) -> Optional[float]:
    """Most recent slice price at or before ``time``; ``fallback`` when none exists yet."""

    if not slices:
        return fallback
    keys = [clock_minutes(item.time) for item in slices]
    position = bisect.bisect_right(keys, clock_minutes(time))
    if position == 0:
        return fallback
    return slices[position - 1].dominant_price


def migration_summary(trace: MigrationTrace, *, tolerance: float = DEFAULT_TOLERANCE) -> MigrationSummary:
    if not trace.slices:
        return MigrationSummary(first=None, last=None, net=0.0, direction="STABLE", slice_count=0)
    first = trace.slices[0].dominant_price
    last = trace.slices[-1].dominant_price
    net = last - first
    if net > tolerance:
        direction = "UP"
    elif net < -tolerance:
        direction = "DOWN"
    else:
        direction = "STABLE"
    return MigrationSummary(first=first, last=last, net=net, direction=direction, slice_count=len(trace.slices))


__all__ = [
    "DEFAULT_TOLERANCE",
    "MIGRATION_SOURCES",
    "MigrationInputError",
    "MigrationSummary",
    "MigrationTrace",
    "active_dominant_price",
    "migration_summary",
    "track_migration",
    "value_center",
]
