"""Per-snapshot chart series pairing price bars with the active dominant price."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..profile.periods import DEFAULT_ANCHOR, anchor_minutes
from ..snapshots.models import Snapshot
from ..snapshots.ordering import history_until
from .tracker import DEFAULT_TOLERANCE, MigrationTrace, active_dominant_price, track_migration

DEFAULT_IB_WINDOW_MINUTES = 60


@dataclass(frozen=True)
class MigrationPoint:
    time: str
    open: Optional[float]
    high: Optional[float]
    low: Optional[float]
    close: Optional[float]
    volume: Optional[float]
    dominant_price: Optional[float]
    ib_high: Optional[float]
    ib_low: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def migration_series(
    snapshots: Iterable[Snapshot | Mapping[str, Any]],
    selected_time: str,
    *,
    anchor: str = DEFAULT_ANCHOR,
    ib_window_minutes: int = DEFAULT_IB_WINDOW_MINUTES,
    tolerance: float = DEFAULT_TOLERANCE,
    trace: Optional[MigrationTrace] = None,
) -> List[MigrationPoint]:
    """Chart rows from the session anchor through ``selected_time``.

    IB levels are only reported once the initial-balance window has closed.
    """

    snapshots = list(snapshots)
    if trace is None:
        trace = track_migration(snapshots, selected_time, tolerance=tolerance)
    start = anchor_minutes(anchor)
    ib_complete = start + max(0, int(ib_window_minutes))

    points: List[MigrationPoint] = []
    for snap in history_until(snapshots, selected_time):
        if snap.minutes < start:
            continue
        post_ib = snap.minutes >= ib_complete
        points.append(
            MigrationPoint(
                time=snap.time,
                open=snap.open,
                high=snap.high,
                low=snap.low,
                close=snap.close,
                volume=snap.volume,
                dominant_price=active_dominant_price(trace.slices, snap.time, snap.close),
                ib_high=snap.ib_high if post_ib else None,
                ib_low=snap.ib_low if post_ib else None,
            )
        )
    return points


__all__ = ["DEFAULT_IB_WINDOW_MINUTES", "MigrationPoint", "migration_series"]
