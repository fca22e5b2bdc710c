"""Time ordering and point-in-time slicing of snapshot sequences."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from .clock import clock_minutes
from .models import Snapshot, snapshot_from_payload


def order_snapshots(snapshots: Iterable[Snapshot | Mapping[str, Any]]) -> List[Snapshot]:
    """Return a fresh, time-sorted list.  Ties keep their input order."""

    normalized = [snapshot_from_payload(item) for item in snapshots]
    return sorted(normalized, key=lambda snap: snap.minutes)


def history_until(snapshots: Iterable[Snapshot | Mapping[str, Any]], selected_time: str) -> List[Snapshot]:
    """Sorted snapshots at or before ``selected_time`` (no look-ahead)."""

    cutoff = clock_minutes(selected_time)
    return [snap for snap in order_snapshots(snapshots) if snap.minutes <= cutoff]


def forward_after(snapshots: Iterable[Snapshot | Mapping[str, Any]], selected_time: str) -> List[Snapshot]:
    """Sorted snapshots strictly after ``selected_time``."""

    cutoff = clock_minutes(selected_time)
    return [snap for snap in order_snapshots(snapshots) if snap.minutes > cutoff]


__all__ = ["forward_after", "history_until", "order_snapshots"]
