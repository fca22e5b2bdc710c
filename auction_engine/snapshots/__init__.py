"""Snapshot records, normalization and ordering."""

from .clock import SnapshotParseError, clock_minutes, normalize_clock
from .models import MigrationSlice, Snapshot, coerce_float, snapshot_from_payload, snapshots_from_payloads
from .ordering import forward_after, history_until, order_snapshots
from .frames import profile_to_frame, snapshots_from_frame

__all__ = [
    "MigrationSlice",
    "Snapshot",
    "SnapshotParseError",
    "clock_minutes",
    "coerce_float",
    "forward_after",
    "history_until",
    "normalize_clock",
    "order_snapshots",
    "profile_to_frame",
    "snapshot_from_payload",
    "snapshots_from_frame",
    "snapshots_from_payloads",
]
