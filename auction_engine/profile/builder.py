"""TPO and volume distribution profile construction.

Every snapshot contributes its period code and its incremental volume to the
price buckets spanned by its open/close straddle.  Accumulation happens in
maps local to a single call; the returned profile is immutable.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..snapshots.models import Snapshot, coerce_float
from ..snapshots.ordering import order_snapshots
from ..telemetry import record_snapshot_skipped, record_volume_regression
from .periods import (
    DEFAULT_ANCHOR,
    ProfileConfigError,
    anchor_minutes,
    code_for_index,
    period_index,
    period_minutes,
    resolve_resolution,
)

BUCKET_EPSILON = 1e-9
DEFAULT_PADDING_TICKS = 2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileRow:
    price: float
    codes: Tuple[str, ...]
    volume: float

    @property
    def letters(self) -> str:
        return "".join(self.codes)

    def to_dict(self) -> Dict[str, Any]:
        return {"price": self.price, "letters": self.letters, "volume": self.volume}


@dataclass(frozen=True)
class VolumeProfile:
    rows: Tuple[ProfileRow, ...]
    min_price: float
    max_price: float
    max_volume: float
    resolution: str
    tick_size: float

    @property
    def total_volume(self) -> float:
        return sum(row.volume for row in self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [row.to_dict() for row in self.rows],
            "min_price": self.min_price,
            "max_price": self.max_price,
            "max_volume": self.max_volume,
            "resolution": self.resolution,
            "tick_size": self.tick_size,
        }


def validate_tick_size(tick_size: Any) -> float:
    value = coerce_float(tick_size)
    if value is None or value <= 0:
        raise ProfileConfigError(f"invalid_tick_size:{tick_size!r}")
    return value


def bucket_index(price: float, tick_size: float) -> int:
    return int(math.floor(price / tick_size + BUCKET_EPSILON))


def bucket_price(index: int, tick_size: float) -> float:
    return round(index * tick_size, 8)


def build_profile(
    snapshots: Iterable[Snapshot | Mapping[str, Any]],
    *,
    resolution: str | int = "30m",
    tick_size: float = 0.25,
    ib_high: Optional[float] = None,
    ib_low: Optional[float] = None,
    anchor: str = DEFAULT_ANCHOR,
    padding_ticks: int = DEFAULT_PADDING_TICKS,
) -> VolumeProfile:
    """Build the TPO/volume profile for a snapshot history.

    Args:
        snapshots: Snapshot records or raw payloads, in any order.
        resolution: ``"5m"`` or ``"30m"`` period length for letters.
        tick_size: Price bucket size; must be positive.
        ib_high: Optional initial-balance high to include in the price range.
        ib_low: Optional initial-balance low to include in the price range.
        anchor: Session anchor time the first period starts at.
        padding_ticks: Empty rows added above and below the observed range.

    Returns:
        A :class:`VolumeProfile` whose rows run from ``max_price`` down to
        ``min_price`` one tick apart.

    Raises:
        ProfileConfigError: On a non-positive tick size, an unknown
            resolution, a malformed anchor or an empty snapshot list.
    """

    tick = validate_tick_size(tick_size)
    resolution_key = resolve_resolution(resolution)
    length = period_minutes(resolution_key)
    anchor_minutes(anchor)
    ordered = order_snapshots(snapshots)
    if not ordered:
        raise ProfileConfigError("empty_snapshots")

    letters: Dict[int, Dict[str, int]] = {}
    volumes: Dict[int, float] = {}
    observed_low: Optional[float] = None
    observed_high: Optional[float] = None
    previous_cumulative = 0.0

    for snap in ordered:
        if snap.open is None or snap.close is None:
            record_snapshot_skipped("missing_open_close")
            logger.info("snapshot skipped for profile", extra={"time": snap.time, "reason": "missing_open_close"})
            continue

        index = period_index(snap.time, length, anchor)
        code = code_for_index(index)
        range_low = min(snap.open, snap.close)
        range_high = max(snap.open, snap.close)
        observed_low = range_low if observed_low is None else min(observed_low, range_low)
        observed_high = range_high if observed_high is None else max(observed_high, range_high)

        delta = 0.0
        if snap.volume is not None:
            delta = snap.volume - previous_cumulative
            if delta < 0:
                record_volume_regression()
                logger.warning(
                    "cumulative volume decreased",
                    extra={"time": snap.time, "previous": previous_cumulative, "current": snap.volume},
                )
                delta = 0.0
            previous_cumulative = snap.volume

        start = bucket_index(range_low, tick)
        end = bucket_index(range_high, tick)
        per_bucket = delta / (end - start + 1)
        for bucket in range(start, end + 1):
            letters.setdefault(bucket, {}).setdefault(code, index)
            volumes[bucket] = volumes.get(bucket, 0.0) + per_bucket

    if observed_low is None or observed_high is None:
        return VolumeProfile(
            rows=(),
            min_price=0.0,
            max_price=0.0,
            max_volume=0.0,
            resolution=resolution_key,
            tick_size=tick,
        )

    hint_high = coerce_float(ib_high)
    hint_low = coerce_float(ib_low)
    if hint_high:
        observed_high = max(observed_high, hint_high)
    if hint_low:
        observed_low = min(observed_low, hint_low)

    padding = max(0, int(padding_ticks))
    low_bound = bucket_index(observed_low, tick) - padding
    high_bound = int(math.ceil(observed_high / tick - BUCKET_EPSILON)) + padding

    rows: List[ProfileRow] = []
    for bucket in range(high_bound, low_bound - 1, -1):
        touched = letters.get(bucket, {})
        codes = tuple(code for code, _ in sorted(touched.items(), key=lambda item: (item[1], item[0])))
        rows.append(ProfileRow(price=bucket_price(bucket, tick), codes=codes, volume=volumes.get(bucket, 0.0)))

    return VolumeProfile(
        rows=tuple(rows),
        min_price=bucket_price(low_bound, tick),
        max_price=bucket_price(high_bound, tick),
        max_volume=max(volumes.values(), default=0.0),
        resolution=resolution_key,
        tick_size=tick,
    )


__all__ = [
    "ProfileRow",
    "VolumeProfile",
    "bucket_index",
    "bucket_price",
    "build_profile",
    "validate_tick_size",
]
