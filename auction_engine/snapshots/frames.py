"""pandas adapters between OHLCV frames, snapshots and profile rows."""

from __future__ import annotations

from typing import List, TYPE_CHECKING

import pandas as pd

from .models import Snapshot, coerce_float

if TYPE_CHECKING:
    from ..profile.builder import VolumeProfile

TZ_ET = "America/New_York"


def _ensure_datetime_index(frame: pd.DataFrame) -> pd.DataFrame:
    if "time" in frame.columns and not isinstance(frame.index, pd.DatetimeIndex):
        frame = frame.set_index("time")
    if not isinstance(frame.index, pd.DatetimeIndex):
        frame = frame.copy()
        frame.index = pd.to_datetime(frame.index)
    if frame.index.tz is not None:
        frame = frame.copy()
        frame.index = frame.index.tz_convert(TZ_ET)
    return frame.sort_index()


def snapshots_from_frame(frame: pd.DataFrame) -> List[Snapshot]:
    """Convert one session of OHLCV bars into snapshots.

    Bar volume is accumulated so each snapshot carries session-cumulative
    volume, the way the upstream recorder reports it.  Tz-aware indexes are
    converted to New York time; naive indexes are taken as session-local.
    """

    if frame is None or frame.empty:
        return []
    frame = _ensure_datetime_index(frame)
    if "volume" in frame.columns:
        cumulative = frame["volume"].fillna(0.0).astype(float).cumsum()
    else:
        cumulative = pd.Series([None] * len(frame), index=frame.index, dtype=object)

    snapshots: List[Snapshot] = []
    for (stamp, bar), volume in zip(frame.iterrows(), cumulative):
        snapshots.append(
            Snapshot(
                time=stamp.strftime("%H:%M"),
                open=coerce_float(bar.get("open")),
                high=coerce_float(bar.get("high")),
                low=coerce_float(bar.get("low")),
                close=coerce_float(bar.get("close")),
                volume=coerce_float(volume),
                vwap=coerce_float(bar.get("vwap")),
                session_date=stamp.strftime("%Y-%m-%d"),
            )
        )
    return snapshots


def profile_to_frame(profile: "VolumeProfile") -> pd.DataFrame:
    """Profile rows as a DataFrame, top of book first."""

    records = [
        {
            "price": row.price,
            "letters": row.letters,
            "tpo_count": len(row.codes),
            "volume": row.volume,
        }
        for row in profile.rows
    ]
    return pd.DataFrame.from_records(records, columns=["price", "letters", "tpo_count", "volume"])


__all__ = ["profile_to_frame", "snapshots_from_frame"]
