"""Point of control and value area derived from a built profile."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .builder import VolumeProfile

VALUE_AREA_FRACTION = 0.70


@dataclass(frozen=True)
class ValueArea:
    poc: float
    vah: float
    val: float
    volume_fraction: float


def _weights(profile: VolumeProfile) -> np.ndarray:
    volumes = np.array([row.volume for row in profile.rows], dtype=float)
    if volumes.sum() > 0:
        return volumes
    # No volume recorded: fall back to TPO counts.
    return np.array([len(row.codes) for row in profile.rows], dtype=float)


def value_area(profile: VolumeProfile, fraction: float = VALUE_AREA_FRACTION) -> Optional[ValueArea]:
    """Expand outward from the POC until ``fraction`` of the weight is captured.

    Rows are ordered top-down, so a smaller index is a higher price.  At each
    step the heavier neighbour is added; ties go to the row above.
    """

    if not profile.rows:
        return None
    weights = _weights(profile)
    total = float(weights.sum())
    if total <= 0:
        return None
    prices = np.array([row.price for row in profile.rows], dtype=float)

    candidates = np.flatnonzero(weights == weights.max())
    midpoint = (prices.max() + prices.min()) / 2.0
    poc_idx = int(min(candidates, key=lambda idx: (abs(prices[idx] - midpoint), -prices[idx])))

    fraction = min(max(float(fraction), 0.0), 1.0)
    target = fraction * total
    upper = lower = poc_idx
    captured = float(weights[poc_idx])
    last = len(weights) - 1
    while captured < target - 1e-12 and (upper > 0 or lower < last):
        above = weights[upper - 1] if upper > 0 else -1.0
        below = weights[lower + 1] if lower < last else -1.0
        if above >= below:
            upper -= 1
            captured += float(above)
        else:
            lower += 1
            captured += float(below)

    return ValueArea(
        poc=float(prices[poc_idx]),
        vah=float(prices[upper]),
        val=float(prices[lower]),
        volume_fraction=captured / total,
    )


def single_prints(profile: VolumeProfile) -> List[float]:
    """Prices touched by exactly one period."""

    return [row.price for row in profile.rows if len(row.codes) == 1]


__all__ = ["ValueArea", "single_prints", "value_area"]
