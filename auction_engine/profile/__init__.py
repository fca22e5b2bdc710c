"""TPO / volume profile construction."""

from .periods import (
    PERIOD_ALPHABET,
    PRE_MARKET_CODE,
    ProfileConfigError,
    code_for_index,
    period_code,
    period_index,
    period_minutes,
    resolve_resolution,
)
from .builder import ProfileRow, VolumeProfile, bucket_index, bucket_price, build_profile, validate_tick_size
from .value_area import ValueArea, single_prints, value_area

__all__ = [
    "PERIOD_ALPHABET",
    "PRE_MARKET_CODE",
    "ProfileConfigError",
    "ProfileRow",
    "ValueArea",
    "VolumeProfile",
    "bucket_index",
    "bucket_price",
    "build_profile",
    "code_for_index",
    "period_code",
    "period_index",
    "period_minutes",
    "resolve_resolution",
    "single_prints",
    "validate_tick_size",
    "value_area",
]
