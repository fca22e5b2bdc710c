"""Request schemas for callers handing work to the engine."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .profile.periods import ProfileConfigError, resolve_resolution
from .snapshots.clock import SnapshotParseError, normalize_clock


def _normalize_time(value: str) -> str:
    try:
        return normalize_clock(value)
    except SnapshotParseError as exc:
        raise ValueError(str(exc)) from exc


class ProfileConfig(BaseModel):
    """Per-request profile overrides; unset fields fall back to the engine settings."""

    model_config = ConfigDict(extra="forbid")

    resolution: Optional[Literal["5m", "30m"]] = None
    tick_size: Optional[float] = Field(default=None, gt=0)
    anchor: Optional[str] = None
    padding_ticks: Optional[int] = Field(default=None, ge=0)

    @field_validator("resolution", mode="before")
    @classmethod
    def _normalize_resolution(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        try:
            return resolve_resolution(value)
        except ProfileConfigError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("anchor")
    @classmethod
    def _check_anchor(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _normalize_time(value)


class SetupPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entry: float
    stop: float
    target: float | None = None
    targets: List[float] = Field(default_factory=list)


class SessionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    snapshots: List[Dict[str, Any]] = Field(min_length=1)
    selected_time: str | None = None
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    setup: SetupPayload | None = None

    @field_validator("selected_time")
    @classmethod
    def _check_selected(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_time(value)


__all__ = ["ProfileConfig", "SessionRequest", "SetupPayload"]
