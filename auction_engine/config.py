"""Configuration module for the market profile engine.

This module centralizes the reading of environment variables and provides a
`Settings` object that other modules can import.  It uses Pydantic's
`BaseSettings` to automatically read values from a `.env` file when present.

Every value here is a default; callers can still pass explicit resolution,
tick size or strategy constants per request.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .profile.periods import ProfileConfigError, resolve_resolution


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    default_tick_size: float = Field(
        default=0.25,
        gt=0,
        validation_alias=AliasChoices("AUCTION_TICK_SIZE", "default_tick_size"),
    )
    default_resolution: str = Field(
        default="30m",
        validation_alias=AliasChoices("AUCTION_RESOLUTION", "default_resolution"),
    )
    session_anchor: str = Field(
        default="09:30",
        validation_alias=AliasChoices("AUCTION_SESSION_ANCHOR", "session_anchor"),
    )
    ib_window_minutes: int = Field(
        default=60,
        ge=0,
        validation_alias=AliasChoices("AUCTION_IB_WINDOW_MINUTES", "ib_window_minutes"),
    )
    profile_padding_ticks: int = Field(
        default=2,
        ge=0,
        validation_alias=AliasChoices("AUCTION_PROFILE_PADDING_TICKS", "profile_padding_ticks"),
    )
    migration_tolerance: float = Field(
        default=0.01,
        ge=0,
        validation_alias=AliasChoices("AUCTION_MIGRATION_TOLERANCE", "migration_tolerance"),
    )
    breakeven_threshold: float = Field(
        default=4.0,
        ge=0,
        validation_alias=AliasChoices("AUCTION_BREAKEVEN_THRESHOLD", "breakeven_threshold"),
    )
    trailing_period_minutes: int = Field(
        default=5,
        gt=0,
        validation_alias=AliasChoices("AUCTION_TRAILING_PERIOD_MINUTES", "trailing_period_minutes"),
    )
    telemetry_source: str | None = Field(
        default="engine",
        validation_alias=AliasChoices("AUCTION_TELEMETRY_SOURCE", "telemetry_source"),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("AUCTION_LOG_LEVEL", "LOG_LEVEL", "log_level"),
    )

    @field_validator("default_resolution", mode="before")
    @classmethod
    def _normalize_resolution(cls, value: str) -> str:
        try:
            return resolve_resolution(value)
        except ProfileConfigError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return str(value or "INFO").strip().upper()


@lru_cache()
def get_settings() -> Settings:
    """Return a cached instance of the engine settings.

    Pydantic caches the parsed environment variables so that repeated calls
    throughout the engine are inexpensive.
    """

    return Settings()
