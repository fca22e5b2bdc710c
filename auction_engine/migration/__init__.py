"""Dominant-price migration tracking."""

from ..snapshots.models import MigrationSlice
from .tracker import (
    MIGRATION_SOURCES,
    MigrationInputError,
    MigrationSummary,
    MigrationTrace,
    active_dominant_price,
    migration_summary,
    track_migration,
    value_center,
)
from .series import MigrationPoint, migration_series

__all__ = [
    "MIGRATION_SOURCES",
    "MigrationInputError",
    "MigrationPoint",
    "MigrationSlice",
    "MigrationSummary",
    "MigrationTrace",
    "active_dominant_price",
    "migration_series",
    "migration_summary",
    "track_migration",
    "value_center",
]
