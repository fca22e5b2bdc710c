"""Session analysis workflow.

Given the snapshots of one session and a selected time, build the profile
and migration trace over the history up to that time, and replay a proposed
setup over the snapshots strictly after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import Settings, get_settings
from .logging_setup import session_scope
from .migration.series import MigrationPoint, migration_series
from .migration.tracker import MigrationSummary, MigrationTrace, migration_summary, track_migration
from .profile.builder import VolumeProfile, build_profile
from .profile.periods import ProfileConfigError
from .profile.value_area import ValueArea, value_area
from .schemas import SessionRequest
from .simulator.engine import SimulationReport, simulate_setup
from .simulator.models import InvalidSetupError, StrategySetup, setup_from_payload
from .snapshots.clock import clock_minutes, normalize_clock
from .snapshots.models import Snapshot
from .snapshots.ordering import order_snapshots

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionAnalysis:
    selected_time: str
    profile: VolumeProfile
    value_area: Optional[ValueArea]
    migration: MigrationTrace
    migration_summary: MigrationSummary
    series: List[MigrationPoint]
    simulation: Optional[SimulationReport]
    setup_error: Optional[str]
    decoded: Optional[Mapping[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        area = self.value_area
        summary = self.migration_summary
        return {
            "selected_time": self.selected_time,
            "profile": self.profile.to_dict(),
            "value_area": (
                {"poc": area.poc, "vah": area.vah, "val": area.val, "volume_fraction": area.volume_fraction}
                if area
                else None
            ),
            "migration": self.migration.to_dict(),
            "migration_summary": {
                "net": summary.net,
                "direction": summary.direction,
                "slice_count": summary.slice_count,
            },
            "series": [point.to_dict() for point in self.series],
            "simulation": self.simulation.to_dict() if self.simulation else None,
            "setup_error": self.setup_error,
            "decoded": dict(self.decoded) if self.decoded is not None else None,
        }


def analyze_session(
    snapshots: Iterable[Snapshot | Mapping[str, Any]],
    selected_time: Optional[str] = None,
    *,
    resolution: Optional[str] = None,
    tick_size: Optional[float] = None,
    anchor: Optional[str] = None,
    padding_ticks: Optional[int] = None,
    setup: StrategySetup | Mapping[str, Any] | None = None,
    settings: Optional[Settings] = None,
) -> SessionAnalysis:
    """Run profile, migration and (optionally) simulation for one selected snapshot.

    Unset configuration falls back to :func:`get_settings`.  When
    ``selected_time`` is omitted the latest snapshot is selected.  An
    incoherent ``setup`` does not fail the analysis; it is reported through
    ``setup_error`` with no simulation.
    """

    settings = settings or get_settings()
    ordered = order_snapshots(snapshots)
    if not ordered:
        raise ProfileConfigError("empty_snapshots")

    cutoff_time = normalize_clock(selected_time) if selected_time else ordered[-1].time
    cutoff = clock_minutes(cutoff_time)
    history = [snap for snap in ordered if snap.minutes <= cutoff]
    forward = [snap for snap in ordered if snap.minutes > cutoff]
    if not history:
        raise ProfileConfigError(f"no_snapshots_at_or_before:{cutoff_time}")
    current = history[-1]
    anchor = anchor or settings.session_anchor

    with session_scope(current.session_date, current.time):
        profile = build_profile(
            history,
            resolution=resolution or settings.default_resolution,
            tick_size=tick_size if tick_size is not None else settings.default_tick_size,
            ib_high=current.ib_high,
            ib_low=current.ib_low,
            anchor=anchor,
            padding_ticks=padding_ticks if padding_ticks is not None else settings.profile_padding_ticks,
        )
        trace = track_migration(history, tolerance=settings.migration_tolerance)
        series = migration_series(
            history,
            current.time,
            anchor=anchor,
            ib_window_minutes=settings.ib_window_minutes,
            trace=trace,
        )

        simulation: Optional[SimulationReport] = None
        setup_error: Optional[str] = None
        if setup is not None:
            try:
                parsed = setup_from_payload(setup)
            except InvalidSetupError as exc:
                setup_error = str(exc)
                logger.info("no actionable setup", extra={"reason": setup_error, "time": current.time})
            else:
                simulation = simulate_setup(
                    parsed,
                    forward,
                    breakeven_threshold=settings.breakeven_threshold,
                    trailing_period_minutes=settings.trailing_period_minutes,
                    telemetry_source=settings.telemetry_source,
                )

    return SessionAnalysis(
        selected_time=current.time,
        profile=profile,
        value_area=value_area(profile),
        migration=trace,
        migration_summary=migration_summary(trace, tolerance=settings.migration_tolerance),
        series=series,
        simulation=simulation,
        setup_error=setup_error,
        decoded=current.decoded,
    )


def analyze_request(request: SessionRequest, *, settings: Optional[Settings] = None) -> SessionAnalysis:
    """Validated-request entry point for the serving layer."""

    setup: Optional[StrategySetup | Mapping[str, Any]] = None
    if request.setup is not None:
        setup = request.setup.model_dump()
    return analyze_session(
        request.snapshots,
        request.selected_time,
        resolution=request.profile.resolution,
        tick_size=request.profile.tick_size,
        anchor=request.profile.anchor,
        padding_ticks=request.profile.padding_ticks,
        setup=setup,
        settings=settings,
    )


__all__ = ["SessionAnalysis", "analyze_request", "analyze_session"]
