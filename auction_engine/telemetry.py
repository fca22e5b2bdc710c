"""Prometheus metrics helpers for the market profile engine."""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest


VOLUME_REGRESSIONS = Counter(
    "volume_regressions_total",
    "Snapshots whose cumulative volume dropped below the previous snapshot.",
)

SNAPSHOTS_SKIPPED = Counter(
    "snapshots_skipped_total",
    "Snapshots left out of profile construction, broken out by reason.",
    labelnames=("reason",),
)

PERIOD_ALPHABET_EXHAUSTED = Counter(
    "period_alphabet_exhausted_total",
    "Period codes that fell past the single-symbol TPO alphabet.",
)

SIMULATION_OUTCOMES = Counter(
    "simulation_outcomes_total",
    "Finalized strategy simulation results by exit policy and result label.",
    labelnames=("policy", "result", "source"),
)


def record_volume_regression() -> None:
    VOLUME_REGRESSIONS.inc()


def record_snapshot_skipped(reason: str) -> None:
    SNAPSHOTS_SKIPPED.labels(reason=reason or "unknown").inc()


def record_alphabet_exhausted() -> None:
    PERIOD_ALPHABET_EXHAUSTED.inc()


def record_simulation_outcome(policy: str, result: str, source: str) -> None:
    SIMULATION_OUTCOMES.labels(
        policy=policy or "unknown",
        result=result or "unknown",
        source=source or "unknown",
    ).inc()


def prometheus_response() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST


__all__ = [
    "PERIOD_ALPHABET_EXHAUSTED",
    "SIMULATION_OUTCOMES",
    "SNAPSHOTS_SKIPPED",
    "VOLUME_REGRESSIONS",
    "prometheus_response",
    "record_alphabet_exhausted",
    "record_simulation_outcome",
    "record_snapshot_skipped",
    "record_volume_regression",
]
