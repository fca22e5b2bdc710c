"""Forward replay of a trade setup under every exit policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..snapshots.models import Snapshot
from ..snapshots.ordering import order_snapshots
from ..telemetry import record_simulation_outcome
from .models import POLICY_ORDER, SimulationResult, SimulationStatus, StrategySetup, setup_from_payload
from .policies import (
    DEFAULT_BREAKEVEN_THRESHOLD,
    DEFAULT_TRAILING_PERIOD_MINUTES,
    ExitPolicy,
    FixedPolicy,
    SmartBreakevenPolicy,
    TrailingPolicy,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationReport:
    setup: StrategySetup
    results: Tuple[SimulationResult, ...]

    def __getitem__(self, policy: str) -> SimulationResult:
        for result in self.results:
            if result.policy == policy:
                return result
        raise KeyError(policy)

    def best_policy(self) -> Optional[SimulationResult]:
        """Highest realized R among triggered policies; ties keep policy order."""

        triggered = [item for item in self.results if item.status is not SimulationStatus.PENDING]
        if not triggered:
            return None
        return max(triggered, key=lambda item: (item.realized_r, -POLICY_ORDER.index(item.policy)))

    def to_dict(self) -> Dict[str, Any]:
        best = self.best_policy()
        return {
            "setup": self.setup.to_dict(),
            "results": {item.policy: item.to_dict() for item in self.results},
            "best_policy": best.policy if best else None,
        }


def build_policies(
    setup: StrategySetup,
    *,
    breakeven_threshold: float = DEFAULT_BREAKEVEN_THRESHOLD,
    trailing_period_minutes: int = DEFAULT_TRAILING_PERIOD_MINUTES,
) -> List[ExitPolicy]:
    return [
        FixedPolicy(setup),
        SmartBreakevenPolicy(setup, threshold=breakeven_threshold),
        TrailingPolicy(setup, period_minutes=trailing_period_minutes),
    ]


def simulate_setup(
    setup: StrategySetup | Mapping[str, Any],
    forward: Iterable[Snapshot | Mapping[str, Any]],
    *,
    breakeven_threshold: float = DEFAULT_BREAKEVEN_THRESHOLD,
    trailing_period_minutes: int = DEFAULT_TRAILING_PERIOD_MINUTES,
    telemetry_source: Optional[str] = None,
) -> SimulationReport:
    """Replay ``setup`` across the snapshots after the decision point.

    ``forward`` must already exclude the current snapshot.  An empty forward
    list leaves every policy pending.

    Raises:
        InvalidSetupError: When ``setup`` is a payload without a coherent
            entry/stop/target triple.
    """

    setup = setup_from_payload(setup)
    policies = build_policies(
        setup,
        breakeven_threshold=breakeven_threshold,
        trailing_period_minutes=trailing_period_minutes,
    )
    for snap in order_snapshots(forward):
        for policy in policies:
            policy.step(snap)
        if all(policy.closed for policy in policies):
            break

    results = tuple(policy.finalize() for policy in policies)
    if telemetry_source:
        for result in results:
            record_simulation_outcome(result.policy, result.result, telemetry_source)
    logger.debug(
        "setup simulated",
        extra={"direction": setup.direction, "results": {item.policy: item.result for item in results}},
    )
    return SimulationReport(setup=setup, results=results)


__all__ = ["SimulationReport", "build_policies", "simulate_setup"]
