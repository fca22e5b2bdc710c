"""Trade setup and simulation result records."""

from __future__ import annotations

import enum
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional

RISK_EPSILON = 1e-9
MIN_RISK = 1.0

FIXED = "fixed"
SMART_BREAKEVEN = "smart_breakeven"
TRAILING = "trailing"
POLICY_ORDER = (FIXED, SMART_BREAKEVEN, TRAILING)


class InvalidSetupError(ValueError):
    """Raised when entry/stop/target do not form an actionable setup."""


class SimulationStatus(str, enum.Enum):
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class StrategySetup:
    entry: float
    stop: float
    target: float

    @property
    def direction(self) -> str:
        return "long" if self.target > self.entry else "short"

    @property
    def risk(self) -> float:
        """Entry-to-stop distance, clamped to ``MIN_RISK`` when degenerate."""

        distance = abs(self.entry - self.stop)
        if distance < RISK_EPSILON:
            return MIN_RISK
        return distance

    def pnl(self, price: float) -> float:
        if self.direction == "long":
            return price - self.entry
        return self.entry - price

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry": self.entry,
            "stop": self.stop,
            "target": self.target,
            "direction": self.direction,
            "risk": self.risk,
        }


def _level(value: Any, name: str) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidSetupError(f"missing_{name}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidSetupError(f"invalid_{name}") from exc
    if not math.isfinite(number):
        raise InvalidSetupError(f"invalid_{name}")
    return number


def setup_from_levels(entry: Any, stop: Any, target: Any) -> StrategySetup:
    """Validate a numeric entry/stop/target triple.

    The direction is implied by the target.  A stop on the far side of the
    entry from the target is rejected; a stop at the entry is accepted and
    its risk clamped.
    """

    entry_val = _level(entry, "entry")
    stop_val = _level(stop, "stop")
    target_val = _level(target, "target")
    if abs(target_val - entry_val) < RISK_EPSILON:
        raise InvalidSetupError("target_equals_entry")
    if target_val > entry_val and stop_val > entry_val + RISK_EPSILON:
        raise InvalidSetupError("stop_not_below_entry")
    if target_val < entry_val and stop_val < entry_val - RISK_EPSILON:
        raise InvalidSetupError("stop_not_above_entry")
    return StrategySetup(entry=entry_val, stop=stop_val, target=target_val)


def setup_from_payload(payload: Mapping[str, Any] | StrategySetup) -> StrategySetup:
    if isinstance(payload, StrategySetup):
        return payload
    if not isinstance(payload, Mapping):
        raise InvalidSetupError("payload_not_mapping")
    target = payload.get("target")
    if target is None:
        targets = payload.get("targets") or []
        if isinstance(targets, (list, tuple)) and targets:
            target = targets[0]
    return setup_from_levels(payload.get("entry"), payload.get("stop"), target)


@dataclass(frozen=True)
class SimulationResult:
    policy: str
    status: SimulationStatus
    result: str
    entry_time: Optional[str]
    exit_time: Optional[str]
    exit_price: Optional[float]
    max_favorable_excursion: float
    realized_pnl: float
    realized_r: float
    final_stop: float

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload


__all__ = [
    "FIXED",
    "InvalidSetupError",
    "MIN_RISK",
    "POLICY_ORDER",
    "RISK_EPSILON",
    "SMART_BREAKEVEN",
    "SimulationResult",
    "SimulationStatus",
    "StrategySetup",
    "TRAILING",
    "setup_from_levels",
    "setup_from_payload",
]
