"""Exit policies replayed independently over the same forward snapshots.

Each policy owns its stop, status and excursion tracking; none reads
another's state.  Per snapshot the order is: trailing rollover, entry
trigger, excursion update, stop check, target check, break-even adjustment.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..snapshots.models import Snapshot
from .models import (
    FIXED,
    RISK_EPSILON,
    SMART_BREAKEVEN,
    TRAILING,
    SimulationResult,
    SimulationStatus,
    StrategySetup,
)

DEFAULT_BREAKEVEN_THRESHOLD = 4.0
DEFAULT_TRAILING_PERIOD_MINUTES = 5

logger = logging.getLogger(__name__)


def label_from_pnl(pnl: float) -> str:
    if pnl > RISK_EPSILON:
        return "win"
    if pnl < -RISK_EPSILON:
        return "loss"
    return "scratch"


class ExitPolicy:
    """Fixed stop/target exit; the base for the adjusting policies."""

    name = FIXED

    def __init__(self, setup: StrategySetup) -> None:
        self.setup = setup
        self.long = setup.direction == "long"
        self.stop = setup.stop
        self.status = SimulationStatus.PENDING
        self.result = "pending"
        self.entry_time: Optional[str] = None
        self.exit_time: Optional[str] = None
        self.exit_price: Optional[float] = None
        self.max_favorable = 0.0
        self.last_time: Optional[str] = None
        self.last_price: Optional[float] = None

    @property
    def closed(self) -> bool:
        return self.status is SimulationStatus.CLOSED

    def _triggered(self, price: float) -> bool:
        if self.long:
            return price <= self.setup.entry
        return price >= self.setup.entry

    def _stop_hit(self, price: float) -> bool:
        if self.long:
            return price <= self.stop
        return price >= self.stop

    def _target_hit(self, price: float) -> bool:
        if self.long:
            return price >= self.setup.target
        return price <= self.setup.target

    def _stop_label(self) -> str:
        return label_from_pnl(self.setup.pnl(self.stop))

    def _before_price(self, snap: Snapshot) -> None:
        return None

    def _after_price(self, snap: Snapshot, price: float, pnl: float) -> None:
        return None

    def _close(self, snap: Snapshot, price: float, result: str) -> None:
        self.status = SimulationStatus.CLOSED
        self.exit_time = snap.time
        self.exit_price = price
        self.result = result

    def step(self, snap: Snapshot) -> None:
        price = snap.close
        if self.closed or price is None:
            return
        if self.status is SimulationStatus.OPEN:
            self._before_price(snap)
        elif self._triggered(price):
            self.status = SimulationStatus.OPEN
            self.entry_time = snap.time
        else:
            return

        self.last_time = snap.time
        self.last_price = price
        pnl = self.setup.pnl(price)
        self.max_favorable = max(self.max_favorable, pnl)

        if self._stop_hit(price):
            self._close(snap, self.stop, self._stop_label())
            return
        if self._target_hit(price):
            self._close(snap, self.setup.target, "win")
            return
        self._after_price(snap, price, pnl)

    def finalize(self) -> SimulationResult:
        status = self.status
        result = self.result
        exit_time = self.exit_time
        exit_price = self.exit_price
        pnl = 0.0
        if status is SimulationStatus.CLOSED and exit_price is not None:
            pnl = self.setup.pnl(exit_price)
        elif status is SimulationStatus.OPEN and self.last_price is not None:
            exit_time = self.last_time
            exit_price = self.last_price
            pnl = self.setup.pnl(self.last_price)
            result = "open (profit)" if pnl > 0 else "open (drawdown)"
        return SimulationResult(
            policy=self.name,
            status=status,
            result=result,
            entry_time=self.entry_time,
            exit_time=exit_time,
            exit_price=exit_price,
            max_favorable_excursion=self.max_favorable,
            realized_pnl=pnl,
            realized_r=pnl / self.setup.risk,
            final_stop=self.stop,
        )


class FixedPolicy(ExitPolicy):
    name = FIXED


class SmartBreakevenPolicy(ExitPolicy):
    """Moves the stop to entry once, after profit exceeds the threshold."""

    name = SMART_BREAKEVEN

    def __init__(self, setup: StrategySetup, threshold: float = DEFAULT_BREAKEVEN_THRESHOLD) -> None:
        super().__init__(setup)
        self.threshold = float(threshold)
        self.moved = False

    def _stop_label(self) -> str:
        if abs(self.stop - self.setup.entry) < RISK_EPSILON:
            return "scratch"
        return "loss"

    def _after_price(self, snap: Snapshot, price: float, pnl: float) -> None:
        if self.moved or pnl <= self.threshold:
            return
        self.stop = self.setup.entry
        self.moved = True
        logger.debug("stop moved to break-even", extra={"time": snap.time, "stop": self.stop})


class TrailingPolicy(ExitPolicy):
    """Ratchets the stop to the prior period's extreme at each period rollover."""

    name = TRAILING

    def __init__(self, setup: StrategySetup, period_minutes: int = DEFAULT_TRAILING_PERIOD_MINUTES) -> None:
        super().__init__(setup)
        self.period_minutes = max(1, int(period_minutes))
        self.period: Optional[int] = None
        self.extreme: Optional[float] = None

    def _favorable(self, candidate: float) -> bool:
        if self.long:
            return candidate > self.stop
        return candidate < self.stop

    def _before_price(self, snap: Snapshot) -> None:
        period = snap.minutes // self.period_minutes
        if self.period is None or period == self.period:
            return
        if self.extreme is not None and self._favorable(self.extreme):
            logger.debug(
                "trailing stop ratcheted",
                extra={"time": snap.time, "from": self.stop, "to": self.extreme},
            )
            self.stop = self.extreme
        self.period = period
        self.extreme = None

    def _after_price(self, snap: Snapshot, price: float, pnl: float) -> None:
        if self.period is None:
            self.period = snap.minutes // self.period_minutes
        if self.extreme is None:
            self.extreme = price
        elif self.long:
            self.extreme = min(self.extreme, price)
        else:
            self.extreme = max(self.extreme, price)


__all__ = [
    "DEFAULT_BREAKEVEN_THRESHOLD",
    "DEFAULT_TRAILING_PERIOD_MINUTES",
    "ExitPolicy",
    "FixedPolicy",
    "SmartBreakevenPolicy",
    "TrailingPolicy",
    "label_from_pnl",
]
