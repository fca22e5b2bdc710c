"""Trade setup replay under competing exit policies."""

from .models import (
    FIXED,
    MIN_RISK,
    POLICY_ORDER,
    SMART_BREAKEVEN,
    TRAILING,
    InvalidSetupError,
    SimulationResult,
    SimulationStatus,
    StrategySetup,
    setup_from_levels,
    setup_from_payload,
)
from .policies import ExitPolicy, FixedPolicy, SmartBreakevenPolicy, TrailingPolicy, label_from_pnl
from .engine import SimulationReport, build_policies, simulate_setup

__all__ = [
    "FIXED",
    "MIN_RISK",
    "POLICY_ORDER",
    "SMART_BREAKEVEN",
    "TRAILING",
    "ExitPolicy",
    "FixedPolicy",
    "InvalidSetupError",
    "SimulationReport",
    "SimulationResult",
    "SimulationStatus",
    "SmartBreakevenPolicy",
    "StrategySetup",
    "TrailingPolicy",
    "build_policies",
    "label_from_pnl",
    "setup_from_levels",
    "setup_from_payload",
    "simulate_setup",
]
