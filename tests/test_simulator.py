import pytest
from prometheus_client import REGISTRY

from _helpers import price_path
from auction_engine.simulator import (
    FIXED,
    SMART_BREAKEVEN,
    TRAILING,
    InvalidSetupError,
    SimulationStatus,
    StrategySetup,
    TrailingPolicy,
    setup_from_levels,
    setup_from_payload,
    simulate_setup,
)
from auction_engine.snapshots import Snapshot

SCENARIO = [("09:30", 100.0), ("09:35", 105.0), ("09:40", 95.0)]


def test_fixed_policy_stops_out_at_original_stop():
    report = simulate_setup({"entry": 100, "stop": 98, "target": 106}, price_path(SCENARIO))
    fixed = report[FIXED]

    assert fixed.status is SimulationStatus.CLOSED
    assert fixed.result == "loss"
    assert fixed.entry_time == "09:30"
    assert fixed.exit_time == "09:40"
    assert fixed.exit_price == 98.0
    assert fixed.realized_pnl == pytest.approx(-2.0)
    assert fixed.realized_r == pytest.approx(-1.0)
    assert fixed.max_favorable_excursion == pytest.approx(5.0)


def test_smart_policy_scratches_after_breakeven_move():
    report = simulate_setup(setup_from_levels(100, 98, 106), price_path(SCENARIO), breakeven_threshold=4.0)
    smart = report[SMART_BREAKEVEN]

    assert smart.status is SimulationStatus.CLOSED
    assert smart.result == "scratch"
    assert smart.exit_price == 100.0
    assert smart.realized_pnl == pytest.approx(0.0)
    assert smart.final_stop == 100.0


def test_smart_policy_keeps_stop_below_threshold():
    path = price_path([("09:30", 100.0), ("09:35", 103.5), ("09:40", 97.0)])
    smart = simulate_setup(setup_from_levels(100, 98, 106), path, breakeven_threshold=4.0)[SMART_BREAKEVEN]
    assert smart.result == "loss"
    assert smart.exit_price == 98.0
    assert smart.realized_r == pytest.approx(-1.0)


def test_trailing_policy_ratchets_to_prior_period_low():
    trailing = simulate_setup(setup_from_levels(100, 98, 106), price_path(SCENARIO))[TRAILING]

    assert trailing.result == "win"
    assert trailing.exit_price == 105.0
    assert trailing.realized_pnl == pytest.approx(5.0)
    assert trailing.realized_r == pytest.approx(2.5)


def test_fixed_target_hit_is_one_r_win():
    path = price_path([("09:30", 100.0), ("09:35", 101.0), ("09:40", 102.5)])
    fixed = simulate_setup(setup_from_levels(100, 98, 102), path)[FIXED]

    assert fixed.result == "win"
    assert fixed.exit_price == 102.0
    assert fixed.realized_r == pytest.approx(1.0)


def test_short_setup_mirrors_long_rules():
    path = price_path([("09:30", 100.0), ("09:35", 97.0), ("09:40", 103.0)])
    report = simulate_setup(setup_from_levels(100, 102, 96), path)

    assert report.setup.direction == "short"
    assert report[FIXED].result == "loss"
    assert report[FIXED].realized_r == pytest.approx(-1.0)
    assert report[SMART_BREAKEVEN].result == "loss"
    assert report[TRAILING].result == "win"
    assert report[TRAILING].exit_price == 97.0


def test_entry_waits_for_pullback_into_zone():
    path = price_path([("09:30", 101.0), ("09:35", 100.0), ("09:40", 102.0)])
    fixed = simulate_setup(setup_from_levels(100, 98, 102), path)[FIXED]
    assert fixed.entry_time == "09:35"
    assert fixed.result == "win"


def test_untriggered_setup_stays_pending():
    path = price_path([("09:30", 101.0), ("09:35", 102.0)])
    report = simulate_setup(setup_from_levels(100, 98, 106), path)
    for result in report.results:
        assert result.status is SimulationStatus.PENDING
        assert result.result == "pending"
        assert result.realized_r == 0.0
    assert report.best_policy() is None


def test_empty_forward_data_is_all_pending():
    report = simulate_setup(setup_from_levels(100, 98, 106), [])
    assert {result.status for result in report.results} == {SimulationStatus.PENDING}


def test_open_position_finalized_at_last_price():
    profit = simulate_setup(setup_from_levels(100, 95, 110), price_path([("09:30", 100.0), ("09:35", 103.0)]))[FIXED]
    assert profit.status is SimulationStatus.OPEN
    assert profit.result == "open (profit)"
    assert profit.exit_price == 103.0
    assert profit.realized_r == pytest.approx(0.6)

    drawdown = simulate_setup(setup_from_levels(100, 95, 110), price_path([("09:30", 100.0), ("09:35", 98.0)]))[FIXED]
    assert drawdown.result == "open (drawdown)"
    assert drawdown.realized_pnl == pytest.approx(-2.0)


def test_gap_through_target_exits_at_target():
    path = price_path([("09:30", 100.0), ("09:35", 110.0)])
    fixed = simulate_setup(setup_from_levels(100, 98, 106), path)[FIXED]
    assert fixed.exit_price == 106.0
    assert fixed.result == "win"


def test_snapshots_without_close_are_ignored():
    path = [Snapshot(time="09:30", close=100.0), Snapshot(time="09:35"), Snapshot(time="09:40", close=98.0)]
    fixed = simulate_setup(setup_from_levels(100, 98, 106), path)[FIXED]
    assert fixed.exit_time == "09:40"
    assert fixed.result == "loss"


def test_forward_order_does_not_matter():
    ordered = simulate_setup(setup_from_levels(100, 98, 106), price_path(SCENARIO))
    reversed_input = simulate_setup(setup_from_levels(100, 98, 106), list(reversed(price_path(SCENARIO))))
    assert ordered == reversed_input


def test_trailing_stop_never_loosens():
    setup = setup_from_levels(100, 97, 120)
    policy = TrailingPolicy(setup, period_minutes=5)
    stops = []
    for snap in price_path(
        [
            ("09:30", 100.0),
            ("09:32", 99.0),
            ("09:35", 104.0),
            ("09:40", 102.0),
            ("09:45", 103.0),
            ("09:47", 101.5),
            ("09:50", 108.0),
            ("09:55", 107.0),
        ]
    ):
        policy.step(snap)
        stops.append(policy.stop)

    assert stops == sorted(stops)
    assert stops[-1] > setup.stop


def test_short_trailing_stop_only_moves_down():
    setup = setup_from_levels(100, 103, 80)
    policy = TrailingPolicy(setup, period_minutes=5)
    stops = []
    for snap in price_path(
        [
            ("09:30", 100.0),
            ("09:32", 101.0),
            ("09:35", 96.0),
            ("09:37", 97.0),
            ("09:40", 95.0),
            ("09:45", 94.0),
            ("09:47", 94.5),
            ("09:50", 92.0),
            ("09:55", 93.0),
        ]
    ):
        policy.step(snap)
        stops.append(policy.stop)

    assert stops == sorted(stops, reverse=True)
    assert stops == [103.0, 103.0, 101.0, 101.0, 97.0, 95.0, 95.0, 94.5, 92.0]
    result = policy.finalize()
    assert result.exit_price == 92.0
    assert result.result == "win"


def test_best_policy_scores_exit_strategies():
    report = simulate_setup(setup_from_levels(100, 98, 106), price_path(SCENARIO))
    assert report.best_policy().policy == TRAILING
    assert report.to_dict()["best_policy"] == TRAILING


def test_degenerate_risk_is_clamped():
    setup = setup_from_levels(100, 100, 105)
    assert setup.risk == 1.0
    assert StrategySetup(entry=100, stop=98, target=106).risk == 2.0


@pytest.mark.parametrize(
    "levels,reason",
    [
        ((None, 98, 106), "missing_entry"),
        ((100, "abc", 106), "invalid_stop"),
        ((100, 98, None), "missing_target"),
        ((100, 98, 100), "target_equals_entry"),
        ((100, 102, 106), "stop_not_below_entry"),
        ((100, 98, 95), "stop_not_above_entry"),
    ],
)
def test_invalid_setups_are_rejected(levels, reason):
    with pytest.raises(InvalidSetupError, match=reason):
        setup_from_levels(*levels)


def test_setup_payload_accepts_target_list():
    setup = setup_from_payload({"entry": "100", "stop": 98.0, "targets": [104.0, 108.0]})
    assert setup.target == 104.0
    assert setup.direction == "long"
    with pytest.raises(InvalidSetupError):
        simulate_setup({"entry": 100, "stop": 98}, price_path(SCENARIO))


def test_outcomes_are_counted():
    labels = {"policy": FIXED, "result": "loss", "source": "pytest"}
    before = REGISTRY.get_sample_value("simulation_outcomes_total", labels) or 0.0
    simulate_setup(setup_from_levels(100, 98, 106), price_path(SCENARIO), telemetry_source="pytest")
    assert REGISTRY.get_sample_value("simulation_outcomes_total", labels) == before + 1
