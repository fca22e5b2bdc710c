import pytest

from _helpers import nested_payload
from auction_engine.config import Settings
from auction_engine.engine import analyze_request, analyze_session
from auction_engine.profile import ProfileConfigError
from auction_engine.schemas import SessionRequest
from auction_engine.simulator import FIXED, SMART_BREAKEVEN, SimulationStatus


def _settings(**overrides):
    values = {
        "default_tick_size": 1.0,
        "default_resolution": "5m",
        "telemetry_source": None,
    }
    values.update(overrides)
    return Settings(**values)


def _session():
    return [
        nested_payload("09:30", open=99.0, close=100.0, volume=100, ib_high=101.0, ib_low=99.0, poc=100.0),
        nested_payload("09:35", open=100.0, close=101.0, volume=250, ib_high=101.0, ib_low=99.0, poc=100.0),
        nested_payload(
            "09:40",
            open=101.0,
            close=100.0,
            volume=400,
            ib_high=101.0,
            ib_low=99.0,
            poc=100.5,
            decoded={"bias": "LONG", "confidence": "70%"},
        ),
        nested_payload("09:45", open=100.0, close=100.0, volume=500, poc=100.5),
        nested_payload("09:50", open=100.0, close=105.0, volume=650, poc=101.0),
        nested_payload("09:55", open=105.0, close=95.0, volume=900, poc=101.0),
    ]


def test_history_stops_at_selected_snapshot():
    analysis = analyze_session(_session(), "09:40", settings=_settings())

    assert analysis.selected_time == "09:40"
    assert analysis.profile.total_volume == pytest.approx(400.0)
    assert [point.time for point in analysis.series] == ["09:30", "09:35", "09:40"]
    assert analysis.migration.source == "value_area"
    assert [item.dominant_price for item in analysis.migration.slices] == [100.0, 100.5]
    assert analysis.decoded == {"bias": "LONG", "confidence": "70%"}
    assert analysis.simulation is None


def test_profile_range_includes_selected_ib_levels():
    analysis = analyze_session(_session(), "09:40", settings=_settings())
    # IB 99-101, padded by two ticks.
    assert (analysis.profile.min_price, analysis.profile.max_price) == (97.0, 103.0)


def test_simulation_uses_only_forward_snapshots():
    analysis = analyze_session(
        _session(),
        "09:40",
        setup={"entry": 100, "stop": 98, "target": 106},
        settings=_settings(),
    )
    report = analysis.simulation

    assert report is not None
    assert report[FIXED].entry_time == "09:45"
    assert report[FIXED].result == "loss"
    assert report[SMART_BREAKEVEN].result == "scratch"


def test_incoherent_setup_is_reported_not_raised():
    analysis = analyze_session(
        _session(),
        "09:40",
        setup={"entry": 100, "stop": 102, "target": 106},
        settings=_settings(),
    )
    assert analysis.simulation is None
    assert analysis.setup_error == "stop_not_below_entry"


def test_latest_snapshot_selected_by_default():
    analysis = analyze_session(_session(), settings=_settings())
    assert analysis.selected_time == "09:55"
    assert analysis.profile.total_volume == pytest.approx(900.0)


def test_explicit_arguments_override_settings():
    analysis = analyze_session(_session(), "09:40", resolution="30m", tick_size=0.5, settings=_settings())
    assert analysis.profile.resolution == "30m"
    assert analysis.profile.tick_size == 0.5


def test_empty_session_and_early_selection_fail_fast():
    with pytest.raises(ProfileConfigError):
        analyze_session([], settings=_settings())
    with pytest.raises(ProfileConfigError):
        analyze_session(_session(), "09:00", settings=_settings())


def test_to_dict_is_render_ready():
    payload = analyze_session(
        _session(),
        "09:40",
        setup={"entry": 100, "stop": 98, "target": 106},
        settings=_settings(),
    ).to_dict()

    assert payload["profile"]["rows"][0]["letters"] == ""
    assert payload["migration"]["source"] == "value_area"
    assert payload["simulation"]["results"]["fixed"]["status"] == "closed"
    assert payload["value_area"]["poc"] is not None


def test_analyze_request_round_trip():
    request = SessionRequest(
        snapshots=_session(),
        selected_time="9:40",
        profile={"resolution": "5-minute", "tick_size": 1.0},
        setup={"entry": 100, "stop": 98, "targets": [106]},
    )
    analysis = analyze_request(request, settings=_settings())

    assert analysis.selected_time == "09:40"
    assert analysis.profile.resolution == "5m"
    assert analysis.simulation[FIXED].status is SimulationStatus.CLOSED


def test_analyze_request_without_profile_uses_settings():
    settings = _settings(profile_padding_ticks=1)
    analysis = analyze_request(SessionRequest(snapshots=_session(), selected_time="09:40"), settings=settings)

    assert analysis.profile.tick_size == 1.0
    assert analysis.profile.resolution == "5m"
    assert (analysis.profile.min_price, analysis.profile.max_price) == (98.0, 102.0)


def test_analyze_request_partial_profile_keeps_other_settings():
    request = SessionRequest(snapshots=_session(), selected_time="09:40", profile={"tick_size": 0.5})
    analysis = analyze_request(request, settings=_settings())

    assert analysis.profile.tick_size == 0.5
    assert analysis.profile.resolution == "5m"
