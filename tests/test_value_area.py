import pytest

from _helpers import make_snapshot
from auction_engine.profile import ProfileRow, VolumeProfile, build_profile, single_prints, value_area


def _profile(rows):
    return VolumeProfile(
        rows=tuple(ProfileRow(price=price, codes=tuple(codes), volume=volume) for price, codes, volume in rows),
        min_price=rows[-1][0],
        max_price=rows[0][0],
        max_volume=max(volume for _, _, volume in rows),
        resolution="30m",
        tick_size=1.0,
    )


def test_value_area_expands_toward_heavier_neighbour():
    profile = _profile(
        [
            (105.0, "", 0.0),
            (104.0, "C", 10.0),
            (103.0, "ABC", 50.0),
            (102.0, "AB", 30.0),
            (101.0, "A", 10.0),
            (100.0, "", 0.0),
        ]
    )
    area = value_area(profile)

    assert area.poc == 103.0
    assert (area.vah, area.val) == (103.0, 102.0)
    assert area.volume_fraction == pytest.approx(0.8)


def test_full_fraction_covers_all_weighted_rows():
    profile = _profile([(102.0, "A", 10.0), (101.0, "AB", 20.0), (100.0, "B", 10.0)])
    area = value_area(profile, fraction=1.0)
    assert (area.vah, area.val) == (102.0, 100.0)
    assert area.volume_fraction == pytest.approx(1.0)


def test_poc_tie_prefers_centre_then_higher_price():
    profile = _profile(
        [
            (104.0, "", 0.0),
            (103.0, "A", 20.0),
            (102.0, "", 0.0),
            (101.0, "B", 20.0),
            (100.0, "", 0.0),
        ]
    )
    assert value_area(profile).poc == 103.0


def test_tpo_counts_used_without_volume():
    snaps = [
        make_snapshot("09:30", 101.0, open=100.0),
        make_snapshot("10:00", 101.0),
        make_snapshot("10:30", 101.0, open=102.0),
    ]
    profile = build_profile(snaps, tick_size=1.0)
    area = value_area(profile)
    assert area.poc == 101.0


def test_empty_profile_has_no_value_area():
    empty = VolumeProfile(rows=(), min_price=0.0, max_price=0.0, max_volume=0.0, resolution="30m", tick_size=1.0)
    assert value_area(empty) is None


def test_single_prints():
    profile = _profile([(102.0, "C", 5.0), (101.0, "AB", 20.0), (100.0, "A", 5.0), (99.0, "", 0.0)])
    assert single_prints(profile) == [102.0, 100.0]
