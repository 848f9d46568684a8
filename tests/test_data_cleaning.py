import pandas as pd
import pytest

from src.utils.config import ReportConfig, StopAliasRule
from src.utils.data_cleaning import (
    derive_ride_fields,
    normalize_stop,
    parse_timestamps,
    split_rides,
)

from ride_factory import derive, make_ride, rides_frame


def test_split_keeps_complete_and_cancelled_only(raw_rides) -> None:
    completed, cancelled = split_rides(raw_rides)

    # the ride without an actual dropoff is not a completed ride
    assert list(completed["rider"]) == ["R-001", "R-002", "R-003", "R-004", "R-005", "R-007"]
    assert list(cancelled["rider"]) == ["R-008", "R-009"]


def test_malformed_timestamps_are_omitted(derived_rides) -> None:
    rides, _ = derived_rides
    assert "R-007" not in set(rides["rider"])
    assert rides.shape[0] == 5


def test_default_alias_collapses_eagle_landing() -> None:
    assert normalize_stop("Eagle Landing North") == "Eagle Landing (combined)"
    assert normalize_stop("Eagle Landing - Bldg 2") == "Eagle Landing (combined)"
    assert normalize_stop("  Victory Hall ") == "Victory Hall"


def test_alias_rules_first_match_wins() -> None:
    rules = (
        StopAliasRule(r"^Union", "University Union"),
        StopAliasRule(r"Union", "Somewhere Else"),
    )
    assert normalize_stop("Union Circle", rules) == "University Union"
    assert normalize_stop("Old Union", rules) == "Somewhere Else"
    assert normalize_stop("Victory Hall", rules) == "Victory Hall"


def test_derivation_applies_custom_aliases_to_both_stops() -> None:
    config = ReportConfig(stop_aliases=(StopAliasRule(r"Union", "University Union"),))
    rides, _ = derive(
        [make_ride(pickup="Union Circle", dropoff="Union Bus Bay")], config
    )
    assert rides.loc[0, "normalizedPickupStop"] == "University Union"
    assert rides.loc[0, "normalizedDropoffStop"] == "University Union"


def test_hour_weekday_wait_and_trip() -> None:
    rides, _ = derive([make_ride()])
    ride = rides.iloc[0]

    assert ride["hourOfDay"] == 23
    assert ride["weekday"] == "Friday"
    assert ride["waitMinutes"] == pytest.approx(2.0)
    assert ride["tripMinutes"] == pytest.approx(5.0)
    assert bool(ride["waitValid"]) and bool(ride["tripValid"])


@pytest.mark.parametrize(
    "scheduled, valid",
    [
        ("2025-01-10T21:45:00", False),  # 75 minutes
        ("2025-01-10T22:00:00", False),  # exactly 60
        ("2025-01-10T23:03:00", False),  # picked up early
        ("2025-01-10T23:00:00", True),  # zero wait
    ],
)
def test_wait_outliers_are_zeroed_not_dropped(scheduled, valid) -> None:
    rides, _ = derive([make_ride(scheduled=scheduled)])

    assert rides.shape[0] == 1
    assert bool(rides.loc[0, "waitValid"]) is valid
    if not valid:
        assert rides.loc[0, "waitMinutes"] == 0


def test_long_trip_is_flagged_invalid() -> None:
    rides, _ = derive([make_ride(actual_dropoff="2025-01-11T00:30:00")])
    assert not rides.loc[0, "tripValid"]
    assert rides.loc[0, "tripMinutes"] == 0


def test_rows_missing_required_text_are_omitted() -> None:
    rides, _ = derive([make_ride(driver=""), make_ride(month="  "), make_ride()])
    assert rides.shape[0] == 1


def test_parse_timestamps_coerces_garbage() -> None:
    parsed = parse_timestamps(pd.Series(["2025-01-10 23:00:00", "soon", None]))
    assert parsed.iloc[0] == pd.Timestamp("2025-01-10 23:00:00")
    assert parsed.iloc[1:].isna().all()


def test_empty_input_derives_empty_frame() -> None:
    completed, cancelled = split_rides(rides_frame([]))
    rides = derive_ride_fields(completed)

    assert rides.empty
    assert cancelled.empty
    assert "waitValid" in rides.columns
