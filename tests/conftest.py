"""Shared fixtures for the ride-log tests."""

from pathlib import Path

import pandas as pd
import pytest

from src.utils.data_cleaning import derive_ride_fields, split_rides
from src.utils.load import load_ride_log

FIXTURE_PATH = Path(__file__).parent / "fixtures" / "night_flight_sample.csv"


@pytest.fixture
def raw_rides() -> pd.DataFrame:
    return load_ride_log(FIXTURE_PATH)


@pytest.fixture
def derived_rides(raw_rides):
    completed, cancelled = split_rides(raw_rides)
    return derive_ride_fields(completed), cancelled
