from unittest.mock import MagicMock, patch

import pytest
import requests

from src.utils import load
from src.utils.load import FetchFailure, load_ride_log, parse_ride_log

HEADER_LINE = (
    "Region,Day,Rider,Driver,Vehicle,Pickup Stop,Dropoff Stop,Scheduled Pickup,"
    "Actual Pickup,Actual Dropoff,State,# Pooled Rides,Month"
)
ROW_LINE = (
    "Denton,2025-01-10,R-1,D-A,V-1,Victory Hall,Union,2025-01-10 22:58:00,"
    "2025-01-10 23:00:00,2025-01-10 23:05:00,Complete,1,January"
)


def test_parse_renames_columns_and_skips_blank_lines() -> None:
    text = "\n".join([HEADER_LINE, ROW_LINE, "", ROW_LINE, ""])
    rides_df = parse_ride_log(text)

    assert rides_df.shape[0] == 2
    for col in load.REQUIRED_COLUMNS:
        assert col in rides_df.columns
    assert rides_df.loc[0, "pickupStop"] == "Victory Hall"
    # identifiers stay strings
    assert rides_df.loc[0, "pooledRideCount"] == "1"


def test_fixture_loads_from_local_path(raw_rides) -> None:
    assert raw_rides.shape[0] == 10
    assert "Driver Arrived" in raw_rides.columns


@pytest.mark.parametrize("text", ["", "   \n\n"])
def test_empty_text_is_fatal(text) -> None:
    with pytest.raises(FetchFailure):
        parse_ride_log(text)


def test_line_with_extra_field_is_skipped() -> None:
    # unquoted comma inside the pickup stop name
    bad_line = ROW_LINE.replace("Victory Hall", "Union, North")
    text = "\n".join([HEADER_LINE, ROW_LINE, bad_line, ROW_LINE])
    rides_df = parse_ride_log(text)

    assert rides_df.shape[0] == 2
    assert list(rides_df["pickupStop"]) == ["Victory Hall", "Victory Hall"]


def test_header_without_rows_is_fatal() -> None:
    with pytest.raises(FetchFailure, match="No rows"):
        parse_ride_log(HEADER_LINE + "\n")


def test_missing_required_column_is_fatal() -> None:
    text = "Region,Day\nDenton,2025-01-10\n"
    with pytest.raises(FetchFailure, match="missing columns"):
        parse_ride_log(text)


def test_missing_local_file_is_fatal(tmp_path) -> None:
    with pytest.raises(FetchFailure):
        load_ride_log(tmp_path / "nope.csv")


def test_http_source_uses_requests() -> None:
    response = MagicMock()
    response.text = "\n".join([HEADER_LINE, ROW_LINE])
    with patch("src.utils.load.requests.get", return_value=response) as mock_get:
        rides_df = load_ride_log("https://example.org/night_flight.csv", timeout=5)

    mock_get.assert_called_once_with("https://example.org/night_flight.csv", timeout=5)
    response.raise_for_status.assert_called_once()
    assert rides_df.shape[0] == 1


def test_http_error_becomes_fetch_failure() -> None:
    response = MagicMock()
    response.raise_for_status.side_effect = requests.exceptions.HTTPError("404")
    with patch("src.utils.load.requests.get", return_value=response):
        with pytest.raises(FetchFailure, match="Could not fetch"):
            load_ride_log("https://example.org/missing.csv")


def test_connection_error_becomes_fetch_failure() -> None:
    with patch(
        "src.utils.load.requests.get",
        side_effect=requests.exceptions.ConnectionError("down"),
    ):
        with pytest.raises(FetchFailure):
            load_ride_log("http://example.org/night_flight.csv")
