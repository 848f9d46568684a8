"""Shared data loading functionality for the Night Flight report."""

import io
import logging
from pathlib import Path

import pandas as pd
import requests

from src.utils.config import DATA_URL, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

# Source CSV header -> record field
COLUMN_MAP = {
    "Region": "region",
    "Day": "day",
    "Rider": "rider",
    "Driver": "driver",
    "Vehicle": "vehicle",
    "Pickup Stop": "pickupStop",
    "Dropoff Stop": "dropoffStop",
    "Scheduled Pickup": "scheduledPickupTime",
    "Actual Pickup": "actualPickupTime",
    "Actual Dropoff": "actualDropoffTime",
    "State": "state",
    "# Pooled Rides": "pooledRideCount",
    "Month": "month",
}

REQUIRED_COLUMNS = list(COLUMN_MAP.values())


class FetchFailure(Exception):
    """The ride log could not be retrieved or parsed as a table."""


def fetch_ride_log_text(source=DATA_URL, timeout=REQUEST_TIMEOUT):
    """Read the raw CSV text from a URL or a local path.

    Args:
        source (str): http(s) URL or filesystem path of the ride log.
        timeout (float): Seconds to wait for the HTTP response.

    Returns:
        str: The undecoded CSV body.
    """
    source = str(source)
    if source.startswith(("http://", "https://")):
        try:
            response = requests.get(source, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise FetchFailure(f"Could not fetch ride log from {source}: {e}") from e
        return response.text

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise FetchFailure(f"Could not read ride log at {path}: {e}") from e


def parse_ride_log(text):
    """Parse ride-log CSV text into a frame of raw ride records.

    The first line is the header; blank lines are ignored. Every value is
    kept as a string so identifiers are not coerced to numbers. Lines with
    more fields than the header are skipped and counted, not fatal.

    Args:
        text (str): CSV text with a header row.

    Returns:
        pd.DataFrame: One row per record, columns renamed to record fields.
    """
    if not text or not text.strip():
        raise FetchFailure("Ride log is empty")

    bad_lines = []

    def skip_bad_line(fields):
        bad_lines.append(fields)
        return None

    try:
        rides_df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            skip_blank_lines=True,
            skipinitialspace=True,
            engine="python",
            on_bad_lines=skip_bad_line,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise FetchFailure(f"Ride log is not valid CSV: {e}") from e
    if bad_lines:
        logger.warning(f"Skipped {len(bad_lines)} ride log lines with extra fields")

    rides_df = rides_df.rename(columns=lambda c: str(c).strip())
    rides_df = rides_df.rename(columns=COLUMN_MAP)
    missing = [c for c in REQUIRED_COLUMNS if c not in rides_df.columns]
    if missing:
        raise FetchFailure(f"Ride log header is missing columns: {missing}")
    if rides_df.shape[0] == 0:
        raise FetchFailure("No rows loaded from ride log")

    logger.info(f"Loaded {rides_df.shape[0]} rows of ride data")
    return rides_df


def load_ride_log(source=DATA_URL, timeout=REQUEST_TIMEOUT):
    """Fetch and parse the ride log in one step.

    Returns:
        pd.DataFrame: Raw ride records, see ``parse_ride_log``.
    """
    return parse_ride_log(fetch_ride_log_text(source, timeout=timeout))
