"""Cleans raw Night Flight ride records and derives per-ride fields."""

import logging

import pandas as pd

from src.utils.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)

COMPLETE = "Complete"
CANCELLED = "Cancelled"

# Fields a completed ride needs besides its timestamps
REQUIRED_TEXT_FIELDS = ["day", "driver", "pickupStop", "dropoffStop", "month"]
TIMESTAMP_FIELDS = ["scheduledPickupTime", "actualPickupTime", "actualDropoffTime"]


def _text(series):
    """Return the column as stripped strings with missing values as ''."""
    return series.fillna("").astype(str).str.strip()


def _is_blank(series):
    return _text(series) == ""


def _parse_one(value):
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError):
        return pd.NaT
    if ts is pd.NaT:
        return pd.NaT
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


def parse_timestamps(series):
    """Parse a column of date-time strings; unparseable values become NaT."""
    try:
        parsed = pd.to_datetime(series, errors="coerce", format="mixed")
    except (ValueError, TypeError):
        # mixed offsets in one column; keep each value's wall-clock time
        return pd.to_datetime(series.map(_parse_one))
    if getattr(parsed.dt, "tz", None) is not None:
        parsed = parsed.dt.tz_localize(None)
    return parsed


def normalize_stop(stop_name, aliases=DEFAULT_CONFIG.stop_aliases):
    """Map a raw stop name to its canonical name.

    Alias rules are tried in order and the first match wins; a name that
    matches no rule is returned stripped.

    Args:
        stop_name (str): Raw stop name from the ride log.
        aliases (tuple): Ordered ``StopAliasRule`` instances.

    Returns:
        str: The canonical stop name.
    """
    if not isinstance(stop_name, str):
        return stop_name
    for rule in aliases:
        if rule.matches(stop_name):
            return rule.canonical
    return stop_name.strip()


def split_rides(rides_df):
    """Split raw rows into completed and cancelled rides.

    A completed ride has state ``Complete`` and non-empty actual pickup and
    dropoff times. Rows in any other state are dropped.

    Args:
        rides_df (pd.DataFrame): Raw ride records from ``load_ride_log``.

    Returns:
        tuple: (completed_df, cancelled_df)
    """
    state = _text(rides_df["state"])
    completed_mask = (
        (state == COMPLETE)
        & ~_is_blank(rides_df["actualPickupTime"])
        & ~_is_blank(rides_df["actualDropoffTime"])
    )
    cancelled_mask = (state == CANCELLED) & ~_is_blank(rides_df["month"])

    completed_df = rides_df[completed_mask].reset_index(drop=True)
    cancelled_df = rides_df[cancelled_mask].reset_index(drop=True)
    cancelled_df = cancelled_df.assign(month=_text(cancelled_df["month"]))

    logger.info(
        f"Parsed {rides_df.shape[0]} total rows, {completed_df.shape[0]} completed, "
        f"{cancelled_df.shape[0]} cancelled"
    )
    return completed_df, cancelled_df


def _minutes_between(start, end):
    return (end - start).dt.total_seconds() / 60


def derive_ride_fields(completed_df, config=DEFAULT_CONFIG):
    """Add the derived columns every statistic is computed from.

    Rows missing a required field or carrying an unparseable timestamp are
    omitted. Wait and trip minutes outside the valid window are zeroed and
    flagged invalid, but the ride itself is kept for count-based charts.

    Args:
        completed_df (pd.DataFrame): Completed rides from ``split_rides``.
        config (ReportConfig): Alias rules and the valid-minutes window.

    Returns:
        pd.DataFrame: Completed rides with ``normalizedPickupStop``,
        ``normalizedDropoffStop``, ``hourOfDay``, ``weekday``,
        ``waitMinutes``, ``waitValid``, ``tripMinutes`` and ``tripValid``.
    """
    rides = completed_df.copy()
    for col in REQUIRED_TEXT_FIELDS:
        rides[col] = _text(rides[col])
    for col in TIMESTAMP_FIELDS:
        rides[col] = parse_timestamps(rides[col])

    usable = rides[TIMESTAMP_FIELDS].notna().all(axis=1)
    for col in REQUIRED_TEXT_FIELDS:
        usable &= rides[col] != ""
    skipped = int((~usable).sum())
    if skipped:
        logger.warning(f"Skipped {skipped} malformed completed rides")
    rides = rides[usable].reset_index(drop=True)

    rides["normalizedPickupStop"] = rides["pickupStop"].apply(
        normalize_stop, aliases=config.stop_aliases
    )
    rides["normalizedDropoffStop"] = rides["dropoffStop"].apply(
        normalize_stop, aliases=config.stop_aliases
    )
    rides["hourOfDay"] = rides["actualPickupTime"].dt.hour.astype(int)
    rides["weekday"] = rides["actualPickupTime"].dt.day_name()

    lower, upper = config.valid_minutes
    wait = _minutes_between(rides["scheduledPickupTime"], rides["actualPickupTime"])
    trip = _minutes_between(rides["actualPickupTime"], rides["actualDropoffTime"])
    rides["waitValid"] = (wait >= lower) & (wait < upper)
    rides["tripValid"] = (trip >= lower) & (trip < upper)
    rides["waitMinutes"] = wait.where(rides["waitValid"], 0.0).astype(float)
    rides["tripMinutes"] = trip.where(rides["tripValid"], 0.0).astype(float)

    logger.debug(
        f"{int((~rides['waitValid']).sum())} wait and "
        f"{int((~rides['tripValid']).sum())} trip outlier samples"
    )
    return rides
