"""Aggregate statistics for the Night Flight ride report.

Each statistic is a pure function of the derived ride frame (see
``data_cleaning.derive_ride_fields``) so it can be computed and tested on
its own. ``aggregate_rides`` runs the whole pipeline once over a raw ride
log and returns every chart's data in one frozen ``AggregateStatistics``.
"""

import logging
from dataclasses import dataclass, field

import pandas as pd

from src.utils.config import DAY_ORDER, DEFAULT_CONFIG
from src.utils.data_cleaning import derive_ride_fields, split_rides

logger = logging.getLogger(__name__)


def format_hour(hour):
    """Render a 24-hour clock hour as a 12-hour label, e.g. 0 -> '12 AM'."""
    hour = int(hour)
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def _ranked(counts, n):
    """Sort descending, keeping first-seen order among ties, and keep ``n``."""
    return counts.sort_values(ascending=False, kind="stable").head(n)


# ── Count-based statistics ───────────────────────────────────────────────────
def semester_counts(rides, config=DEFAULT_CONFIG):
    """Count completed rides per semester bucket."""
    semester = rides["month"].map(config.semester_of)
    counts = (
        rides.groupby(semester).size().reindex(list(config.semesters), fill_value=0)
    )
    return pd.DataFrame({"semester": counts.index, "rides": counts.values.astype(int)})


def weekday_counts(rides):
    """Count completed rides per weekday, Sunday first, empty days as 0."""
    counts = rides.groupby("weekday").size().reindex(DAY_ORDER, fill_value=0)
    return pd.DataFrame({"day": DAY_ORDER, "rides": counts.values.astype(int)})


def hourly_counts(rides, hours=DEFAULT_CONFIG.service_hours):
    """Count completed rides for each service-window hour, in window order.

    Hours outside the window are left out of this chart only.
    """
    hours = list(hours)
    counts = rides.groupby("hourOfDay").size().reindex(hours, fill_value=0)
    return pd.DataFrame(
        {
            "hour": hours,
            "hourLabel": [format_hour(h) for h in hours],
            "rides": counts.values.astype(int),
        }
    )


def day_hour_matrix(rides, hours=DEFAULT_CONFIG.service_hours):
    """Cross-tabulate rides for every (weekday, service hour) pair."""
    index = pd.MultiIndex.from_product(
        [DAY_ORDER, list(hours)], names=["day", "hour"]
    )
    if rides.empty:
        counts = pd.Series(0, index=index)
    else:
        counts = (
            rides.groupby(["weekday", "hourOfDay"]).size().reindex(index, fill_value=0)
        )
    matrix = counts.rename("rides").reset_index()
    matrix["rides"] = matrix["rides"].astype(int)
    return matrix


def top_stops(rides, column="normalizedPickupStop", n=DEFAULT_CONFIG.top_stops):
    """Return the ``n`` busiest stops for a normalized stop column.

    Args:
        rides (pd.DataFrame): Derived completed rides.
        column (str): ``normalizedPickupStop`` or ``normalizedDropoffStop``.
        n (int): How many stops to keep.

    Returns:
        pd.DataFrame: ``stop`` and ``count``, busiest first; ties keep the
        order in which the stops first appear in the input.
    """
    counts = _ranked(rides.groupby(column, sort=False).size(), n)
    return pd.DataFrame({"stop": counts.index, "count": counts.values.astype(int)})


def monthly_trend(rides, months=DEFAULT_CONFIG.months):
    """Total rides and rides per active day for each service month."""
    months = list(months)
    grouped = rides.groupby("month")["day"]
    totals = grouped.size().reindex(months, fill_value=0).astype(int)
    active_days = grouped.nunique().reindex(months, fill_value=0).astype(int)
    per_day = (totals / active_days.where(active_days > 0)).fillna(0.0)
    return pd.DataFrame(
        {
            "month": months,
            "totalRides": totals.values,
            "activeDays": active_days.values,
            "ridesPerDay": per_day.values.astype(float),
        }
    )


def driver_ranking(rides, n=DEFAULT_CONFIG.top_drivers):
    """Rank drivers by completed rides under anonymous ``Driver N`` labels.

    Labels follow first-seen order across the full driver set, so a driver
    keeps its label regardless of where it lands in the top ``n``.
    """
    counts = rides.groupby("driver", sort=False).size()
    labels = {
        driver: f"Driver {rank}" for rank, driver in enumerate(counts.index, start=1)
    }
    ranked = _ranked(counts, n)
    return pd.DataFrame(
        {
            "driver": [labels[d] for d in ranked.index],
            "count": ranked.values.astype(int),
        }
    )


def cancellation_rate_by_month(rides, cancelled, months=DEFAULT_CONFIG.months):
    """Cancelled share of all rides per month; months with no rows are omitted."""
    months = list(months)
    completed = rides.groupby("month").size().reindex(months, fill_value=0)
    cancel = cancelled.groupby("month").size().reindex(months, fill_value=0)
    rates = pd.DataFrame(
        {
            "month": months,
            "completed": completed.values.astype(int),
            "cancelled": cancel.values.astype(int),
        }
    )
    rates = rates[(rates["completed"] + rates["cancelled"]) > 0].reset_index(drop=True)
    rates["rate"] = (rates["cancelled"] / (rates["completed"] + rates["cancelled"])).astype(
        float
    )
    rates["ratePercent"] = rates["rate"] * 100
    return rates


def semester_hourly_comparison(rides, config=DEFAULT_CONFIG):
    """Rides by hour for each semester, using each semester's own window."""
    frames = []
    for semester, months in config.semesters.items():
        semester_rides = rides[rides["month"].isin(months)]
        hourly = hourly_counts(semester_rides, config.hours_for_semester(semester))
        hourly.insert(0, "semester", semester)
        frames.append(hourly)
    return pd.concat(frames, ignore_index=True)


# ── Valid-sample statistics ──────────────────────────────────────────────────
def average_wait_by_stop(
    rides,
    n=DEFAULT_CONFIG.top_wait_stops,
    min_samples=DEFAULT_CONFIG.min_wait_samples,
):
    """Mean valid wait per pickup stop, longest first.

    Only rides whose wait is a valid sample take part; stops with fewer than
    ``min_samples`` valid waits are left out.
    """
    valid = rides[rides["waitValid"]]
    stats = valid.groupby("normalizedPickupStop", sort=False)["waitMinutes"].agg(
        ["mean", "size"]
    )
    stats = stats[stats["size"] >= max(min_samples, 1)]
    ranked = stats.sort_values("mean", ascending=False, kind="stable").head(n)
    return pd.DataFrame(
        {
            "stop": ranked.index,
            "avgWait": ranked["mean"].values.astype(float),
            "samples": ranked["size"].values.astype(int),
        }
    )


def average_wait_by_hour(rides, hours=DEFAULT_CONFIG.service_hours):
    """Mean valid wait per service-window hour; hours with no samples are 0."""
    hours = list(hours)
    valid = rides[rides["waitValid"]]
    means = valid.groupby("hourOfDay")["waitMinutes"].mean().reindex(hours)
    return pd.DataFrame(
        {
            "hour": hours,
            "hourLabel": [format_hour(h) for h in hours],
            "avgWait": means.fillna(0.0).values.astype(float),
        }
    )


def minutes_histogram(rides, value_column, valid_column, bins):
    """Count valid samples of ``value_column`` in each ``[lower, upper)`` bin.

    Args:
        rides (pd.DataFrame): Derived completed rides.
        value_column (str): ``waitMinutes`` or ``tripMinutes``.
        valid_column (str): The matching ``waitValid`` / ``tripValid`` flag.
        bins (tuple): ``HistogramBin`` instances, in display order.

    Returns:
        pd.DataFrame: ``range``, ``min``, ``max`` and ``count`` per bin.
    """
    values = rides.loc[rides[valid_column], value_column]
    return pd.DataFrame(
        {
            "range": [b.label for b in bins],
            "min": [float(b.lower) for b in bins],
            "max": [float(b.upper) for b in bins],
            "count": [
                int(((values >= b.lower) & (values < b.upper)).sum()) for b in bins
            ],
        }
    )


def report_summary(rides, cancelled, config=DEFAULT_CONFIG):
    """Headline numbers for the report header and peak-operations badge."""
    months_with_data = [m for m in config.months if (rides["month"] == m).any()]
    hourly = hourly_counts(rides, config.service_hours)
    days = weekday_counts(rides)
    has_rides = not rides.empty
    return {
        "totalRides": int(rides.shape[0]),
        "cancelledRides": int(cancelled.shape[0]),
        "monthsAnalyzed": len(months_with_data),
        "peakHour": int(hourly.loc[hourly["rides"].idxmax(), "hour"])
        if has_rides and hourly["rides"].max() > 0
        else None,
        "busiestDay": days.loc[days["rides"].idxmax(), "day"] if has_rides else None,
    }


# ── Pipeline ────────────────────────────────────────────────────────────────
@dataclass(frozen=True, eq=False)
class AggregateStatistics:
    """Every derived chart dataset for one ride-log snapshot."""

    semester_counts: pd.DataFrame
    weekday_counts: pd.DataFrame
    hourly_counts: pd.DataFrame
    day_hour_matrix: pd.DataFrame
    top_pickups: pd.DataFrame
    top_dropoffs: pd.DataFrame
    average_wait_by_stop: pd.DataFrame
    wait_histogram: pd.DataFrame
    trip_histogram: pd.DataFrame
    monthly_trend: pd.DataFrame
    driver_ranking: pd.DataFrame
    cancellation_rate: pd.DataFrame
    semester_hourly: pd.DataFrame
    average_wait_by_hour: pd.DataFrame
    summary: dict = field(default_factory=dict)

    def to_dict(self):
        """Plain records for every chart, e.g. for ``json.dumps``."""
        records = {
            name: value.to_dict("records")
            for name, value in vars(self).items()
            if isinstance(value, pd.DataFrame)
        }
        records["summary"] = dict(self.summary)
        return records


def aggregate_rides(rides_df, config=DEFAULT_CONFIG):
    """Build every report statistic from a raw ride log.

    Args:
        rides_df (pd.DataFrame): Raw records from ``load.load_ride_log``.
        config (ReportConfig): Calendar, windows, aliases and bins.

    Returns:
        AggregateStatistics: The full set of chart datasets.
    """
    completed_df, cancelled = split_rides(rides_df)
    rides = derive_ride_fields(completed_df, config)
    logger.info(f"Processing {rides.shape[0]} completed rides")

    return AggregateStatistics(
        semester_counts=semester_counts(rides, config),
        weekday_counts=weekday_counts(rides),
        hourly_counts=hourly_counts(rides, config.service_hours),
        day_hour_matrix=day_hour_matrix(rides, config.service_hours),
        top_pickups=top_stops(rides, "normalizedPickupStop", config.top_stops),
        top_dropoffs=top_stops(rides, "normalizedDropoffStop", config.top_stops),
        average_wait_by_stop=average_wait_by_stop(
            rides, config.top_wait_stops, config.min_wait_samples
        ),
        wait_histogram=minutes_histogram(
            rides, "waitMinutes", "waitValid", config.wait_bins
        ),
        trip_histogram=minutes_histogram(
            rides, "tripMinutes", "tripValid", config.trip_bins
        ),
        monthly_trend=monthly_trend(rides, config.months),
        driver_ranking=driver_ranking(rides, config.top_drivers),
        cancellation_rate=cancellation_rate_by_month(rides, cancelled, config.months),
        semester_hourly=semester_hourly_comparison(rides, config),
        average_wait_by_hour=average_wait_by_hour(rides, config.service_hours),
        summary=report_summary(rides, cancelled, config),
    )
