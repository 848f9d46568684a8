"""Report configuration for the Night Flight ride-log aggregation."""

import math
import os
import re
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

DATA_URL = os.environ.get("NIGHT_FLIGHT_DATA_URL", "data/night_flight_all_months.csv")
LOG_LEVEL = os.environ.get("NIGHT_FLIGHT_LOG_LEVEL", "INFO")
REQUEST_TIMEOUT = float(os.environ.get("NIGHT_FLIGHT_TIMEOUT", "30"))

# ── Calendar ─────────────────────────────────────────────────────────────────
SPRING_MONTHS = ["January", "February", "March", "April", "May"]
FALL_MONTHS = ["August", "September", "October"]
MONTH_ORDER = SPRING_MONTHS + FALL_MONTHS

SEMESTERS = {"Spring": SPRING_MONTHS, "Fall": FALL_MONTHS}

DAY_ORDER = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]

# 7PM through 1AM; wraps past midnight
NIGHT_FLIGHT_HOURS = [19, 20, 21, 22, 23, 0, 1]

# ── Ranking sizes ────────────────────────────────────────────────────────────
TOP_STOPS = 15
TOP_WAIT_STOPS = 12
TOP_DRIVERS = 10
MIN_WAIT_SAMPLES = 1

# Wait / trip minutes outside [0, 60) are data-entry outliers
VALID_MINUTES_LOWER = 0
VALID_MINUTES_UPPER = 60


@dataclass(frozen=True)
class StopAliasRule:
    """Collapse every stop name matching ``pattern`` into ``canonical``."""

    pattern: str
    canonical: str

    def matches(self, stop_name):
        return re.search(self.pattern, stop_name) is not None


@dataclass(frozen=True)
class HistogramBin:
    """A half-open ``[lower, upper)`` bucket of minutes."""

    label: str
    lower: float
    upper: float = math.inf


STOP_ALIASES = (StopAliasRule(r"Eagle Landing", "Eagle Landing (combined)"),)

WAIT_BINS = (
    HistogramBin("0-2", 0, 2),
    HistogramBin("2-4", 2, 4),
    HistogramBin("4-6", 4, 6),
    HistogramBin("6-8", 6, 8),
    HistogramBin("8-10", 8, 10),
    HistogramBin("10+", 10),
)

TRIP_BINS = (
    HistogramBin("0-3", 0, 3),
    HistogramBin("3-5", 3, 5),
    HistogramBin("5-7", 5, 7),
    HistogramBin("7-10", 7, 10),
    HistogramBin("10-15", 10, 15),
    HistogramBin("15+", 15),
)


def _default_semester_hours():
    return {semester: tuple(NIGHT_FLIGHT_HOURS) for semester in SEMESTERS}


@dataclass(frozen=True)
class ReportConfig:
    """Everything the aggregation needs to know about the service.

    All fields default to the Night Flight calendar; pass a customised
    instance to change alias rules, service windows or histogram edges
    without touching the aggregation code.
    """

    months: tuple = tuple(MONTH_ORDER)
    semesters: dict = field(
        default_factory=lambda: {k: tuple(v) for k, v in SEMESTERS.items()}
    )
    service_hours: tuple = tuple(NIGHT_FLIGHT_HOURS)
    semester_service_hours: dict = field(default_factory=_default_semester_hours)
    stop_aliases: tuple = STOP_ALIASES
    wait_bins: tuple = WAIT_BINS
    trip_bins: tuple = TRIP_BINS
    top_stops: int = TOP_STOPS
    top_wait_stops: int = TOP_WAIT_STOPS
    top_drivers: int = TOP_DRIVERS
    min_wait_samples: int = MIN_WAIT_SAMPLES
    valid_minutes: tuple = (VALID_MINUTES_LOWER, VALID_MINUTES_UPPER)

    def semester_of(self, month):
        """Return the semester label for ``month`` or None if it is off-calendar."""
        for semester, months in self.semesters.items():
            if month in months:
                return semester
        return None

    def hours_for_semester(self, semester):
        return tuple(self.semester_service_hours.get(semester, self.service_hours))


DEFAULT_CONFIG = ReportConfig()
