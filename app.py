"""Streamlit report for the Night Flight late-night shuttle ride log."""

import json
import logging

import altair as alt
import pandas as pd
import streamlit as st

from src.utils.aggregate import aggregate_rides, format_hour
from src.utils.config import DATA_URL, DAY_ORDER, DEFAULT_CONFIG, LOG_LEVEL
from src.utils.load import FetchFailure, load_ride_log

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ── Page config & startup ───────────────────────────────────────────────────
st.set_page_config(page_title="Night Flight Ride Report", layout="wide")
st.sidebar.title("Night Flight Report")


@st.cache_data
def load_statistics(source):
    """Fetch the ride log once and reduce it to chart-ready records."""
    rides_df = load_ride_log(source)
    return aggregate_rides(rides_df, DEFAULT_CONFIG).to_dict()


try:
    stats = load_statistics(DATA_URL)
except FetchFailure as e:
    logger.error(f"Error loading ride log: {e}")
    st.error(f"Could not load the ride log: {e}")
    st.stop()

charts = {
    name: pd.DataFrame(records) for name, records in stats.items() if name != "summary"
}
summary = stats["summary"]

page = st.sidebar.radio(
    "Select Report Section:",
    [
        "Overview",
        "When People Ride",
        "Stops & Waits",
        "Trends & Operations",
    ],
)


def bar_chart(data, x, y, title, x_title=None, y_title=None, sort=None, horizontal=False):
    """Shared bar chart style for every section."""
    if horizontal:
        encoding = {
            "x": alt.X(f"{x}:Q", title=x_title),
            "y": alt.Y(f"{y}:N", sort="-x", title=y_title),
        }
    else:
        encoding = {
            "x": alt.X(f"{x}:N", sort=sort, title=x_title, axis=alt.Axis(labelAngle=0)),
            "y": alt.Y(f"{y}:Q", title=y_title),
        }
    return (
        alt.Chart(data)
        .mark_bar(color="#00853E")
        .encode(tooltip=[x, y], **encoding)
        .properties(title=title, height=400)
    )


# ──────────────────────────────────────────────────────────────────────────────
if page == "Overview":
    st.title("🚐 Night Flight Service – Ride Report")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Completed Rides", f"{summary['totalRides']:,}")
    col2.metric("Cancelled Rides", f"{summary['cancelledRides']:,}")
    col3.metric("Months Analyzed", summary["monthsAnalyzed"])
    col4.metric(
        "Peak Hour",
        format_hour(summary["peakHour"]) if summary["peakHour"] is not None else "–",
        help=f"Busiest day: {summary['busiestDay'] or '–'}",
    )

    st.markdown("""
    **How to use this page:**
    - Use the sidebar to move between report sections.
    - Wait and trip times outside 0–60 minutes are treated as data-entry errors:
      they are left out of averages and histograms, but the rides still count.
    """)

    st.altair_chart(
        bar_chart(
            charts["semester_counts"],
            "semester",
            "rides",
            "Spring vs. Fall Completed Rides",
            "Semester",
            "Rides",
        ),
        use_container_width=True,
    )

    with st.expander("Download chart data (JSON)"):
        st.download_button(
            "Download",
            json.dumps(stats, indent=2, default=str),
            file_name="night_flight_statistics.json",
            mime="application/json",
        )

elif page == "When People Ride":
    st.title("🕙 When People Ride")

    st.altair_chart(
        bar_chart(
            charts["weekday_counts"],
            "day",
            "rides",
            "Total Rides by Day of Week",
            "Day",
            "Rides",
            sort=DAY_ORDER,
        ),
        use_container_width=True,
    )

    hour_order = list(charts["hourly_counts"]["hourLabel"])
    st.altair_chart(
        bar_chart(
            charts["hourly_counts"],
            "hourLabel",
            "rides",
            "Rides by Hour (service window)",
            "Hour",
            "Rides",
            sort=hour_order,
        ),
        use_container_width=True,
    )

    heatmap = charts["day_hour_matrix"].assign(
        hourLabel=lambda d: d["hour"].apply(format_hour)
    )
    st.altair_chart(
        alt.Chart(heatmap)
        .mark_rect()
        .encode(
            x=alt.X("hourLabel:N", sort=hour_order, title="Hour"),
            y=alt.Y("day:N", sort=DAY_ORDER, title="Day"),
            color=alt.Color("rides:Q", scale=alt.Scale(scheme="greens")),
            tooltip=["day", "hourLabel", "rides"],
        )
        .properties(title="Rides by Day and Hour", height=350),
        use_container_width=True,
    )

    semester_hourly = charts["semester_hourly"]
    semester_hour_order = list(dict.fromkeys(semester_hourly["hourLabel"]))
    st.altair_chart(
        alt.Chart(semester_hourly)
        .mark_bar()
        .encode(
            x=alt.X("hourLabel:N", sort=semester_hour_order, title="Hour"),
            xOffset="semester:N",
            y=alt.Y("rides:Q", title="Rides"),
            color=alt.Color("semester:N", title="Semester"),
            tooltip=["semester", "hourLabel", "rides"],
        )
        .properties(title="Spring vs. Fall: Rides by Hour", height=400),
        use_container_width=True,
    )

elif page == "Stops & Waits":
    st.title("🚏 Stops & Waits")

    left, right = st.columns(2)
    left.altair_chart(
        bar_chart(
            charts["top_pickups"],
            "count",
            "stop",
            "Top Pickup Stops",
            "Rides",
            "Stop",
            horizontal=True,
        ),
        use_container_width=True,
    )
    right.altair_chart(
        bar_chart(
            charts["top_dropoffs"],
            "count",
            "stop",
            "Top Dropoff Stops",
            "Rides",
            "Stop",
            horizontal=True,
        ),
        use_container_width=True,
    )

    st.altair_chart(
        bar_chart(
            charts["average_wait_by_stop"],
            "avgWait",
            "stop",
            "Average Wait Time by Pickup Stop",
            "Avg Wait (min)",
            "Stop",
            horizontal=True,
        ),
        use_container_width=True,
    )

    left, right = st.columns(2)
    left.altair_chart(
        bar_chart(
            charts["wait_histogram"],
            "range",
            "count",
            "Distribution of Wait Times",
            "Minutes",
            "Rides",
            sort=list(charts["wait_histogram"]["range"]),
        ),
        use_container_width=True,
    )
    right.altair_chart(
        bar_chart(
            charts["trip_histogram"],
            "range",
            "count",
            "Trip Duration Overview",
            "Minutes",
            "Rides",
            sort=list(charts["trip_histogram"]["range"]),
        ),
        use_container_width=True,
    )

    wait_by_hour = charts["average_wait_by_hour"]
    st.altair_chart(
        alt.Chart(wait_by_hour)
        .mark_line(point=True, color="#00853E")
        .encode(
            x=alt.X("hourLabel:N", sort=list(wait_by_hour["hourLabel"]), title="Hour"),
            y=alt.Y("avgWait:Q", title="Avg Wait (min)"),
            tooltip=["hourLabel", "avgWait"],
        )
        .properties(title="Average Wait by Hour", height=350),
        use_container_width=True,
    )

elif page == "Trends & Operations":
    st.title("📈 Trends & Operations")

    trend = charts["monthly_trend"]
    month_order = list(trend["month"])
    bars = (
        alt.Chart(trend)
        .mark_bar(color="#A5D6A7")
        .encode(
            x=alt.X("month:N", sort=month_order, title="Month"),
            y=alt.Y("totalRides:Q", title="Total Rides"),
            tooltip=["month", "totalRides", "activeDays"],
        )
    )
    line = (
        alt.Chart(trend)
        .mark_line(point=True, color="#006B2F")
        .encode(
            x=alt.X("month:N", sort=month_order),
            y=alt.Y("ridesPerDay:Q", title="Rides per Active Day"),
            tooltip=["month", alt.Tooltip("ridesPerDay:Q", format=".1f")],
        )
    )
    st.altair_chart(
        alt.layer(bars, line)
        .resolve_scale(y="independent")
        .properties(title="Monthly Trend with Rides per Active Day", height=400),
        use_container_width=True,
    )

    st.altair_chart(
        bar_chart(
            charts["driver_ranking"],
            "count",
            "driver",
            "Rides per Driver (Top 10)",
            "Rides",
            "Driver",
            horizontal=True,
        ),
        use_container_width=True,
    )

    cancel = charts["cancellation_rate"]
    if cancel.empty:
        st.info("No completed or cancelled rides to compute a cancellation rate.")
    else:
        st.altair_chart(
            alt.Chart(cancel)
            .mark_line(point=True, color="#B00020")
            .encode(
                x=alt.X("month:N", sort=month_order, title="Month"),
                y=alt.Y("ratePercent:Q", title="Cancelled (%)"),
                tooltip=[
                    "month",
                    "completed",
                    "cancelled",
                    alt.Tooltip("ratePercent:Q", format=".1f"),
                ],
            )
            .properties(title="Cancellation Rate per Month", height=350),
            use_container_width=True,
        )
