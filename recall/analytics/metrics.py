"""
Metric computations for review dashboards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import pandas as pd

from recall.analytics.constants import STATUS_ORDER


def build_day_index(start: datetime, days: int) -> pd.DatetimeIndex:
    """
    Dense UTC day index of `days` days beginning on start's day.
    """
    first = pd.Timestamp(start).tz_convert("UTC").floor("D")
    return pd.date_range(start=first, periods=max(days, 0), freq="D")


def compute_status_counts(states_df: pd.DataFrame) -> dict[str, int]:
    """
    Cards per status, every status present (zero when absent).
    """
    if states_df.empty:
        return {status: 0 for status in STATUS_ORDER}
    counts = states_df["status"].value_counts()
    return {status: int(counts.get(status, 0)) for status in STATUS_ORDER}


def compute_accuracy(states_df: pd.DataFrame) -> tuple[int, int, Optional[float]]:
    """
    Totals from the review counters.

    Returns:
        Tuple of (times_reviewed, times_correct, accuracy or None)
    """
    if states_df.empty:
        return 0, 0, None
    reviewed = int(states_df["times_reviewed"].sum())
    correct = int(states_df["times_correct"].sum())
    if reviewed == 0:
        return 0, 0, None
    return reviewed, correct, correct / reviewed


def active_states(states_df: pd.DataFrame) -> pd.DataFrame:
    """Rows the learner can currently be asked about (suspended cards dropped)."""
    if states_df.empty:
        return states_df
    return states_df[~states_df["suspended"].astype(bool)]


def compute_due_now(states_df: pd.DataFrame, now: datetime) -> int:
    states_df = active_states(states_df)
    if states_df.empty:
        return 0
    cutoff = pd.Timestamp(now).tz_convert("UTC")
    return int((states_df["next_review_at"] <= cutoff).sum())


def compute_completed_today(states_df: pd.DataFrame, now: datetime) -> int:
    """
    Cards last reviewed on or after the start of today (UTC).
    """
    if states_df.empty:
        return 0
    start_of_day = pd.Timestamp(now).tz_convert("UTC").floor("D")
    return int((states_df["last_reviewed_at"] >= start_of_day).sum())


def compute_suspended_count(states_df: pd.DataFrame) -> int:
    if states_df.empty:
        return 0
    return int(states_df["suspended"].astype(bool).sum())


def compute_upcoming_workload(
    states_df: pd.DataFrame,
    now: datetime,
    days: int
) -> pd.Series:
    """
    Cards due per UTC day for the next `days` days.

    Overdue cards count toward today; cards due after the window and
    suspended cards are left out.
    """
    states_df = active_states(states_df)
    day_index = build_day_index(now, days)
    if states_df.empty or len(day_index) == 0:
        return pd.Series(0, index=day_index, dtype="int64")

    today = day_index[0].date()
    due_dates = states_df["next_review_at"].dropna().dt.date
    counts = due_dates.map(lambda day: max(day, today)).value_counts()
    return pd.Series(
        [int(counts.get(day.date(), 0)) for day in day_index],
        index=day_index,
        dtype="int64",
    )


def compute_reviews_daily(events_df: pd.DataFrame) -> pd.Series:
    """
    Scored reviews per UTC day, dense over the event range (skips excluded).
    """
    if events_df.empty:
        return pd.Series(dtype="int64")

    reviews = events_df[events_df["event_type"] == "review"]
    if reviews.empty:
        return pd.Series(dtype="int64")

    day_index = pd.date_range(
        start=reviews["day_utc"].min(),
        end=reviews["day_utc"].max(),
        freq="D",
    )
    counts = reviews["timestamp"].dt.date.value_counts()
    return pd.Series(
        [int(counts.get(day.date(), 0)) for day in day_index],
        index=day_index,
        dtype="int64",
    )
