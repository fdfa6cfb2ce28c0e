"""
Service layer to assemble the review dashboard.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from recall.analytics.constants import DEFAULT_WORKLOAD_DAYS
from recall.analytics.metrics import (
    compute_accuracy,
    compute_completed_today,
    compute_due_now,
    compute_reviews_daily,
    compute_status_counts,
    compute_suspended_count,
    compute_upcoming_workload,
)
from recall.analytics.queries import load_review_events_df, load_review_states_df
from recall.analytics.types import ReviewDashboardData
from recall.sm2.database import ReviewStore, as_utc


def build_review_dashboard(
    store: ReviewStore,
    user_id: str,
    course_id: Optional[str] = None,
    now: Optional[datetime] = None,
    days: int = DEFAULT_WORKLOAD_DAYS
) -> ReviewDashboardData:
    """
    Build all KPI values and series for a learner's review dashboard.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = as_utc(now)

    states_df = load_review_states_df(store, user_id, course_id, now)
    card_ids = None if course_id is None else states_df["card_id"].tolist()
    events_df = load_review_events_df(store, user_id, card_ids)

    reviewed, correct, accuracy = compute_accuracy(states_df)

    return ReviewDashboardData(
        user_id=user_id,
        course_id=course_id,
        total_cards=len(states_df),
        status_counts=compute_status_counts(states_df),
        times_reviewed=reviewed,
        times_correct=correct,
        accuracy=accuracy,
        due_now=compute_due_now(states_df, now),
        completed_today=compute_completed_today(states_df, now),
        suspended_cards=compute_suspended_count(states_df),
        upcoming_workload=compute_upcoming_workload(states_df, now, days),
        reviews_daily=compute_reviews_daily(events_df),
    )
