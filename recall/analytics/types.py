"""
Types for review dashboards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd


@dataclass(frozen=True)
class ReviewDashboardData:
    """
    Precomputed metrics and series for one learner (optionally one course).
    """
    user_id: str
    course_id: Optional[str]
    total_cards: int
    status_counts: dict[str, int]
    times_reviewed: int
    times_correct: int
    accuracy: Optional[float]
    due_now: int
    completed_today: int             # cards last reviewed since UTC midnight
    suspended_cards: int
    upcoming_workload: pd.Series   # cards due per UTC day, today first
    reviews_daily: pd.Series       # review events per UTC day

    def to_dict(self) -> dict:
        """JSON-safe view (dates as ISO strings)."""
        return {
            "user_id": self.user_id,
            "course_id": self.course_id,
            "total_cards": self.total_cards,
            "status_counts": dict(self.status_counts),
            "times_reviewed": self.times_reviewed,
            "times_correct": self.times_correct,
            "accuracy": self.accuracy,
            "due_now": self.due_now,
            "completed_today": self.completed_today,
            "suspended_cards": self.suspended_cards,
            "upcoming_workload": _series_to_list(self.upcoming_workload),
            "reviews_daily": _series_to_list(self.reviews_daily),
        }


def _series_to_list(series: pd.Series) -> list[dict]:
    return [
        {"date": day.date().isoformat(), "count": int(count)}
        for day, count in series.items()
    ]
