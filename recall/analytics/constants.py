"""
Shared constants for analytics.
"""

from recall.sm2.constants import ReviewStatus

STATUS_ORDER = [status.value for status in ReviewStatus]

DEFAULT_WORKLOAD_DAYS = 7

STATE_COLUMNS = [
    "card_id",
    "course_id",
    "card_type",
    "ease_factor",
    "repetitions",
    "status",
    "next_review_at",
    "last_reviewed_at",
    "times_reviewed",
    "times_correct",
    "times_incorrect",
    "suspended",
]

EVENT_COLUMNS = ["card_id", "event_type", "quality", "timestamp", "day_utc"]
