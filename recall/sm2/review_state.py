"""
Review State - per-user, per-card memory model

Defines the mutable scheduling state for one (user, card) pair.

Key quantities:
- interval: SM-2 interval in days (the base trajectory, before frequency scaling)
- scheduled_days: interval after frequency scaling; what next_review_at was set from
- ease_factor: multiplier for interval growth, clamped to [1.3, 2.5]
- repetitions: consecutive successful recalls
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from recall.sm2.constants import (
    INITIAL_EASE_FACTOR,
    MASTERED_REPETITIONS,
    ReviewStatus,
)


@dataclass
class ReviewState:
    """
    Scheduling state for a single card as seen by a single user.

    Created on first exposure, changed only by the scheduler.
    """
    user_id: str
    card_id: str

    # SM-2 parameters
    interval: int = 0
    ease_factor: float = INITIAL_EASE_FACTOR
    repetitions: int = 0
    scheduled_days: int = 0

    # Timestamps
    last_reviewed_at: Optional[datetime] = None
    next_review_at: Optional[datetime] = None

    # Counters (never decrease)
    times_reviewed: int = 0
    times_correct: int = 0
    times_incorrect: int = 0
    average_response_time_ms: Optional[float] = None
    timed_reviews: int = 0  # reviews that carried a response time

    # Personal pause; suspended cards never enter a due set
    suspended: bool = False

    # Optimistic concurrency counter, bumped on every committed write
    version: int = 0

    @property
    def status(self) -> ReviewStatus:
        return derive_status(self.repetitions)

    @property
    def accuracy(self) -> Optional[float]:
        if self.times_reviewed == 0:
            return None
        return self.times_correct / self.times_reviewed

    def is_due(self, now: datetime) -> bool:
        return self.next_review_at is None or self.next_review_at <= now


def derive_status(repetitions: int) -> ReviewStatus:
    """new if 0, learning if 1-4, mastered from 5 on."""
    if repetitions <= 0:
        return ReviewStatus.NEW
    if repetitions < MASTERED_REPETITIONS:
        return ReviewStatus.LEARNING
    return ReviewStatus.MASTERED


def initialize_review_state(
    user_id: str,
    card_id: str,
    now: Optional[datetime] = None
) -> ReviewState:
    """
    Initialize state for a card the user has never seen.

    New cards are due immediately.

    Args:
        user_id: User identifier
        card_id: Catalog card id
        now: Creation time (defaults to now)

    Returns:
        New ReviewState with SM-2 defaults
    """
    if now is None:
        now = datetime.now(timezone.utc)

    return ReviewState(
        user_id=user_id,
        card_id=card_id,
        next_review_at=now,
    )
