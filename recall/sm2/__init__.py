"""
SM-2 - Spaced Repetition Scheduler

Main API for the review engine.

This module implements the simplified SM-2 variant used by the platform:
- 1-4 quality scale (Again, Hard, Good, Easy)
- Ease factor clamped to [1.3, 2.5]
- Per-user frequency mode scaling the freshly computed interval
- A skip path that pushes a card back one hour without scoring it

Quick start:
    from recall import sm2

    store = sm2.ReviewStore(sm2.get_engine())
    store.init_db()

    # Process a review (algorithm only, no DB calls)
    state, event_data = sm2.process_review(state, sm2.QualityRating.GOOD)
"""

# Core scheduler API (algorithm logic)
from recall.sm2.scheduler import (
    process_review,
    schedule,
    skip,
    sm2_step,
    validate_quality,
)
from recall.sm2.frequency import apply_frequency, coerce_mode

# Database API
from recall.sm2.database import ReviewStore, get_engine

# Constants and parameters
from recall.sm2.constants import (
    QualityRating,
    FrequencyMode,
    ReviewStatus,
    INITIAL_EASE_FACTOR,
    MIN_EASE_FACTOR,
    MAX_EASE_FACTOR,
    FIRST_SUCCESS_INTERVAL,
    MASTERED_REPETITIONS,
    SKIP_DELAY,
    DIFFICULT_EASE_THRESHOLD,
    RECENT_WINDOW,
)

# Review state
from recall.sm2.review_state import (
    ReviewState,
    derive_status,
    initialize_review_state,
)


__all__ = [
    # Core algorithm
    "process_review",
    "schedule",
    "skip",
    "sm2_step",
    "validate_quality",
    "apply_frequency",
    "coerce_mode",

    # Database operations
    "ReviewStore",
    "get_engine",

    # Enums
    "QualityRating",
    "FrequencyMode",
    "ReviewStatus",

    # Review state
    "ReviewState",
    "derive_status",
    "initialize_review_state",

    # Parameters
    "INITIAL_EASE_FACTOR",
    "MIN_EASE_FACTOR",
    "MAX_EASE_FACTOR",
    "FIRST_SUCCESS_INTERVAL",
    "MASTERED_REPETITIONS",
    "SKIP_DELAY",
    "DIFFICULT_EASE_THRESHOLD",
    "RECENT_WINDOW",
]
