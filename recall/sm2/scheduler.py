"""
Scheduler - SM-2 Algorithm Logic

Pure SM-2 scheduling and state updates (no database calls).

Main workflow:
1. Load review state (caller's responsibility)
2. Apply the base SM-2 step for the quality rating
3. Scale the new interval by the user's frequency mode
4. Return updated state (+ event data dict for the review log)

Same inputs (including `now`) always give the same output.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple, Union

from recall.errors import InvalidQuality
from recall.sm2.constants import (
    EASE_STEP,
    FAILURE_EASE_PENALTY,
    FAILURE_INTERVAL,
    FIRST_SUCCESS_INTERVAL,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    PASSING_QUALITY,
    SKIP_DELAY,
    FrequencyMode,
    QualityRating,
)
from recall.sm2.frequency import apply_frequency, coerce_mode, round_half_up
from recall.sm2.review_state import ReviewState


def validate_quality(quality: Any) -> QualityRating:
    """
    Convert a raw rating to QualityRating.

    Raises:
        InvalidQuality: not an integer in 1..4
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(quality)
    try:
        return QualityRating(quality)
    except ValueError:
        raise InvalidQuality(quality) from None


def clamp_ease(ease_factor: float) -> float:
    return round(min(MAX_EASE_FACTOR, max(MIN_EASE_FACTOR, ease_factor)), 2)


def sm2_step(
    interval: int,
    ease_factor: float,
    repetitions: int,
    quality: QualityRating
) -> Tuple[int, float, int]:
    """
    Base SM-2 step on the 1-4 scale.

    Failure (AGAIN/HARD):
        interval = 1, ease -= 0.2 (floor 1.3), repetitions = 0
    Success (GOOD/EASY):
        interval = 6 on the first success, else round(interval * ease)
        ease += (quality - 3) * 0.1 (cap 2.5), repetitions += 1

    Returns:
        Tuple of (interval, ease_factor, repetitions)
    """
    if quality < PASSING_QUALITY:
        return FAILURE_INTERVAL, clamp_ease(ease_factor - FAILURE_EASE_PENALTY), 0

    if repetitions == 0:
        new_interval = FIRST_SUCCESS_INTERVAL
    else:
        new_interval = max(1, round_half_up(interval * ease_factor))

    new_ease = clamp_ease(ease_factor + (int(quality) - int(PASSING_QUALITY)) * EASE_STEP)
    return new_interval, new_ease, repetitions + 1


def schedule(
    state: ReviewState,
    quality: Union[QualityRating, int],
    mode: Union[FrequencyMode, str, None] = FrequencyMode.NORMAL,
    now: Optional[datetime] = None,
    response_time_ms: Optional[int] = None
) -> ReviewState:
    """
    Compute the new review state for a quality rating.

    The input state is not modified.

    Args:
        state: Current review state
        quality: Rating 1-4 (AGAIN, HARD, GOOD, EASY)
        mode: User's frequency mode (applied once, after the SM-2 step)
        now: Review timestamp (defaults to now)
        response_time_ms: Optional time the learner took to answer

    Returns:
        Updated ReviewState
    """
    quality = validate_quality(quality)
    mode = coerce_mode(mode)
    if now is None:
        now = datetime.now(timezone.utc)

    interval, ease_factor, repetitions = sm2_step(
        state.interval, state.ease_factor, state.repetitions, quality
    )
    scheduled_days = apply_frequency(interval, mode)

    correct = quality >= PASSING_QUALITY
    timed_reviews = state.timed_reviews + (0 if response_time_ms is None else 1)

    return replace(
        state,
        interval=interval,
        ease_factor=ease_factor,
        repetitions=repetitions,
        scheduled_days=scheduled_days,
        last_reviewed_at=now,
        next_review_at=now + timedelta(days=scheduled_days),
        times_reviewed=state.times_reviewed + 1,
        times_correct=state.times_correct + (1 if correct else 0),
        times_incorrect=state.times_incorrect + (0 if correct else 1),
        average_response_time_ms=_running_average(
            state.average_response_time_ms, response_time_ms, timed_reviews
        ),
        timed_reviews=timed_reviews,
    )


def skip(state: ReviewState, now: Optional[datetime] = None) -> ReviewState:
    """
    Push a card back by one hour without scoring it.

    Only next_review_at changes; counters and SM-2 parameters stay put.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    return replace(state, next_review_at=now + SKIP_DELAY)


def process_review(
    state: ReviewState,
    quality: Union[QualityRating, int],
    mode: Union[FrequencyMode, str, None] = FrequencyMode.NORMAL,
    now: Optional[datetime] = None,
    response_time_ms: Optional[int] = None
) -> Tuple[ReviewState, dict]:
    """
    Schedule a review and build the matching review-event record.

    No database calls. Caller is responsible for:
    1. Loading the state
    2. Saving the state after review
    3. Persisting the event

    Returns:
        Tuple of (updated_state, event_data_dict)
        event_data_dict is ready to pass to ReviewStore.log_review_event()
    """
    quality = validate_quality(quality)
    mode = coerce_mode(mode)
    if now is None:
        now = datetime.now(timezone.utc)

    updated = schedule(state, quality, mode, now, response_time_ms)

    event_data = {
        'user_id': state.user_id,
        'card_id': state.card_id,
        'event_type': 'review',
        'timestamp': now,
        'quality': int(quality),
        'frequency_mode': mode.value,
        'response_time_ms': response_time_ms,
        'interval_before': state.interval,
        'ease_factor_before': state.ease_factor,
        'repetitions_before': state.repetitions,
        'interval_after': updated.interval,
        'ease_factor_after': updated.ease_factor,
        'repetitions_after': updated.repetitions,
        'scheduled_days': updated.scheduled_days,
        'next_review_at': updated.next_review_at,
    }

    return updated, event_data


def _running_average(
    average: Optional[float],
    sample: Optional[int],
    count: int
) -> Optional[float]:
    if sample is None:
        return average
    if average is None or count <= 1:
        return float(sample)
    return average + (sample - average) / count
