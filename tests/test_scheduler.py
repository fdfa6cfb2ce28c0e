import dataclasses
import datetime as dt
import random

import pytest

from recall.errors import InvalidQuality
from recall.sm2 import (
    FrequencyMode,
    QualityRating,
    ReviewState,
    ReviewStatus,
    initialize_review_state,
    process_review,
    schedule,
    skip,
)

NOW = dt.datetime(2024, 3, 1, 9, 0, 0, tzinfo=dt.timezone.utc)


def make_state(**overrides) -> ReviewState:
    state = initialize_review_state("u1", "c1", NOW - dt.timedelta(days=30))
    return dataclasses.replace(state, **overrides)


def test_first_good_rating_schedules_six_days():
    updated = schedule(make_state(), QualityRating.GOOD, now=NOW)

    assert updated.interval == 6
    assert updated.repetitions == 1
    assert updated.ease_factor == 2.5
    assert updated.scheduled_days == 6
    assert updated.next_review_at == NOW + dt.timedelta(days=6)
    assert updated.last_reviewed_at == NOW
    assert updated.times_reviewed == 1
    assert updated.times_correct == 1
    assert updated.status == ReviewStatus.LEARNING


def test_easy_rating_multiplies_interval_and_caps_ease():
    state = make_state(interval=6, ease_factor=2.5, repetitions=1)

    updated = schedule(state, 4, now=NOW)

    assert updated.interval == 15
    assert updated.ease_factor == 2.5
    assert updated.repetitions == 2


def test_again_rating_resets_interval_and_lowers_ease():
    state = make_state(interval=6, ease_factor=2.5, repetitions=1)

    updated = schedule(state, 1, now=NOW)

    assert updated.interval == 1
    assert updated.ease_factor == 2.3
    assert updated.repetitions == 0
    assert updated.times_correct == 0
    assert updated.times_incorrect == 1
    assert updated.status == ReviewStatus.NEW


@pytest.mark.parametrize("quality", [1, 2])
@pytest.mark.parametrize("interval,repetitions", [(0, 0), (1, 1), (6, 2), (120, 9)])
def test_failed_recall_always_resets(quality, interval, repetitions):
    state = make_state(interval=interval, ease_factor=2.0, repetitions=repetitions)

    updated = schedule(state, quality, now=NOW)

    assert updated.interval == 1
    assert updated.repetitions == 0
    assert updated.next_review_at == NOW + dt.timedelta(days=1)


def test_ease_factor_never_drops_below_floor():
    state = make_state(interval=3, ease_factor=1.3, repetitions=2)

    updated = schedule(state, QualityRating.AGAIN, now=NOW)

    assert updated.ease_factor == 1.3


def test_ease_factor_stays_in_bounds_for_random_rating_sequences():
    rng = random.Random(7)
    for _ in range(200):
        state = make_state()
        when = NOW
        for _ in range(30):
            state = schedule(state, rng.randint(1, 4), now=when)
            when = state.next_review_at
            assert 1.3 <= state.ease_factor <= 2.5
            assert state.next_review_at >= state.last_reviewed_at
            if state.repetitions >= 1:
                assert state.interval >= 1


def test_interval_rounds_half_up():
    state = make_state(interval=5, ease_factor=2.5, repetitions=2)

    updated = schedule(state, QualityRating.GOOD, now=NOW)

    assert updated.interval == 13


def test_good_rating_keeps_ease_and_grows_interval():
    state = make_state(interval=6, ease_factor=1.3, repetitions=1)

    updated = schedule(state, QualityRating.GOOD, now=NOW)

    assert updated.interval == 8
    assert updated.ease_factor == 1.3


def test_mastered_after_five_successes():
    state = make_state()
    when = NOW
    for _ in range(5):
        state = schedule(state, QualityRating.GOOD, now=when)
        when = state.next_review_at

    assert state.repetitions == 5
    assert state.status == ReviewStatus.MASTERED


@pytest.mark.parametrize("quality", [0, 5, -1, True, 3.0, "3", None])
def test_invalid_quality_is_rejected(quality):
    with pytest.raises(InvalidQuality):
        schedule(make_state(), quality, now=NOW)


def test_invalid_quality_is_a_value_error():
    with pytest.raises(ValueError):
        schedule(make_state(), 9, now=NOW)


def test_schedule_is_deterministic_and_pure():
    state = make_state(interval=6, ease_factor=2.2, repetitions=3, times_reviewed=3, times_correct=3)
    before = dataclasses.replace(state)

    first = schedule(state, 3, FrequencyMode.RELAXED, now=NOW, response_time_ms=1200)
    second = schedule(state, 3, FrequencyMode.RELAXED, now=NOW, response_time_ms=1200)

    assert first == second
    assert state == before


def test_skip_only_moves_next_review():
    state = make_state(interval=6, ease_factor=2.2, repetitions=3, times_reviewed=3, times_correct=3)

    skipped = skip(state, now=NOW)

    assert skipped == dataclasses.replace(state, next_review_at=NOW + dt.timedelta(hours=1))


def test_response_time_running_average():
    state = schedule(make_state(), 3, now=NOW, response_time_ms=1000)
    state = schedule(state, 3, now=state.next_review_at, response_time_ms=2000)
    state = schedule(state, 1, now=state.next_review_at)

    assert state.average_response_time_ms == 1500.0
    assert state.times_reviewed == 3


def test_untimed_review_does_not_dilute_average():
    state = schedule(make_state(), 3, now=NOW)
    state = schedule(state, 3, now=state.next_review_at, response_time_ms=1000)
    state = schedule(state, 3, now=state.next_review_at, response_time_ms=2000)

    assert state.average_response_time_ms == 1500.0
    assert state.timed_reviews == 2
    assert state.times_reviewed == 3


def test_process_review_returns_event_data():
    state = make_state(interval=6, ease_factor=2.5, repetitions=1)

    updated, event = process_review(state, 4, "intensive", now=NOW, response_time_ms=900)

    assert event["event_type"] == "review"
    assert event["quality"] == 4
    assert event["frequency_mode"] == "intensive"
    assert event["response_time_ms"] == 900
    assert (event["interval_before"], event["interval_after"]) == (6, 15)
    assert event["scheduled_days"] == 8
    assert event["next_review_at"] == updated.next_review_at == NOW + dt.timedelta(days=8)
    assert event["timestamp"] == NOW
