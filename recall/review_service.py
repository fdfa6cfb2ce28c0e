"""
Review service - transaction boundary around the pure engine

Each write runs in one database transaction:
    load state -> schedule -> compare-and-swap save -> append review event

If anything fails the transaction rolls back and the stored review state
is exactly what it was before the call.
"""

from __future__ import annotations

import random
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional, Union

from recall.analytics.constants import DEFAULT_WORKLOAD_DAYS
from recall.analytics.service import build_review_dashboard
from recall.analytics.types import ReviewDashboardData
from recall.due_set import DueSet, DueSetFilters, build_due_set
from recall.errors import ConcurrentModification, MalformedResponse
from recall.evaluation import Verdict, evaluate
from recall.logging_config import get_logger
from recall.sm2.constants import FrequencyMode, QualityRating
from recall.sm2.database import ReviewStore, as_utc
from recall.sm2.review_state import ReviewState, initialize_review_state
from recall.sm2.scheduler import process_review, skip, validate_quality

logger = get_logger("recall.review_service")


class ReviewService:
    """
    Entry point used by the HTTP layer and scripts.

    Holds no state beyond the injected store.
    """

    def __init__(self, store: ReviewStore):
        self.store = store

    # ---- Scheduling ----

    def submit_review(
        self,
        user_id: str,
        card_id: str,
        quality: Union[QualityRating, int],
        response_time_ms: Optional[int] = None,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> ReviewState:
        """
        Rate a card and persist its new schedule.

        Args:
            user_id: Learner
            card_id: Catalog card id
            quality: 1-4 (AGAIN, HARD, GOOD, EASY)
            response_time_ms: Optional answer time
            expected_version: Version the client last saw (None = whatever is stored)
            now: Review time (defaults to now)

        Returns:
            The committed ReviewState (with its new version)

        Raises:
            InvalidQuality, CardNotFound, ConcurrentModification
        """
        quality = validate_quality(quality)
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)

        try:
            with self.store.session_scope() as session:
                self.store.get_card(session, card_id)
                state = self._load_or_initialize(session, user_id, card_id, now)
                self._check_version(state, expected_version)

                mode = self.store.get_frequency_mode(session, user_id)
                updated, event_data = process_review(state, quality, mode, now, response_time_ms)

                version = self.store.save_review_state(session, updated, state.version)
                self.store.log_review_event(session, event_data)
        except ConcurrentModification as exc:
            logger.warning(
                "Rejected review of %s by %s: version %s is stale",
                card_id, user_id, exc.expected_version
            )
            raise

        updated = replace(updated, version=version)
        logger.info(
            "Review %s/%s quality=%s mode=%s -> interval=%s scheduled_days=%s ease=%.2f reps=%s",
            user_id, card_id, quality.name, mode.value,
            updated.interval, updated.scheduled_days, updated.ease_factor, updated.repetitions
        )
        return updated

    def skip_card(
        self,
        user_id: str,
        card_id: str,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> ReviewState:
        """
        Push a card back one hour without scoring it.
        """
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)

        try:
            with self.store.session_scope() as session:
                self.store.get_card(session, card_id)
                state = self._load_or_initialize(session, user_id, card_id, now)
                self._check_version(state, expected_version)

                updated = skip(state, now)
                version = self.store.save_review_state(session, updated, state.version)
                self.store.log_review_event(session, {
                    'user_id': user_id,
                    'card_id': card_id,
                    'event_type': 'skip',
                    'timestamp': now,
                    'interval_before': state.interval,
                    'ease_factor_before': state.ease_factor,
                    'repetitions_before': state.repetitions,
                    'interval_after': updated.interval,
                    'ease_factor_after': updated.ease_factor,
                    'repetitions_after': updated.repetitions,
                    'next_review_at': updated.next_review_at,
                })
        except ConcurrentModification as exc:
            logger.warning(
                "Rejected skip of %s by %s: version %s is stale",
                card_id, user_id, exc.expected_version
            )
            raise

        logger.info("Skip %s/%s -> next_review_at=%s", user_id, card_id, updated.next_review_at.isoformat())
        return replace(updated, version=version)

    def set_suspended(
        self,
        user_id: str,
        card_id: str,
        suspended: bool,
        expected_version: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> ReviewState:
        """
        Take a card out of (or back into) the user's queue.

        Scheduling parameters and counters are untouched; a suspended card
        keeps its next_review_at and is due again as soon as it is resumed.
        """
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)

        try:
            with self.store.session_scope() as session:
                self.store.get_card(session, card_id)
                state = self.store.set_suspended(
                    session, user_id, card_id, suspended, now, expected_version
                )
        except ConcurrentModification as exc:
            logger.warning(
                "Rejected suspend change of %s by %s: version %s is stale",
                card_id, user_id, exc.expected_version
            )
            raise

        logger.info("%s %s/%s", "Suspended" if suspended else "Resumed", user_id, card_id)
        return state

    def get_review_state(self, user_id: str, card_id: str, now: Optional[datetime] = None) -> ReviewState:
        """Stored state, or the unsaved initial state for a card never seen."""
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        with self.store.session_scope() as session:
            self.store.get_card(session, card_id)
            return self._load_or_initialize(session, user_id, card_id, now)

    # ---- Evaluation ----

    def evaluate_response(self, card_id: str, response: Any) -> Verdict:
        """
        Check a submitted answer against the stored card.

        Raises:
            CardNotFound, InvalidCardPayload, MalformedResponse
        """
        with self.store.session_scope() as session:
            card = self.store.get_card(session, card_id)

        try:
            return evaluate(card, response)
        except MalformedResponse as exc:
            logger.info("Malformed response for %s: %s", card_id, exc.reason)
            raise

    # ---- Queries ----

    def due_cards(
        self,
        user_id: str,
        filters: Optional[DueSetFilters] = None,
        now: Optional[datetime] = None,
        rng: Optional[random.Random] = None
    ) -> DueSet:
        if filters is None:
            filters = DueSetFilters.with_default_limit()
        return build_due_set(self.store, user_id, filters, now, rng)

    def summary(
        self,
        user_id: str,
        course_id: Optional[str] = None,
        now: Optional[datetime] = None,
        days: int = DEFAULT_WORKLOAD_DAYS
    ) -> ReviewDashboardData:
        return build_review_dashboard(self.store, user_id, course_id, now, days)

    # ---- User settings ----

    def get_frequency_mode(self, user_id: str) -> FrequencyMode:
        with self.store.session_scope() as session:
            return self.store.get_frequency_mode(session, user_id)

    def set_frequency_mode(self, user_id: str, mode: Union[FrequencyMode, str]) -> FrequencyMode:
        """
        Store the user's pace preference.

        Only intervals computed from now on are affected; stored
        next_review_at values are left alone.
        """
        with self.store.session_scope() as session:
            mode = self.store.set_frequency_mode(session, user_id, mode)
        logger.info("Frequency mode for %s set to %s", user_id, mode.value)
        return mode

    # ---- Helpers ----

    def _load_or_initialize(self, session, user_id: str, card_id: str, now: datetime) -> ReviewState:
        state = self.store.load_review_state(session, user_id, card_id)
        if state is None:
            state = initialize_review_state(user_id, card_id, now)
        return state

    @staticmethod
    def _check_version(state: ReviewState, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != state.version:
            raise ConcurrentModification(state.user_id, state.card_id, expected_version)
