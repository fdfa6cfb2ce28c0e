"""
Due-Set Selector - build the study queue

Two layers:
- select_due_set(): pure filtering/ordering over already-fetched
  (card, state) pairs, no DB calls
- build_due_set(): loads the catalog and the user's review states from a
  ReviewStore and hands them to select_due_set()

Reads are not synchronized with writes; a card that shows up one refresh
late is acceptable. An empty result is the normal "nothing due" outcome.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from recall.cards.models import CardDefinition, parse_card
from recall.due_set.filters import DueSetFilters
from recall.errors import InvalidCardPayload
from recall.logging_config import get_logger
from recall.sm2.constants import DIFFICULT_EASE_THRESHOLD, RECENT_WINDOW
from recall.sm2.database import ReviewStore, as_utc
from recall.sm2.review_state import ReviewState, initialize_review_state

logger = get_logger("recall.due_set")


@dataclass(frozen=True)
class DueSetEntry:
    card: CardDefinition
    state: ReviewState


@dataclass
class DueSet:
    """
    Ordered study queue.

    invalid_card_ids lists catalog cards left out because their payload
    failed validation; they never block the rest of the queue.
    """
    entries: list[DueSetEntry] = field(default_factory=list)
    invalid_card_ids: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries


# ---- Predicates ----

def is_difficult(state: ReviewState) -> bool:
    return state.ease_factor < DIFFICULT_EASE_THRESHOLD


def is_recently_learned(state: ReviewState, now: datetime) -> bool:
    if state.last_reviewed_at is None:
        return False
    return state.last_reviewed_at >= now - RECENT_WINDOW


def _matches(entry: DueSetEntry, filters: DueSetFilters, now: datetime) -> bool:
    if not entry.card.is_active or entry.state.suspended:
        return False
    if filters.course_id is not None and entry.card.course_id != filters.course_id:
        return False
    if not filters.practice_all and not entry.state.is_due(now):
        return False
    if filters.difficult_only and not is_difficult(entry.state):
        return False
    if filters.recently_learned and not is_recently_learned(entry.state, now):
        return False
    return True


def _due_key(entry: DueSetEntry, now: datetime):
    # Missing next_review_at counts as due now; card id breaks ties
    return (entry.state.next_review_at or now, entry.card.id)


# ---- Selection ----

def select_due_set(
    entries: Iterable[DueSetEntry],
    filters: DueSetFilters,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None
) -> list[DueSetEntry]:
    """
    Filter and order (card, state) pairs (no DB calls).

    Args:
        entries: Candidate pairs
        filters: Due-set options
        now: Reference time (defaults to now)
        rng: Random source for shuffle (defaults to the module RNG)

    Returns:
        Entries in study order, ascending next_review_at unless shuffled
    """
    if now is None:
        now = datetime.now(timezone.utc)

    selected = [entry for entry in entries if _matches(entry, filters, now)]

    if filters.shuffle:
        (rng or random).shuffle(selected)
    else:
        selected.sort(key=lambda entry: _due_key(entry, now))

    if filters.limit is not None:
        selected = selected[:filters.limit]

    return selected


def build_due_set(
    store: ReviewStore,
    user_id: str,
    filters: DueSetFilters,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None
) -> DueSet:
    """
    Join catalog cards with the user's review states and select the queue.

    Cards the user has never reviewed get a fresh, unsaved state due now.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = as_utc(now)

    entries: list[DueSetEntry] = []
    invalid: list[str] = []

    with store.session_scope() as session:
        records = store.list_cards(session, filters.course_id)
        states = store.load_states_for_user(session, user_id)

    for record in records:
        if not record.is_active:
            continue
        try:
            card = parse_card(record.payload)
        except InvalidCardPayload as exc:
            logger.warning("Excluding card %s from due set: %s", record.id, exc.reason)
            invalid.append(record.id)
            continue

        state = states.get(card.id)
        if state is None:
            state = initialize_review_state(user_id, card.id, now)
        entries.append(DueSetEntry(card=card, state=state))

    selected = select_due_set(entries, filters, now, rng)
    logger.debug(
        "Due set for %s: %d of %d cards (%d invalid)",
        user_id, len(selected), len(entries), len(invalid)
    )
    return DueSet(entries=selected, invalid_card_ids=invalid)
