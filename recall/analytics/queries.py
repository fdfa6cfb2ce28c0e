"""
Data-loading helpers for analytics.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import pandas as pd

from recall.analytics.constants import EVENT_COLUMNS, STATE_COLUMNS
from recall.sm2.database import ReviewStore
from recall.sm2.review_state import derive_status, initialize_review_state


def load_review_states_df(
    store: ReviewStore,
    user_id: str,
    course_id: Optional[str],
    now: datetime
) -> pd.DataFrame:
    """
    One row per active catalog card, joined with the user's review state.

    Cards never reviewed appear with default (new, due now) values.
    """
    with store.session_scope() as session:
        records = store.list_cards(session, course_id)
        states = store.load_states_for_user(session, user_id)

    rows = []
    for record in records:
        if not record.is_active:
            continue
        state = states.get(record.id) or initialize_review_state(user_id, record.id, now)
        rows.append({
            "card_id": record.id,
            "course_id": record.course_id,
            "card_type": record.card_type,
            "ease_factor": state.ease_factor,
            "repetitions": state.repetitions,
            "status": derive_status(state.repetitions).value,
            "next_review_at": state.next_review_at,
            "last_reviewed_at": state.last_reviewed_at,
            "times_reviewed": state.times_reviewed,
            "times_correct": state.times_correct,
            "times_incorrect": state.times_incorrect,
            "suspended": state.suspended,
        })

    if not rows:
        return pd.DataFrame(columns=STATE_COLUMNS)

    df = pd.DataFrame(rows, columns=STATE_COLUMNS)
    df["next_review_at"] = pd.to_datetime(df["next_review_at"], utc=True, errors="coerce")
    df["last_reviewed_at"] = pd.to_datetime(df["last_reviewed_at"], utc=True, errors="coerce")
    return df


def load_review_events_df(
    store: ReviewStore,
    user_id: str,
    card_ids: Optional[list[str]] = None
) -> pd.DataFrame:
    """
    Load review/skip events for a user into a dataframe.
    """
    with store.session_scope() as session:
        rows = store.get_review_events(session, user_id)

    if card_ids is not None:
        wanted = set(card_ids)
        rows = [row for row in rows if row["card_id"] in wanted]
    if not rows:
        return pd.DataFrame(columns=EVENT_COLUMNS)

    df = pd.DataFrame(rows)
    df = df[["card_id", "event_type", "quality", "timestamp"]].copy()
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True, errors="coerce")
    df = df.dropna(subset=["card_id", "timestamp"])
    df["day_utc"] = df["timestamp"].dt.floor("D")
    df = df.sort_values("timestamp").reset_index(drop=True)
    return df
