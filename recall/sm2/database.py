"""
Database - Review Store I/O Operations

Handles all database operations for cards, review state, review events
and user settings. Uses SQLAlchemy ORM; any SQLAlchemy backend works
(Postgres in production, SQLite for tests and local use).

This module handles ONLY database I/O.
Algorithm logic is handled by the scheduler module.

Review state writes are compare-and-swap on a version column: a second
writer that raced the first gets ConcurrentModification, never a merge.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterator, Optional, Union

from sqlalchemy import create_engine, delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from recall.cards.models import CardDefinition, card_to_dict, parse_card
from recall.config import get_database_url
from recall.errors import CardNotFound, ConcurrentModification
from recall.logging_config import get_logger
from recall.sm2.constants import FrequencyMode
from recall.sm2.frequency import coerce_mode
from recall.sm2.models import (
    Base,
    CardRecord,
    ReviewEvent as ReviewEventModel,
    ReviewStateRecord,
    UserSettings,
)
from recall.sm2.review_state import ReviewState, initialize_review_state

logger = get_logger("recall.store")


def get_engine(db_url: Optional[str] = None) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    Uses connection pooling for server databases.

    Args:
        db_url: Connection string (defaults to DATABASE_URL)

    Returns:
        SQLAlchemy Engine instance
    """
    db_url = db_url or get_database_url()
    if db_url.startswith("sqlite"):
        return create_engine(db_url, connect_args={"check_same_thread": False}, echo=False)
    return create_engine(
        db_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _row_to_state(row: ReviewStateRecord) -> ReviewState:
    return ReviewState(
        user_id=row.user_id,
        card_id=row.card_id,
        interval=row.interval,
        ease_factor=row.ease_factor,
        repetitions=row.repetitions,
        scheduled_days=row.scheduled_days,
        last_reviewed_at=as_utc(row.last_reviewed_at),
        next_review_at=as_utc(row.next_review_at),
        times_reviewed=row.times_reviewed,
        times_correct=row.times_correct,
        times_incorrect=row.times_incorrect,
        average_response_time_ms=row.average_response_time_ms,
        timed_reviews=row.timed_reviews or 0,
        suspended=bool(row.suspended),
        version=row.version,
    )


def _state_values(state: ReviewState) -> dict:
    return {
        "interval": state.interval,
        "ease_factor": state.ease_factor,
        "repetitions": state.repetitions,
        "scheduled_days": state.scheduled_days,
        "last_reviewed_at": state.last_reviewed_at,
        "next_review_at": state.next_review_at,
        "times_reviewed": state.times_reviewed,
        "times_correct": state.times_correct,
        "times_incorrect": state.times_incorrect,
        "average_response_time_ms": state.average_response_time_ms,
        "timed_reviews": state.timed_reviews,
        "suspended": state.suspended,
    }


def _event_to_dict(event: ReviewEventModel) -> dict:
    return {
        "id": event.id,
        "user_id": event.user_id,
        "card_id": event.card_id,
        "event_type": event.event_type,
        "timestamp": as_utc(event.timestamp),
        "quality": event.quality,
        "frequency_mode": event.frequency_mode,
        "response_time_ms": event.response_time_ms,
        "interval_before": event.interval_before,
        "ease_factor_before": event.ease_factor_before,
        "repetitions_before": event.repetitions_before,
        "interval_after": event.interval_after,
        "ease_factor_after": event.ease_factor_after,
        "repetitions_after": event.repetitions_after,
        "scheduled_days": event.scheduled_days,
        "next_review_at": as_utc(event.next_review_at),
    }


class ReviewStore:
    """
    Persistence boundary for the review engine.

    Owns an engine and a session factory; passed into the service layer
    rather than held as a process-wide global.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_env(cls) -> "ReviewStore":
        return cls(get_engine())

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        One transaction: commit on success, roll back on any error.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ---- Schema ----

    def init_db(self) -> None:
        """
        Create tables if they don't exist.

        Safe to call multiple times.
        """
        Base.metadata.create_all(self.engine)

    def reset_db(self) -> None:
        """
        DANGEROUS: Delete all data and recreate tables.

        Only use this for testing or when you want to start fresh.
        All review history will be lost!
        """
        Base.metadata.drop_all(self.engine)
        logger.warning("All review tables dropped")
        self.init_db()

    def table_counts(self, session: Session) -> dict[str, int]:
        """Row count per table, keyed by table name."""
        return {
            table.name: session.scalar(select(func.count()).select_from(table))
            for table in Base.metadata.sorted_tables
        }

    def clear_review_data(self, session: Session) -> None:
        """Delete review states, events and settings; the card catalog stays."""
        for model in (ReviewEventModel, ReviewStateRecord, UserSettings):
            session.execute(delete(model))
        logger.warning("Review data cleared, card catalog kept")

    # ---- Card catalog ----

    def upsert_card(self, session: Session, card: CardDefinition, now: Optional[datetime] = None) -> None:
        """Insert or replace a card definition in the catalog."""
        if now is None:
            now = datetime.now(timezone.utc)

        record = session.get(CardRecord, card.id)
        payload = card_to_dict(card)
        if record is None:
            record = CardRecord(
                id=card.id,
                course_id=card.course_id,
                card_type=card.card_type,
                payload=payload,
                is_active=card.is_active,
                created_at=now,
                updated_at=now,
            )
            session.add(record)
        else:
            record.course_id = card.course_id
            record.card_type = card.card_type
            record.payload = payload
            record.is_active = card.is_active
            record.updated_at = now
        session.flush()

    def get_card(self, session: Session, card_id: str) -> CardDefinition:
        """
        Load and parse a card definition.

        Raises:
            CardNotFound: no such card
            InvalidCardPayload: stored payload no longer validates
        """
        record = session.get(CardRecord, card_id)
        if record is None:
            raise CardNotFound(card_id)
        return parse_card(record.payload)

    def list_cards(self, session: Session, course_id: Optional[str] = None) -> list[CardRecord]:
        """Raw catalog rows, unparsed (callers decide how to treat bad payloads)."""
        stmt = select(CardRecord).order_by(CardRecord.id)
        if course_id is not None:
            stmt = stmt.where(CardRecord.course_id == course_id)
        return list(session.scalars(stmt))

    # ---- Review state ----

    def load_review_state(self, session: Session, user_id: str, card_id: str) -> Optional[ReviewState]:
        """
        Load review state from database.

        Returns:
            ReviewState if found, None if the user never saw the card
        """
        row = session.get(ReviewStateRecord, (user_id, card_id))
        if row is None:
            return None
        return _row_to_state(row)

    def save_review_state(self, session: Session, state: ReviewState, expected_version: int) -> int:
        """
        Compare-and-swap write of a review state.

        expected_version == 0 means the state has never been saved (insert);
        otherwise the stored row must still carry expected_version.

        Returns:
            The new version number

        Raises:
            ConcurrentModification: another write got there first
        """
        if expected_version == 0:
            row = ReviewStateRecord(
                user_id=state.user_id,
                card_id=state.card_id,
                version=1,
                **_state_values(state),
            )
            session.add(row)
            try:
                session.flush()
            except IntegrityError as exc:
                raise ConcurrentModification(state.user_id, state.card_id, expected_version) from exc
            return 1

        result = session.execute(
            update(ReviewStateRecord)
            .where(
                ReviewStateRecord.user_id == state.user_id,
                ReviewStateRecord.card_id == state.card_id,
                ReviewStateRecord.version == expected_version,
            )
            .values(version=expected_version + 1, **_state_values(state))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrentModification(state.user_id, state.card_id, expected_version)
        return expected_version + 1

    def load_states_for_user(
        self,
        session: Session,
        user_id: str,
        card_ids: Optional[list[str]] = None
    ) -> dict[str, ReviewState]:
        """All review states of a user, keyed by card id."""
        stmt = select(ReviewStateRecord).where(ReviewStateRecord.user_id == user_id)
        if card_ids is not None:
            stmt = stmt.where(ReviewStateRecord.card_id.in_(card_ids))
        return {row.card_id: _row_to_state(row) for row in session.scalars(stmt)}

    def set_suspended(
        self,
        session: Session,
        user_id: str,
        card_id: str,
        suspended: bool,
        now: Optional[datetime] = None,
        expected_version: Optional[int] = None
    ) -> ReviewState:
        """
        Pause or resume a card for one user.

        Goes through the same compare-and-swap write as a review; a card the
        user never saw gets its initial state saved with the flag set.

        Returns:
            The stored ReviewState with its new version

        Raises:
            ConcurrentModification: expected_version is stale or a write raced this one
        """
        state = self.load_review_state(session, user_id, card_id)
        if state is None:
            state = initialize_review_state(user_id, card_id, now)
        if expected_version is not None and expected_version != state.version:
            raise ConcurrentModification(user_id, card_id, expected_version)

        updated = replace(state, suspended=suspended)
        version = self.save_review_state(session, updated, state.version)
        return replace(updated, version=version)

    # ---- Review events ----

    def log_review_event(self, session: Session, event: dict) -> None:
        """
        Append a review or skip event.

        Args:
            event: Dict with keys user_id, card_id, event_type, timestamp,
                next_review_at and optionally quality, frequency_mode,
                response_time_ms, *_before, *_after, scheduled_days
        """
        session.add(ReviewEventModel(
            user_id=event['user_id'],
            card_id=event['card_id'],
            event_type=event.get('event_type', 'review'),
            timestamp=event['timestamp'],
            quality=event.get('quality'),
            frequency_mode=event.get('frequency_mode'),
            response_time_ms=event.get('response_time_ms'),
            interval_before=event.get('interval_before'),
            ease_factor_before=event.get('ease_factor_before'),
            repetitions_before=event.get('repetitions_before'),
            interval_after=event.get('interval_after'),
            ease_factor_after=event.get('ease_factor_after'),
            repetitions_after=event.get('repetitions_after'),
            scheduled_days=event.get('scheduled_days'),
            next_review_at=event['next_review_at'],
        ))
        session.flush()

    def get_recent_events(self, session: Session, user_id: str, limit: int = 10) -> list[dict]:
        """
        Get recent review events.

        Returns:
            List of recent events (newest first)
        """
        stmt = (
            select(ReviewEventModel)
            .where(ReviewEventModel.user_id == user_id)
            .order_by(ReviewEventModel.timestamp.desc(), ReviewEventModel.id.desc())
            .limit(limit)
        )
        return [_event_to_dict(event) for event in session.scalars(stmt)]

    def get_review_events(
        self,
        session: Session,
        user_id: str,
        since: Optional[datetime] = None
    ) -> list[dict]:
        """All events of a user (oldest first), optionally from `since` on."""
        stmt = select(ReviewEventModel).where(ReviewEventModel.user_id == user_id)
        if since is not None:
            stmt = stmt.where(ReviewEventModel.timestamp >= since)
        stmt = stmt.order_by(ReviewEventModel.timestamp, ReviewEventModel.id)
        return [_event_to_dict(event) for event in session.scalars(stmt)]

    # ---- User settings ----

    def get_frequency_mode(self, session: Session, user_id: str) -> FrequencyMode:
        """User's frequency mode; normal when never set."""
        settings = session.get(UserSettings, user_id)
        if settings is None:
            return FrequencyMode.NORMAL
        return coerce_mode(settings.frequency_mode)

    def set_frequency_mode(
        self,
        session: Session,
        user_id: str,
        mode: Union[FrequencyMode, str]
    ) -> FrequencyMode:
        mode = coerce_mode(mode)
        settings = session.get(UserSettings, user_id)
        if settings is None:
            session.add(UserSettings(user_id=user_id, frequency_mode=mode.value))
        else:
            settings.frequency_mode = mode.value
        session.flush()
        return mode
