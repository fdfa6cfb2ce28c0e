"""
SQLAlchemy ORM Models for the Review Database

Defines the card catalog, review state, review events and user settings tables.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class CardRecord(Base):
    """
    Authored card definition, stored as a validated JSON payload.

    Owned by the course catalog; read-only for scheduling.
    """
    __tablename__ = 'cards'

    id = Column(String(255), primary_key=True)
    course_id = Column(String(255), nullable=False, index=True)
    card_type = Column(String(50), nullable=False)
    payload = Column(JSON, nullable=False)  # Full card definition (card_to_dict)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<CardRecord({self.id}, {self.card_type})>"


class ReviewStateRecord(Base):
    """
    SM-2 state of one card for one user.
    """
    __tablename__ = 'review_states'

    # Primary key: composite of user_id and card_id
    user_id = Column(String(255), primary_key=True, nullable=False)
    card_id = Column(String(255), primary_key=True, nullable=False)

    # SM-2 parameters
    interval = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False)
    repetitions = Column(Integer, nullable=False, default=0)
    scheduled_days = Column(Integer, nullable=False, default=0)

    # Review tracking
    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    next_review_at = Column(DateTime(timezone=True), nullable=False)
    times_reviewed = Column(Integer, nullable=False, default=0)
    times_correct = Column(Integer, nullable=False, default=0)
    times_incorrect = Column(Integer, nullable=False, default=0)
    average_response_time_ms = Column(Float, nullable=True)
    timed_reviews = Column(Integer, nullable=False, default=0)  # reviews with a response time
    suspended = Column(Boolean, nullable=False, default=False)

    # Compare-and-swap counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index('idx_review_states_user_next', 'user_id', 'next_review_at'),
    )

    def __repr__(self):
        return f"<ReviewStateRecord({self.user_id}, {self.card_id}, v{self.version})>"


class ReviewEvent(Base):
    """
    Log entry for a single review or skip.

    Captures SM-2 state before/after the review, for analytics.
    """
    __tablename__ = 'review_events'

    id = Column(Integer, primary_key=True, autoincrement=True)

    user_id = Column(String(255), nullable=False)
    card_id = Column(String(255), nullable=False)
    event_type = Column(String(20), nullable=False)  # "review" or "skip"

    timestamp = Column(DateTime(timezone=True), nullable=False)
    quality = Column(Integer, nullable=True)  # 1=AGAIN, 2=HARD, 3=GOOD, 4=EASY; None for skips
    frequency_mode = Column(String(20), nullable=True)
    response_time_ms = Column(Integer, nullable=True)

    # State before review
    interval_before = Column(Integer, nullable=True)
    ease_factor_before = Column(Float, nullable=True)
    repetitions_before = Column(Integer, nullable=True)

    # State after review
    interval_after = Column(Integer, nullable=True)
    ease_factor_after = Column(Float, nullable=True)
    repetitions_after = Column(Integer, nullable=True)
    scheduled_days = Column(Integer, nullable=True)
    next_review_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_review_events_user_time', 'user_id', 'timestamp'),
    )

    def __repr__(self):
        return f"<ReviewEvent(id={self.id}, {self.card_id}, {self.event_type}, quality={self.quality})>"


class UserSettings(Base):
    """Per-user preferences read at schedule time."""
    __tablename__ = 'user_settings'

    user_id = Column(String(255), primary_key=True)
    frequency_mode = Column(String(20), nullable=False, default='normal')

    def __repr__(self):
        return f"<UserSettings({self.user_id}, {self.frequency_mode})>"
