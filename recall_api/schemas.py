"""
Request and response models for the HTTP surface.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from recall.due_set import DueSet, DueSetEntry
from recall.cards.models import card_to_dict
from recall.evaluation import Verdict
from recall.sm2.constants import FrequencyMode, ReviewStatus
from recall.sm2.review_state import ReviewState


class ReviewRequest(BaseModel):
    card_id: str = Field(..., min_length=1, description="Card being rated")
    quality: int = Field(..., description="1=Again, 2=Hard, 3=Good, 4=Easy")
    response_time_ms: int | None = Field(None, ge=0, description="Time the learner took to answer")
    expected_version: int | None = Field(None, ge=0, description="Review state version the client last saw")


class SkipRequest(BaseModel):
    card_id: str = Field(..., min_length=1)
    expected_version: int | None = Field(None, ge=0)


class EvaluateRequest(BaseModel):
    card_id: str = Field(..., min_length=1)
    response: Any = Field(..., description="Answer in the shape the card type expects")


class SuspendRequest(BaseModel):
    suspended: bool = Field(..., description="True takes the card out of the queue, False puts it back")
    expected_version: int | None = Field(None, ge=0)


class FrequencyModeBody(BaseModel):
    frequency_mode: FrequencyMode


class ReviewStateOut(BaseModel):
    user_id: str
    card_id: str
    interval: int
    ease_factor: float
    repetitions: int
    scheduled_days: int
    status: ReviewStatus
    last_reviewed_at: Optional[datetime] = None
    next_review_at: Optional[datetime] = None
    times_reviewed: int
    times_correct: int
    times_incorrect: int
    accuracy: Optional[float] = None
    average_response_time_ms: Optional[float] = None
    suspended: bool = False
    version: int

    @classmethod
    def from_state(cls, state: ReviewState) -> "ReviewStateOut":
        return cls(
            user_id=state.user_id,
            card_id=state.card_id,
            interval=state.interval,
            ease_factor=state.ease_factor,
            repetitions=state.repetitions,
            scheduled_days=state.scheduled_days,
            status=state.status,
            last_reviewed_at=state.last_reviewed_at,
            next_review_at=state.next_review_at,
            times_reviewed=state.times_reviewed,
            times_correct=state.times_correct,
            times_incorrect=state.times_incorrect,
            accuracy=state.accuracy,
            average_response_time_ms=state.average_response_time_ms,
            suspended=state.suspended,
            version=state.version,
        )


class ReviewStateResponse(BaseModel):
    new_state: ReviewStateOut


class DueCardOut(BaseModel):
    card: dict
    state: ReviewStateOut

    @classmethod
    def from_entry(cls, entry: DueSetEntry) -> "DueCardOut":
        return cls(card=card_to_dict(entry.card), state=ReviewStateOut.from_state(entry.state))


class DueCardsResponse(BaseModel):
    count: int
    cards: list[DueCardOut]
    invalid_card_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_due_set(cls, due_set: DueSet) -> "DueCardsResponse":
        return cls(
            count=len(due_set),
            cards=[DueCardOut.from_entry(entry) for entry in due_set],
            invalid_card_ids=list(due_set.invalid_card_ids),
        )


class VerdictOut(BaseModel):
    correct: bool
    detail: dict = Field(default_factory=dict)

    @classmethod
    def from_verdict(cls, verdict: Verdict) -> "VerdictOut":
        return cls(correct=verdict.correct, detail=dict(verdict.detail))


class ErrorBody(BaseModel):
    """Body of every 4xx response (RecallError.to_dict and request validation)."""
    error: str
    category: str
    message: str
    detail: dict = Field(default_factory=dict)


ERROR_RESPONSES = {
    400: {"model": ErrorBody, "description": "Bad request (category client)"},
    404: {"model": ErrorBody, "description": "Card not found"},
    409: {"model": ErrorBody, "description": "Stale review state (category retry)"},
    422: {"model": ErrorBody, "description": "Card content invalid (category content)"},
}
