"""
Error taxonomy for the review engine.

Every error carries a category so callers can tell what to do next:
- "content": the authored card is broken, fix the content
- "retry": the request raced another write, retry with fresh state
- "client": the request payload is wrong, fix the client
"""

from __future__ import annotations

from typing import Any, Literal, Optional

ErrorCategory = Literal["content", "retry", "client"]


class RecallError(Exception):
    """Base class for all engine errors."""
    category: ErrorCategory = "client"

    def __init__(self, message: str, **detail: Any):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "category": self.category,
            "message": self.message,
            "detail": self.detail,
        }


class InvalidCardPayload(RecallError):
    """Authored card data violates the structural invariants of its type."""
    category: ErrorCategory = "content"

    def __init__(self, card_id: Optional[str], reason: str):
        super().__init__(f"Invalid payload for card {card_id}: {reason}", card_id=card_id, reason=reason)
        self.card_id = card_id
        self.reason = reason


class UnknownCardType(InvalidCardPayload):
    """Card type is not one of the supported formats."""

    def __init__(self, card_id: Optional[str], card_type: Any):
        super().__init__(card_id, f"unknown card type {card_type!r}")
        self.card_type = card_type
        self.detail["card_type"] = card_type


class ConcurrentModification(RecallError):
    """Two scheduling calls raced on the same review state."""
    category: ErrorCategory = "retry"

    def __init__(self, user_id: str, card_id: str, expected_version: Optional[int]):
        super().__init__(
            f"Review state for card {card_id} changed concurrently (expected version {expected_version})",
            user_id=user_id,
            card_id=card_id,
            expected_version=expected_version,
        )
        self.user_id = user_id
        self.card_id = card_id
        self.expected_version = expected_version


class MalformedResponse(RecallError):
    """Submitted answer shape does not match the card's expected response shape."""
    category: ErrorCategory = "client"

    def __init__(self, card_id: Optional[str], card_type: str, reason: str):
        super().__init__(
            f"Malformed response for {card_type} card {card_id}: {reason}",
            card_id=card_id,
            card_type=card_type,
            reason=reason,
        )
        self.card_id = card_id
        self.card_type = card_type
        self.reason = reason


class InvalidQuality(RecallError, ValueError):
    """Quality rating outside 1..4."""
    category: ErrorCategory = "client"

    def __init__(self, value: Any):
        super().__init__(f"Quality must be an integer between 1 and 4, got {value!r}", value=value)
        self.value = value


class CardNotFound(RecallError):
    """No card with this id exists in the catalog."""
    category: ErrorCategory = "client"

    def __init__(self, card_id: str):
        super().__init__(f"Card not found: {card_id}", card_id=card_id)
        self.card_id = card_id
