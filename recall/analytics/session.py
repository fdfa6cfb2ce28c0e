"""
Session Aggregator - tallies one study run

Fed by the client as it goes: each evaluated answer, each skip and each
quality rating. Holds no scheduling state of its own.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from recall.evaluation.evaluator import Verdict
from recall.sm2.constants import QualityRating


@dataclass
class SessionTally:
    """
    Running summary of a study session.

    Skipped cards count as presented but never toward accuracy.
    """
    correct: int = 0
    incorrect: int = 0
    skipped: int = 0
    ratings: Counter = field(default_factory=Counter)
    by_card_type: dict[str, dict[str, int]] = field(default_factory=dict)
    _response_times: list[int] = field(default_factory=list, repr=False)

    def record_answer(
        self,
        card_type: str,
        verdict: Verdict,
        response_time_ms: Optional[int] = None
    ) -> None:
        bucket = self.by_card_type.setdefault(card_type, {"correct": 0, "incorrect": 0})
        if verdict.correct:
            self.correct += 1
            bucket["correct"] += 1
        else:
            self.incorrect += 1
            bucket["incorrect"] += 1
        if response_time_ms is not None:
            self._response_times.append(response_time_ms)

    def record_skip(self) -> None:
        self.skipped += 1

    def record_rating(self, quality: QualityRating | int) -> None:
        self.ratings[QualityRating(quality).name.lower()] += 1

    @property
    def answered(self) -> int:
        return self.correct + self.incorrect

    @property
    def presented(self) -> int:
        return self.answered + self.skipped

    @property
    def accuracy(self) -> Optional[float]:
        if self.answered == 0:
            return None
        return self.correct / self.answered

    @property
    def average_response_time_ms(self) -> Optional[float]:
        if not self._response_times:
            return None
        return sum(self._response_times) / len(self._response_times)

    def summary(self) -> dict:
        return {
            "presented": self.presented,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "skipped": self.skipped,
            "accuracy": self.accuracy,
            "average_response_time_ms": self.average_response_time_ms,
            "ratings": dict(self.ratings),
            "by_card_type": {name: dict(counts) for name, counts in self.by_card_type.items()},
        }
