"""
Answer Evaluator

Pure mapping (card definition, submitted response) -> verdict.

Response shapes by card type:
- basic, cloze: str (case-insensitive, whitespace-trimmed exact match)
- multiple_choice (single): str, equal to the correct option
- multiple_choice (multi): collection of str, equal to the correct set
- true_false: bool
- matching: mapping left -> right
- categorization: mapping item -> category
- ordered: sequence of str in canonical order
- image: collection of revealed region ids (correct once all are revealed)

A response of the wrong shape raises MalformedResponse; it is never coerced.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, assert_never

from recall.cards.models import (
    BasicCard,
    CardDefinition,
    CategorizationCard,
    ClozeCard,
    ImageCard,
    MatchingCard,
    MultipleChoiceCard,
    OrderedCard,
    TrueFalseCard,
)
from recall.errors import MalformedResponse


@dataclass(frozen=True)
class Verdict:
    """Result of evaluating one response."""
    correct: bool
    detail: dict = field(default_factory=dict)


def evaluate(card: CardDefinition, response: Any) -> Verdict:
    """
    Evaluate a submitted response against a card.

    Args:
        card: Card definition (already validated)
        response: Learner's response, shaped for the card type

    Returns:
        Verdict with correctness and a type-specific detail dict

    Raises:
        MalformedResponse: response shape does not fit the card type
    """
    match card:
        case BasicCard() | ClozeCard():
            return _evaluate_text(card, response)
        case MultipleChoiceCard():
            if card.allow_multiple_correct:
                return _evaluate_multi_choice(card, response)
            return _evaluate_single_choice(card, response)
        case TrueFalseCard():
            return _evaluate_true_false(card, response)
        case MatchingCard():
            return _evaluate_matching(card, response)
        case CategorizationCard():
            return _evaluate_categorization(card, response)
        case OrderedCard():
            return _evaluate_ordered(card, response)
        case ImageCard():
            return _evaluate_image(card, response)
        case _:
            assert_never(card)


def normalize_text(value: str) -> str:
    return value.strip().lower()


# ---- Shape checks ----

def _require_str(card: CardDefinition, response: Any) -> str:
    if not isinstance(response, str):
        raise MalformedResponse(card.id, card.card_type, f"expected a string, got {type(response).__name__}")
    return response


def _require_str_collection(card: CardDefinition, response: Any) -> list[str]:
    if isinstance(response, (str, bytes, Mapping)) or not isinstance(response, (list, tuple, set, frozenset)):
        raise MalformedResponse(card.id, card.card_type, f"expected a list of strings, got {type(response).__name__}")
    values = list(response)
    if not all(isinstance(v, str) for v in values):
        raise MalformedResponse(card.id, card.card_type, "every element must be a string")
    return values


def _require_str_mapping(card: CardDefinition, response: Any) -> Mapping[str, str]:
    if not isinstance(response, Mapping):
        raise MalformedResponse(card.id, card.card_type, f"expected a mapping, got {type(response).__name__}")
    for key, value in response.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise MalformedResponse(card.id, card.card_type, "keys and values must be strings")
    return response


# ---- Per-type rules ----

def _evaluate_text(card: BasicCard | ClozeCard, response: Any) -> Verdict:
    answer = _require_str(card, response)
    correct = normalize_text(answer) == normalize_text(card.answer)
    return Verdict(correct=correct, detail={"expected": card.answer})


def _evaluate_single_choice(card: MultipleChoiceCard, response: Any) -> Verdict:
    choice = _require_str(card, response)
    return Verdict(
        correct=choice == card.correct_answer,
        detail={"expected": card.correct_answer, "selected": choice},
    )


def _evaluate_multi_choice(card: MultipleChoiceCard, response: Any) -> Verdict:
    selected = set(_require_str_collection(card, response))
    expected = set(card.correct_answers or ())
    return Verdict(
        correct=selected == expected,
        detail={
            "expected": sorted(expected),
            "missing": sorted(expected - selected),
            "unexpected": sorted(selected - expected),
        },
    )


def _evaluate_true_false(card: TrueFalseCard, response: Any) -> Verdict:
    if not isinstance(response, bool):
        raise MalformedResponse(card.id, card.card_type, f"expected a boolean, got {type(response).__name__}")
    return Verdict(correct=response is card.correct_answer, detail={"expected": card.correct_answer})


def _evaluate_matching(card: MatchingCard, response: Any) -> Verdict:
    submitted = _require_str_mapping(card, response)
    key = card.answer_key
    results = {left: submitted.get(left) == right for left, right in key.items()}
    unexpected = sorted(set(submitted) - set(key))
    return Verdict(
        correct=all(results.values()) and not unexpected,
        detail={"expected": key, "per_item": results, "unexpected": unexpected},
    )


def _evaluate_categorization(card: CategorizationCard, response: Any) -> Verdict:
    submitted = _require_str_mapping(card, response)
    key = card.answer_key
    results = {item: submitted.get(item) == category for item, category in key.items()}
    unexpected = sorted(set(submitted) - set(key))
    return Verdict(
        correct=all(results.values()) and not unexpected,
        detail={"expected": key, "per_item": results, "unexpected": unexpected},
    )


def _evaluate_ordered(card: OrderedCard, response: Any) -> Verdict:
    if isinstance(response, (set, frozenset)):
        raise MalformedResponse(card.id, card.card_type, "an ordered response must be a sequence")
    submitted = _require_str_collection(card, response)
    expected = list(card.items)
    misplaced = [
        index for index in range(max(len(expected), len(submitted)))
        if index >= len(submitted) or index >= len(expected) or submitted[index] != expected[index]
    ]
    return Verdict(
        correct=submitted == expected,
        detail={"expected": expected, "misplaced_positions": misplaced},
    )


def _evaluate_image(card: ImageCard, response: Any) -> Verdict:
    revealed = set(_require_str_collection(card, response))
    region_ids = card.region_ids
    revealed_known = [region_id for region_id in region_ids if region_id in revealed]
    total = len(region_ids)
    return Verdict(
        correct=len(revealed_known) == total,
        detail={
            "revealed": len(revealed_known),
            "total": total,
            "progress": (len(revealed_known) / total) if total else 1.0,
            "missing": [region_id for region_id in region_ids if region_id not in revealed],
        },
    )
