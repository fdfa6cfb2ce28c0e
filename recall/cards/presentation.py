"""
Presentation views for study-time display.

A presentation is what the learner sees: the question plus the choices in a
freshly shuffled order. It is generated on every showing and never stored.
The canonical order stays on the card definition, which is what the
evaluator compares against, so shuffling never changes what counts as correct.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional, assert_never

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


@dataclass(frozen=True)
class RegionView:
    """Occlusion region as drawn over the image (label hidden)."""
    id: str
    shape: str
    geometry: dict


@dataclass(frozen=True)
class CardPresentation:
    """
    View-only rendering of a card. Contains no answers.
    """
    card_id: str
    card_type: str
    question: str
    hint: Optional[str] = None
    options: list[str] = field(default_factory=list)        # multiple_choice
    allow_multiple: bool = False                             # multiple_choice
    items: list[str] = field(default_factory=list)          # ordered, categorization pool
    left_items: list[str] = field(default_factory=list)     # matching, authored order
    right_items: list[str] = field(default_factory=list)    # matching, shuffled
    categories: list[str] = field(default_factory=list)     # categorization
    image_ref: Optional[str] = None                          # image
    regions: list[RegionView] = field(default_factory=list) # image


def shuffled(values, rng: Optional[random.Random] = None) -> list:
    """
    Uniformly shuffled copy (random.shuffle is a Fisher-Yates shuffle).
    """
    result = list(values)
    (rng or random).shuffle(result)
    return result


def present(card: CardDefinition, rng: Optional[random.Random] = None) -> CardPresentation:
    """
    Build a fresh presentation of a card.

    Args:
        card: Card definition (canonical order)
        rng: Optional random source, for reproducible tests

    Returns:
        CardPresentation with an independent shuffle
    """
    base = dict(card_id=card.id, card_type=card.card_type, question=card.question, hint=card.hint)

    match card:
        case BasicCard() | ClozeCard() | TrueFalseCard():
            return CardPresentation(**base)
        case MultipleChoiceCard():
            return CardPresentation(
                **base,
                options=shuffled(card.options, rng),
                allow_multiple=card.allow_multiple_correct,
            )
        case OrderedCard():
            return CardPresentation(**base, items=shuffled(card.items, rng))
        case MatchingCard():
            return CardPresentation(
                **base,
                left_items=[pair.left for pair in card.pairs],
                right_items=shuffled([pair.right for pair in card.pairs], rng),
            )
        case CategorizationCard():
            return CardPresentation(
                **base,
                categories=list(card.categories.keys()),
                items=shuffled(card.answer_key.keys(), rng),
            )
        case ImageCard():
            return CardPresentation(
                **base,
                image_ref=card.image_ref,
                regions=[
                    RegionView(
                        id=region_id,
                        shape=region.shape.value,
                        geometry=region.geometry.model_dump(mode="json"),
                    )
                    for region_id, region in zip(card.region_ids, card.regions)
                ],
            )
        case _:
            assert_never(card)
