"""
Pydantic models for authored card definitions.

A card is one of eight card types (nine question formats, since a
multiple-choice card is either single- or multi-answer). The models form a
tagged union keyed by ``card_type``; exactly one type-specific payload is
populated per card.

Cards arrive from the course catalog already authored. The validators below
enforce the structural invariants so that a broken payload is rejected when
it is parsed, never half-way through a study session.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from recall.cards.geometry import EllipseGeometry, Geometry, PolygonGeometry, RectangleGeometry
from recall.errors import InvalidCardPayload, UnknownCardType


class CardType(str, Enum):
    """Card formats understood by the evaluator."""
    BASIC = "basic"                      # Short answer
    CLOZE = "cloze"                      # Fill in the blank
    MULTIPLE_CHOICE = "multiple_choice"  # Single or multi select
    TRUE_FALSE = "true_false"
    MATCHING = "matching"                # Pair left items with right items
    CATEGORIZATION = "categorization"    # Sort items into categories
    IMAGE = "image"                      # Image occlusion
    ORDERED = "ordered"                  # Put items in sequence


class RegionShape(str, Enum):
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    POLYGON = "polygon"


_GEOMETRY_BY_SHAPE = {
    RegionShape.RECTANGLE: RectangleGeometry,
    RegionShape.CIRCLE: EllipseGeometry,
    RegionShape.POLYGON: PolygonGeometry,
}


# ---- Shared fields ----

class _CardBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1, description="Catalog card id")
    course_id: str = Field(..., min_length=1, description="Owning course")
    question: str = Field(..., min_length=1)
    hint: Optional[str] = None
    explanation: Optional[str] = Field(None, description="Shown after answering")
    tags: tuple[str, ...] = Field(default_factory=tuple)
    is_active: bool = Field(True, description="Inactive cards never enter a due set")


# ---- Text answers ----

class BasicCard(_CardBase):
    card_type: Literal["basic"] = "basic"
    answer: str = Field(..., min_length=1)


class ClozeCard(_CardBase):
    card_type: Literal["cloze"] = "cloze"
    answer: str = Field(..., min_length=1, description="Text that fills the blank")


# ---- Choice ----

class MultipleChoiceCard(_CardBase):
    """
    Single-answer when allow_multiple_correct is False (uses correct_answer),
    multi-answer otherwise (uses correct_answers). No partial credit.
    """
    card_type: Literal["multiple_choice"] = "multiple_choice"
    options: tuple[str, ...] = Field(..., min_length=2)
    allow_multiple_correct: bool = False
    correct_answer: Optional[str] = None
    correct_answers: Optional[frozenset[str]] = None

    @model_validator(mode="after")
    def _check_answers(self) -> "MultipleChoiceCard":
        if len(set(self.options)) != len(self.options):
            raise ValueError("options must be unique")
        if self.allow_multiple_correct:
            if self.correct_answer is not None:
                raise ValueError("multi-answer card must not set correct_answer")
            if not self.correct_answers:
                raise ValueError("multi-answer card needs at least one correct answer")
            unknown = self.correct_answers - set(self.options)
            if unknown:
                raise ValueError(f"correct answers not among options: {sorted(unknown)}")
        else:
            if self.correct_answers is not None:
                raise ValueError("single-answer card must not set correct_answers")
            if self.correct_answer is None:
                raise ValueError("single-answer card needs correct_answer")
            if self.correct_answer not in self.options:
                raise ValueError("correct_answer must be one of the options")
        return self


class TrueFalseCard(_CardBase):
    card_type: Literal["true_false"] = "true_false"
    correct_answer: bool


# ---- Structured answers ----

class MatchingPair(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    left: str = Field(..., min_length=1)
    right: str = Field(..., min_length=1)


class MatchingCard(_CardBase):
    card_type: Literal["matching"] = "matching"
    pairs: tuple[MatchingPair, ...] = Field(..., min_length=2)

    @model_validator(mode="after")
    def _check_pairs(self) -> "MatchingCard":
        lefts = [pair.left for pair in self.pairs]
        if len(set(lefts)) != len(lefts):
            raise ValueError("left items must be unique")
        return self

    @property
    def answer_key(self) -> dict[str, str]:
        return {pair.left: pair.right for pair in self.pairs}


class CategorizationCard(_CardBase):
    card_type: Literal["categorization"] = "categorization"
    categories: dict[str, tuple[str, ...]] = Field(..., min_length=2)

    @model_validator(mode="after")
    def _check_categories(self) -> "CategorizationCard":
        seen: set[str] = set()
        for name, items in self.categories.items():
            if not items:
                raise ValueError(f"category {name!r} is empty")
            for item in items:
                if item in seen:
                    raise ValueError(f"item {item!r} appears in more than one category")
                seen.add(item)
        return self

    @property
    def answer_key(self) -> dict[str, str]:
        """item -> category"""
        return {item: name for name, items in self.categories.items() for item in items}


class OrderedCard(_CardBase):
    card_type: Literal["ordered"] = "ordered"
    items: tuple[str, ...] = Field(..., min_length=2, description="Canonical correct order")


# ---- Image occlusion ----

class OcclusionRegion(BaseModel):
    """
    A hidden area over the image.

    Regions without an explicit id are addressed by their index.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    id: Optional[str] = None
    shape: RegionShape
    geometry: Geometry
    correct_label: str = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _parse_geometry(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("geometry"), dict):
            try:
                shape = RegionShape(data.get("shape"))
            except ValueError:
                return data
            data = dict(data)
            data["geometry"] = _GEOMETRY_BY_SHAPE[shape].model_validate(data["geometry"])
        return data

    @model_validator(mode="after")
    def _check_shape(self) -> "OcclusionRegion":
        expected = _GEOMETRY_BY_SHAPE[self.shape]
        if not isinstance(self.geometry, expected):
            raise ValueError(f"{self.shape.value} region needs {expected.__name__}")
        return self


class ImageCard(_CardBase):
    card_type: Literal["image"] = "image"
    image_ref: str = Field(..., min_length=1)
    regions: tuple[OcclusionRegion, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_region_ids(self) -> "ImageCard":
        ids = self.region_ids
        if len(set(ids)) != len(ids):
            raise ValueError("region ids must be unique")
        return self

    @property
    def region_ids(self) -> list[str]:
        return [
            region.id if region.id is not None else str(index)
            for index, region in enumerate(self.regions)
        ]


CardDefinition = Annotated[
    Union[
        BasicCard,
        ClozeCard,
        MultipleChoiceCard,
        TrueFalseCard,
        MatchingCard,
        CategorizationCard,
        OrderedCard,
        ImageCard,
    ],
    Field(discriminator="card_type"),
]

_card_adapter: TypeAdapter = TypeAdapter(CardDefinition)


def parse_card(data: Any) -> CardDefinition:
    """
    Build a card definition from a raw mapping (catalog row, JSON body).

    Raises:
        UnknownCardType: card_type is missing or not supported
        InvalidCardPayload: payload violates the card type's invariants
    """
    if not isinstance(data, dict):
        raise InvalidCardPayload(None, f"expected a mapping, got {type(data).__name__}")

    card_id = data.get("id")
    card_type = data.get("card_type")
    if card_type not in {t.value for t in CardType}:
        raise UnknownCardType(card_id, card_type)

    try:
        return _card_adapter.validate_python(data)
    except ValidationError as exc:
        reasons = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'card'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidCardPayload(card_id, reasons) from exc


def card_to_dict(card: CardDefinition) -> dict:
    """JSON-safe dict of a card definition (round-trips through parse_card)."""
    return card.model_dump(mode="json")
