import pytest

from recall.cards import (
    CategorizationCard,
    EllipseGeometry,
    ImageCard,
    MultipleChoiceCard,
    card_to_dict,
    parse_card,
)
from recall.errors import InvalidCardPayload, UnknownCardType

from conftest import CARD_PAYLOADS, payload


@pytest.mark.parametrize("raw", CARD_PAYLOADS, ids=lambda raw: raw["id"])
def test_all_sample_cards_parse_and_round_trip(raw):
    card = parse_card(raw)

    assert card.card_type == raw["card_type"]
    assert parse_card(card_to_dict(card)) == card


def test_multi_answer_card_holds_a_set():
    card = parse_card(payload("mc-multi"))

    assert isinstance(card, MultipleChoiceCard)
    assert card.correct_answers == frozenset({"2", "3", "5"})
    assert card.correct_answer is None


def test_region_ids_default_to_index_and_geometry_follows_shape():
    card = parse_card(payload("image-1"))

    assert isinstance(card, ImageCard)
    assert card.region_ids == ["0", "lake"]
    assert isinstance(card.regions[1].geometry, EllipseGeometry)


def test_categorization_answer_key():
    card = parse_card(payload("cat-1"))

    assert isinstance(card, CategorizationCard)
    assert card.answer_key == {"apple": "Fruit", "carrot": "Veg"}


def test_unknown_card_type():
    raw = payload("basic-1") | {"card_type": "essay"}

    with pytest.raises(UnknownCardType) as excinfo:
        parse_card(raw)

    assert isinstance(excinfo.value, InvalidCardPayload)
    assert excinfo.value.category == "content"
    assert excinfo.value.card_id == "basic-1"


@pytest.mark.parametrize(
    "card_id,changes",
    [
        ("mc-single", {"correct_answer": "Salmon"}),
        ("mc-single", {"options": ["Dolphin"]}),
        ("mc-single", {"options": ["Dolphin", "Dolphin", "Shark"]}),
        ("mc-single", {"correct_answers": ["Dolphin"]}),
        ("mc-multi", {"correct_answers": []}),
        ("mc-multi", {"correct_answers": ["2", "7"]}),
        ("tf-1", {"correct_answer": None}),
        ("match-1", {"pairs": [{"left": "France", "right": "Paris"}]}),
        ("match-1", {"pairs": [{"left": "France", "right": "Paris"}, {"left": "France", "right": "Nice"}]}),
        ("cat-1", {"categories": {"Fruit": ["apple"]}}),
        ("cat-1", {"categories": {"Fruit": ["apple"], "Veg": []}}),
        ("cat-1", {"categories": {"Fruit": ["apple"], "Veg": ["apple"]}}),
        ("order-1", {"items": ["A"]}),
        ("basic-1", {"answer": ""}),
        ("basic-1", {"options": ["x", "y"]}),
    ],
)
def test_invalid_payloads_are_rejected(card_id, changes):
    raw = payload(card_id) | changes

    with pytest.raises(InvalidCardPayload) as excinfo:
        parse_card(raw)

    assert excinfo.value.card_id == card_id
    assert not isinstance(excinfo.value, UnknownCardType)


def test_region_geometry_must_match_shape():
    raw = payload("image-1")
    raw["regions"] = [
        {"shape": "circle", "geometry": {"x": 0, "y": 0, "width": 5, "height": 5}, "correct_label": "A"},
    ]

    with pytest.raises(InvalidCardPayload):
        parse_card(raw)


def test_duplicate_region_ids_are_rejected():
    raw = payload("image-1")
    raw["regions"] = [
        {"id": "1", "shape": "rectangle", "geometry": {"x": 0, "y": 0, "width": 5, "height": 5}, "correct_label": "A"},
        {"shape": "rectangle", "geometry": {"x": 9, "y": 9, "width": 5, "height": 5}, "correct_label": "B"},
    ]

    with pytest.raises(InvalidCardPayload):
        parse_card(raw)


def test_non_mapping_payload():
    with pytest.raises(InvalidCardPayload):
        parse_card(["not", "a", "card"])
