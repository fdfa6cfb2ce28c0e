import datetime as dt
import pathlib
import sys

import pytest

# Ensure the repository root is on the path for direct test runs.
REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))

from recall.cards.models import parse_card
from recall.review_service import ReviewService
from recall.sm2.database import ReviewStore, get_engine


NOW = dt.datetime(2024, 3, 1, 9, 0, 0, tzinfo=dt.timezone.utc)


CARD_PAYLOADS = [
    {
        "id": "basic-1",
        "course_id": "bio",
        "card_type": "basic",
        "question": "Powerhouse of the cell?",
        "answer": "Mitochondria",
    },
    {
        "id": "cloze-1",
        "course_id": "bio",
        "card_type": "cloze",
        "question": "DNA is a double ____.",
        "answer": "helix",
    },
    {
        "id": "mc-single",
        "course_id": "bio",
        "card_type": "multiple_choice",
        "question": "Which is a mammal?",
        "options": ["Shark", "Dolphin", "Trout"],
        "correct_answer": "Dolphin",
    },
    {
        "id": "mc-multi",
        "course_id": "bio",
        "card_type": "multiple_choice",
        "question": "Which are primes?",
        "options": ["2", "3", "4", "5"],
        "allow_multiple_correct": True,
        "correct_answers": ["2", "3", "5"],
    },
    {
        "id": "tf-1",
        "course_id": "bio",
        "card_type": "true_false",
        "question": "Plants photosynthesize.",
        "correct_answer": True,
    },
    {
        "id": "match-1",
        "course_id": "geo",
        "card_type": "matching",
        "question": "Match capitals",
        "pairs": [
            {"left": "France", "right": "Paris"},
            {"left": "Spain", "right": "Madrid"},
            {"left": "Italy", "right": "Rome"},
        ],
    },
    {
        "id": "cat-1",
        "course_id": "geo",
        "card_type": "categorization",
        "question": "Sort the food",
        "categories": {"Fruit": ["apple"], "Veg": ["carrot"]},
    },
    {
        "id": "order-1",
        "course_id": "geo",
        "card_type": "ordered",
        "question": "Order the letters",
        "items": ["A", "B", "C"],
    },
    {
        "id": "image-1",
        "course_id": "geo",
        "card_type": "image",
        "question": "Label the map",
        "image_ref": "maps/europe.png",
        "regions": [
            {"shape": "rectangle", "geometry": {"x": 0, "y": 0, "width": 10, "height": 10}, "correct_label": "A"},
            {"id": "lake", "shape": "circle", "geometry": {"cx": 20, "cy": 20, "rx": 5, "ry": 3}, "correct_label": "B"},
        ],
    },
]


def payload(card_id: str) -> dict:
    for item in CARD_PAYLOADS:
        if item["id"] == card_id:
            return dict(item)
    raise KeyError(card_id)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def cards():
    return {item["id"]: parse_card(item) for item in CARD_PAYLOADS}


@pytest.fixture
def store(tmp_path):
    store = ReviewStore(get_engine(f"sqlite:///{tmp_path / 'recall.db'}"))
    store.init_db()
    return store


@pytest.fixture
def seeded_store(store, cards):
    with store.session_scope() as session:
        for card in cards.values():
            store.upsert_card(session, card, now=NOW)
    return store


@pytest.fixture
def service(seeded_store):
    return ReviewService(seeded_store)
