import pytest
from fastapi.testclient import TestClient

from recall.sm2.models import CardRecord
from recall_api import create_app

from conftest import NOW

HEADERS = {"X-User-Id": "api-user"}


@pytest.fixture
def client(seeded_store):
    return TestClient(create_app(seeded_store))


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_review_returns_new_state(client):
    response = client.post("/review", json={"card_id": "basic-1", "quality": 3, "response_time_ms": 1200}, headers=HEADERS)

    assert response.status_code == 200
    state = response.json()["new_state"]
    assert state["user_id"] == "api-user"
    assert state["interval"] == 6
    assert state["repetitions"] == 1
    assert state["status"] == "learning"
    assert state["version"] == 1


def test_review_with_bad_quality_is_a_client_error(client):
    response = client.post("/review", json={"card_id": "basic-1", "quality": 5}, headers=HEADERS)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "InvalidQuality"
    assert body["category"] == "client"


def test_review_of_unknown_card_is_404(client):
    response = client.post("/review", json={"card_id": "ghost", "quality": 3}, headers=HEADERS)

    assert response.status_code == 404
    assert response.json()["error"] == "CardNotFound"


def test_stale_version_is_409(client):
    first = client.post("/review", json={"card_id": "basic-1", "quality": 3}, headers=HEADERS).json()["new_state"]
    client.post("/review", json={"card_id": "basic-1", "quality": 3, "expected_version": first["version"]}, headers=HEADERS)

    response = client.post(
        "/review",
        json={"card_id": "basic-1", "quality": 1, "expected_version": first["version"]},
        headers=HEADERS,
    )

    assert response.status_code == 409
    assert response.json()["category"] == "retry"


def test_skip(client):
    response = client.post("/skip", json={"card_id": "tf-1"}, headers=HEADERS)

    assert response.status_code == 200
    state = response.json()["new_state"]
    assert state["times_reviewed"] == 0
    assert state["version"] == 1


def test_due_cards_with_filters(client):
    response = client.get("/due-cards", params={"course_id": "geo", "limit": 0}, headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 4
    assert {item["card"]["id"] for item in body["cards"]} == {"cat-1", "image-1", "match-1", "order-1"}

    client.post("/review", json={"card_id": "cat-1", "quality": 4}, headers=HEADERS)
    after = client.get("/due-cards", params={"course_id": "geo"}, headers=HEADERS).json()
    assert "cat-1" not in {item["card"]["id"] for item in after["cards"]}


def test_due_cards_reports_invalid_content(client, seeded_store):
    with seeded_store.session_scope() as session:
        session.add(CardRecord(
            id="bad-order",
            course_id="geo",
            card_type="ordered",
            payload={"id": "bad-order", "course_id": "geo", "card_type": "ordered", "question": "?", "items": ["x"]},
            is_active=True,
            created_at=NOW,
            updated_at=NOW,
        ))

    body = client.get("/due-cards", params={"course_id": "geo"}, headers=HEADERS).json()

    assert body["invalid_card_ids"] == ["bad-order"]
    assert body["count"] == 4

    response = client.post("/evaluate", json={"card_id": "bad-order", "response": ["x"]})
    assert response.status_code == 422
    assert response.json()["category"] == "content"


def test_evaluate(client):
    ok = client.post("/evaluate", json={"card_id": "mc-multi", "response": ["5", "3", "2"]})
    wrong = client.post("/evaluate", json={"card_id": "order-1", "response": ["A", "C", "B"]})
    malformed = client.post("/evaluate", json={"card_id": "tf-1", "response": "true"})

    assert ok.status_code == 200 and ok.json()["correct"] is True
    assert wrong.json()["correct"] is False
    assert wrong.json()["detail"]["misplaced_positions"] == [1, 2]
    assert malformed.status_code == 400
    assert malformed.json()["error"] == "MalformedResponse"


def test_frequency_mode_settings(client):
    assert client.get("/user-settings/frequency-mode", headers=HEADERS).json() == {"frequency_mode": "normal"}

    put = client.put("/user-settings/frequency-mode", json={"frequency_mode": "relaxed"}, headers=HEADERS)
    assert put.status_code == 200
    assert client.get("/user-settings/frequency-mode", headers=HEADERS).json() == {"frequency_mode": "relaxed"}

    state = client.post("/review", json={"card_id": "basic-1", "quality": 3}, headers=HEADERS).json()["new_state"]
    assert state["scheduled_days"] == 9


def test_invalid_frequency_mode_is_rejected(client):
    response = client.put("/user-settings/frequency-mode", json={"frequency_mode": "turbo"}, headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["category"] == "client"


def test_summary(client):
    client.post("/review", json={"card_id": "basic-1", "quality": 3}, headers=HEADERS)

    body = client.get("/stats/summary", params={"course_id": "bio"}, headers=HEADERS).json()

    assert body["total_cards"] == 5
    assert body["status_counts"] == {"new": 4, "learning": 1, "mastered": 0}
    assert body["times_reviewed"] == 1
    assert body["accuracy"] == 1.0
    assert len(body["upcoming_workload"]) == 7


def test_suspend_and_resume(client):
    response = client.put("/review-state/basic-1/suspended", json={"suspended": True}, headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["suspended"] is True
    due = client.get("/due-cards", params={"course_id": "bio", "limit": 0}, headers=HEADERS).json()
    assert "basic-1" not in {item["card"]["id"] for item in due["cards"]}
    summary = client.get("/stats/summary", params={"course_id": "bio"}, headers=HEADERS).json()
    assert summary["suspended_cards"] == 1

    stale = client.put(
        "/review-state/basic-1/suspended",
        json={"suspended": False, "expected_version": 0},
        headers=HEADERS,
    )
    assert stale.status_code == 409

    resumed = client.put(
        "/review-state/basic-1/suspended",
        json={"suspended": False, "expected_version": 1},
        headers=HEADERS,
    )
    assert resumed.json()["suspended"] is False
    assert resumed.json()["version"] == 2


def test_suspend_unknown_card_is_404(client):
    response = client.put("/review-state/nope/suspended", json={"suspended": True}, headers=HEADERS)

    assert response.status_code == 404
    assert response.json()["error"] == "CardNotFound"


def test_error_body_is_documented(client):
    schema = client.get("/openapi.json").json()

    assert "ErrorBody" in schema["components"]["schemas"]
    review_responses = schema["paths"]["/review"]["post"]["responses"]
    assert review_responses["409"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorBody")
