from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import app as app_module


@pytest.fixture()
def client(assistant):
    app_module.app.dependency_overrides[app_module.get_assistant] = lambda: assistant
    yield TestClient(app_module.app)
    app_module.app.dependency_overrides.clear()


def test_health(client):
    rv = client.get("/health")
    assert rv.status_code == 200
    assert rv.json()["status"] == "ok"


def test_chat_returns_camel_case_turn(client):
    rv = client.post("/api/chat", json={"sessionId": "web-1", "message": "beige sneakers under ₹2000"})

    assert rv.status_code == 200
    data = rv.json()
    assert data["sessionId"] == "web-1"
    assert data["message"]["text"].startswith("Here are some beige sneakers")
    assert data["message"]["followUp"]
    assert [p["id"] for p in data["products"]] == ["p-001", "p-002"]
    assert data["products"][0]["sizeOptions"] == ["UK6", "UK7", "UK8", "UK9"]
    assert data["products"][0]["productUrl"].endswith("p-001")
    assert data["filters"]["budget"]["max"] == 2000
    assert len(data["suggestions"]) <= 3


def test_chat_without_message_is_rejected(client, fake_redis):
    rv = client.post("/api/chat", json={"sessionId": "web-1"})
    assert rv.status_code == 400
    assert rv.json() == {"error": "Message is required"}
    assert fake_redis.writes == []


def test_chat_generates_session_id(client):
    rv = client.post("/api/chat", json={"message": "red kurta"})
    assert rv.status_code == 200
    assert rv.json()["sessionId"]


def test_chat_unexpected_failure_is_generic(client, assistant):
    class ExplodingExtractor:
        def extract(self, message):
            raise RuntimeError("internal detail")

    assistant.extractor = ExplodingExtractor()
    rv = client.post("/api/chat", json={"sessionId": "web-1", "message": "red kurta"})

    assert rv.status_code == 500
    assert rv.json() == {"error": "Failed to process query"}


def test_feedback_round_trip(client):
    rv = client.post("/api/feedback", json={"sessionId": "web-1", "productId": "p-005", "action": "save"})
    assert rv.status_code == 200
    body = rv.json()
    assert body["success"] is True
    assert body["preferences"]["savedProductIds"] == ["p-005"]

    rv = client.get("/api/wishlist", params={"sessionId": "web-1"})
    assert [item["id"] for item in rv.json()["items"]] == ["p-005"]


def test_feedback_with_unknown_action(client, fake_redis):
    rv = client.post("/api/feedback", json={"sessionId": "web-1", "productId": "p-005", "action": "bogus"})
    assert rv.status_code == 400
    assert rv.json() == {"error": "Unsupported feedback action"}
    assert fake_redis.writes == []


def test_feedback_with_missing_fields(client):
    rv = client.post("/api/feedback", json={"sessionId": "web-1", "action": "like"})
    assert rv.status_code == 400
    assert rv.json() == {"error": "sessionId, productId and action are required"}


def test_preferences_and_history(client):
    client.post("/api/chat", json={"sessionId": "web-1", "message": "olive linen kurta by fabindia"})

    rv = client.get("/api/preferences", params={"sessionId": "web-1"})
    assert rv.status_code == 200
    data = rv.json()
    assert data["preferences"]["colors"] == ["olive"]
    assert data["preferences"]["materials"] == ["linen"]
    assert data["preferences"]["likedBrands"] == ["fabindia"]
    assert data["history"][0]["userMessage"] == "olive linen kurta by fabindia"


def test_session_endpoints_require_session_id(client):
    assert client.get("/api/wishlist").status_code == 400
    assert client.get("/api/preferences").status_code == 400


def test_clear_session(client, fake_redis):
    client.post("/api/chat", json={"sessionId": "web-1", "message": "red kurta"})
    rv = client.delete("/api/session/web-1")
    assert rv.status_code == 200
    assert "session:web-1" not in fake_redis.data


def test_debug_parse_query(client):
    rv = client.post("/debug/parse-query", json={"query": "red kurta, 2 options"})
    assert rv.status_code == 200
    data = rv.json()
    assert data["heuristic"]["filters"] == {"category": "kurta", "color": "red"}
    assert data["final"]["source"] == "heuristic"
    assert data["heuristic"]["meta"] == {"quantity": 2}


def test_debug_parse_query_requires_query(client):
    assert client.post("/debug/parse-query", json={}).status_code == 400
