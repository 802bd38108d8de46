"""Tests for the HTTP surface: health, intent catalog, sessions and turns."""
import json

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from api.app import create_app
from core import dependencies


@pytest.fixture
def client():
    # Entering the client runs the lifespan, which builds the shared singletons
    with TestClient(create_app()) as test_client:
        yield test_client


def _new_session(client) -> str:
    response = client.post("/chat/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


# ---------------------------------------------------------------------------
# Health and catalog
# ---------------------------------------------------------------------------

class TestHealth:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok", "service": "agrimarket-assistant"}

    def test_assistant_health(self, client):
        body = client.get("/health/assistant").json()

        assert body["status"] == "ok"
        assert body["assistant"]["intents"] == 15

    def test_intent_catalog(self, client):
        intents = client.get("/chat/intents").json()["intents"]

        assert len(intents) == 15
        assert intents[0]["name"] == "predict_price"
        assert intents[0]["display_name"] == "Get price prediction"
        assert intents[0]["action"] == "predict_price"


# ---------------------------------------------------------------------------
# Conversation turns
# ---------------------------------------------------------------------------

class TestMessages:

    def test_greeting_turn(self, client):
        session_id = _new_session(client)

        response = client.post(f"/chat/sessions/{session_id}/messages", json={"text": "Hello"})

        assert response.status_code == 200
        body = response.json()
        assert body["session_id"] == session_id
        assert body["response"]["confidence"] >= 0.7
        assert body["response"]["text"].startswith("Hello!")

    def test_prediction_turn_and_state(self, client):
        session_id = _new_session(client)

        body = client.post(
            f"/chat/sessions/{session_id}/messages", json={"text": "predict price"}
        ).json()

        assert body["response"]["requires_action"] is False
        assert body["state"] == {
            "waiting_for": "crop",
            "pending_intent": "predict_price",
            "clarification_attempts": 1,
        }

    def test_unknown_session_id_is_adopted(self, client):
        response = client.post("/chat/sessions/session_abc/messages", json={"text": "Hello"})

        assert response.status_code == 200
        assert response.json()["session_id"] == "session_abc"

    @pytest.mark.parametrize("payload", [{"text": "   "}, {"text": "x" * 2001}, {}])
    def test_invalid_message(self, client, payload):
        session_id = _new_session(client)
        response = client.post(f"/chat/sessions/{session_id}/messages", json=payload)
        assert response.status_code == 422

    def test_end_session(self, client):
        session_id = _new_session(client)

        assert client.delete(f"/chat/sessions/{session_id}").status_code == 204
        assert client.delete(f"/chat/sessions/{session_id}").status_code == 404


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class TestActions:

    def test_dashboard_action(self, client):
        session_id = _new_session(client)

        response = client.post(
            f"/chat/sessions/{session_id}/actions", json={"action_type": "show_dashboard"}
        )

        assert response.status_code == 200
        assert response.json()["outcome"]["success"] is True

    def test_price_action_uses_prediction_client(self, client):
        session_id = _new_session(client)
        executor = dependencies.get_action_executor()
        executor.prediction_client.predict = AsyncMock(
            return_value={"predicted_price": 175.25, "confidence": 0.97}
        )

        turn = client.post(
            f"/chat/sessions/{session_id}/messages", json={"text": "predict tomato price"}
        ).json()["response"]
        outcome = client.post(
            f"/chat/sessions/{session_id}/actions",
            json={"action_type": turn["action_type"], "action_data": turn["action_data"]},
        ).json()["outcome"]

        assert outcome["success"] is True
        assert "Rs. 175.25" in outcome["text"]

    def test_unknown_action_type(self, client):
        session_id = _new_session(client)
        response = client.post(f"/chat/sessions/{session_id}/actions", json={"action_type": "launch"})
        assert response.status_code == 422

    def test_action_for_missing_session(self, client):
        response = client.post("/chat/sessions/nope/actions", json={"action_type": "show_dashboard"})
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Reset and context persistence
# ---------------------------------------------------------------------------

class TestContext:

    def test_reset_clears_pending_state(self, client):
        session_id = _new_session(client)
        client.post(f"/chat/sessions/{session_id}/messages", json={"text": "predict price"})

        response = client.post(f"/chat/sessions/{session_id}/reset", json={})

        assert response.json()["session_id"] == session_id
        session = dependencies.get_session_registry().get(session_id)
        assert session.conversation_manager.state.waiting_for is None

    def test_reset_with_clear_issues_new_id(self, client):
        session_id = _new_session(client)

        new_id = client.post(
            f"/chat/sessions/{session_id}/reset", json={"clear_context": True}
        ).json()["session_id"]

        assert new_id != session_id
        assert client.get(f"/chat/sessions/{new_id}/context").status_code == 200
        assert client.get(f"/chat/sessions/{session_id}/context").status_code == 404

    def test_export_then_import(self, client):
        source = _new_session(client)
        client.post(f"/chat/sessions/{source}/messages", json={"text": "predict tomato price"})
        exported = client.get(f"/chat/sessions/{source}/context").json()["context"]
        assert json.loads(exported)["last_crop"] == "Tomato"

        client.delete(f"/chat/sessions/{source}")
        target = _new_session(client)
        response = client.put(f"/chat/sessions/{target}/context", json={"context": exported})

        assert response.status_code == 200
        assert response.json()["session_id"] == source
        follow_up = client.post(
            f"/chat/sessions/{source}/messages", json={"text": "and the demand?"}
        ).json()["response"]
        assert follow_up["action_data"]["crop"] == "Tomato"

    def test_invalid_import(self, client):
        session_id = _new_session(client)
        response = client.put(f"/chat/sessions/{session_id}/context", json={"context": "not json"})
        assert response.status_code == 422

    def test_context_for_missing_session(self, client):
        assert client.get("/chat/sessions/missing/context").status_code == 404
