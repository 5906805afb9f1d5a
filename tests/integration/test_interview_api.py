"""
HTTP tests for the interview API.

The app runs with the in-memory store and FakeQuestionProvider injected
through FastAPI dependency overrides.
Run: pytest tests/integration/test_interview_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from agents.interview.errors import FeedbackError, GenerationError
from api.main import app
from api.routes.interview import get_question_provider, get_session_store
from config.settings import settings

pytestmark = pytest.mark.integration

HEADERS = {"X-User-Id": "candidate-1"}


@pytest.fixture
def client(store, provider):
    app.dependency_overrides[get_session_store] = lambda: store
    app.dependency_overrides[get_question_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_id(client, context_payload):
    response = client.post("/interview/sessions", json=context_payload, headers=HEADERS)
    assert response.status_code == 201
    return response.json()["session_id"]


def _answer_level(client, session_id):
    state = None
    for _ in range(5):
        data = client.post(f"/interview/sessions/{session_id}/questions", headers=HEADERS).json()
        response = client.post(
            f"/interview/sessions/{session_id}/answers",
            json={"question_id": data["question"]["id"], "answer": "A thoughtful answer"},
            headers=HEADERS,
        )
        assert response.status_code == 200
        state = response.json()
    return state


# ---------------------------------------------------------------------------
# Health and auth
# ---------------------------------------------------------------------------

class TestHealthAndAuth:

    def test_ping(self, client):
        assert client.get("/ping").json() == {"message": "pong"}

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_missing_user_header(self, client, context_payload):
        response = client.post("/interview/sessions", json=context_payload)
        assert response.status_code == 401

    def test_api_key_enforced_when_configured(self, client, context_payload, monkeypatch):
        monkeypatch.setattr(settings, "API_SECRET_KEY", "s3cret")

        response = client.post("/interview/sessions", json=context_payload, headers=HEADERS)
        assert response.status_code == 401

        response = client.post(
            "/interview/sessions",
            json=context_payload,
            headers={**HEADERS, "X-API-Key": "wrong"},
        )
        assert response.status_code == 401

        response = client.post(
            "/interview/sessions",
            json=context_payload,
            headers={**HEADERS, "X-API-Key": "s3cret"},
        )
        assert response.status_code == 201


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------

class TestSessionEndpoints:

    def test_start_session(self, client, context_payload):
        response = client.post("/interview/sessions", json=context_payload, headers=HEADERS)
        assert response.status_code == 201
        body = response.json()
        assert body["session_title"] == "Interview Session #1"
        assert body["current_level"] == 1
        assert body["difficulty"] == "Starter"

    def test_blank_role_is_400(self, client, context_payload):
        context_payload["target_role"] = "  "
        response = client.post("/interview/sessions", json=context_payload, headers=HEADERS)
        assert response.status_code == 400
        assert "target_role" in response.json()["detail"]

    def test_missing_skills_is_rejected(self, client, context_payload):
        del context_payload["skills"]
        response = client.post("/interview/sessions", json=context_payload, headers=HEADERS)
        assert response.status_code == 422

    def test_get_session_and_state(self, client, session_id):
        session = client.get(f"/interview/sessions/{session_id}", headers=HEADERS).json()
        assert session["session_id"] == session_id
        assert len(session["levels"]) == 5

        state = client.get(f"/interview/sessions/{session_id}/state", headers=HEADERS).json()
        assert state["phase"] == "awaiting_question"
        assert state["question_number"] == 1

    def test_other_owner_gets_404(self, client, session_id):
        response = client.get(f"/interview/sessions/{session_id}", headers={"X-User-Id": "intruder"})
        assert response.status_code == 404

    def test_unknown_session_is_404(self, client):
        response = client.post("/interview/sessions/interview_missing/questions", headers=HEADERS)
        assert response.status_code == 404

    def test_list_sessions(self, client, session_id, context_payload):
        client.post("/interview/sessions", json=context_payload, headers=HEADERS)
        client.post("/interview/sessions", json=context_payload, headers={"X-User-Id": "someone-else"})

        body = client.get("/interview/sessions", headers=HEADERS).json()
        assert body["count"] == 2
        assert [s["session_number"] for s in body["sessions"]] == [2, 1]

        body = client.get("/interview/sessions?completed=true", headers=HEADERS).json()
        assert body["count"] == 0


# ---------------------------------------------------------------------------
# Interview flow
# ---------------------------------------------------------------------------

class TestInterviewFlow:

    def test_question_is_returned_until_answered(self, client, session_id):
        first = client.post(f"/interview/sessions/{session_id}/questions", headers=HEADERS).json()
        again = client.post(f"/interview/sessions/{session_id}/questions", headers=HEADERS).json()
        assert first["question"]["id"] == again["question"]["id"]
        assert first["state"]["phase"] == "awaiting_answer"
        assert first["state"]["question_number"] == 1

    def test_empty_answer_is_400(self, client, session_id):
        data = client.post(f"/interview/sessions/{session_id}/questions", headers=HEADERS).json()
        response = client.post(
            f"/interview/sessions/{session_id}/answers",
            json={"question_id": data["question"]["id"], "answer": "   "},
            headers=HEADERS,
        )
        assert response.status_code == 400

    def test_batch_before_level_is_full_is_409(self, client, session_id):
        response = client.post(f"/interview/sessions/{session_id}/batch-feedback", headers=HEADERS)
        assert response.status_code == 409

    def test_complete_level_and_advance(self, client, session_id, provider):
        provider.level_scores[1] = [8, 6, 10, 4, 2]
        state = _answer_level(client, session_id)
        assert state["phase"] == "awaiting_batch_feedback"

        response = client.post(f"/interview/sessions/{session_id}/questions", headers=HEADERS)
        assert response.status_code == 409

        summary = client.post(f"/interview/sessions/{session_id}/batch-feedback", headers=HEADERS).json()
        assert summary["average_score"] == 6.0
        assert summary["total_score"] == 60.0
        assert summary["can_advance"] is True

        level_summary = client.get(f"/interview/sessions/{session_id}/levels/1/summary", headers=HEADERS)
        assert level_summary.status_code == 200
        assert level_summary.json()["performance"] == "Fair"

        state = client.post(f"/interview/sessions/{session_id}/advance", headers=HEADERS).json()
        assert state["current_level"] == 2
        assert state["difficulty"] == "Easy"

    def test_level_summary_out_of_range(self, client, session_id):
        response = client.get(f"/interview/sessions/{session_id}/levels/9/summary", headers=HEADERS)
        assert response.status_code == 422

    def test_final_summary_before_completion_is_409(self, client, session_id):
        response = client.get(f"/interview/sessions/{session_id}/summary", headers=HEADERS)
        assert response.status_code == 409

    def test_full_interview(self, client, session_id):
        for _ in range(5):
            _answer_level(client, session_id)
            assert client.post(f"/interview/sessions/{session_id}/batch-feedback", headers=HEADERS).status_code == 200
            state = client.post(f"/interview/sessions/{session_id}/advance", headers=HEADERS).json()

        assert state["phase"] == "final_summary"
        assert state["is_completed"] is True

        final = client.get(f"/interview/sessions/{session_id}/summary", headers=HEADERS).json()
        assert final["total_score"] == 70.0
        assert final["performance"] == "Good"
        assert len(final["levels"]) == 5

        response = client.post(f"/interview/sessions/{session_id}/advance", headers=HEADERS)
        assert response.status_code == 409


# ---------------------------------------------------------------------------
# Provider failures
# ---------------------------------------------------------------------------

class TestProviderFailures:

    def test_generation_failure_is_502(self, client, session_id, provider):
        provider.question_error = GenerationError("bad output")
        response = client.post(f"/interview/sessions/{session_id}/questions", headers=HEADERS)
        assert response.status_code == 502

        state = client.get(f"/interview/sessions/{session_id}/state", headers=HEADERS).json()
        assert state["phase"] == "awaiting_question"

    def test_rate_limit_is_429_with_retry_after(self, client, session_id, provider):
        provider.question_error = GenerationError("rate limited", retry_after=60)
        response = client.post(f"/interview/sessions/{session_id}/questions", headers=HEADERS)
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"

    def test_feedback_failure_keeps_answers_unscored(self, client, session_id, provider):
        _answer_level(client, session_id)
        provider.feedback_error = FeedbackError("length mismatch")

        response = client.post(f"/interview/sessions/{session_id}/batch-feedback", headers=HEADERS)
        assert response.status_code == 502

        session = client.get(f"/interview/sessions/{session_id}", headers=HEADERS).json()
        assert all(q["score"] is None for q in session["levels"][0]["questions"])

        response = client.post(f"/interview/sessions/{session_id}/batch-feedback", headers=HEADERS)
        assert response.status_code == 200
