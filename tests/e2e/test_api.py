"""
End-to-End Tests for the REST API

Runs the FastAPI app in-process with TestClient. The AI collaborator and the
stores are replaced through dependency overrides.
"""

import logging
import os
import sys
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from fakes import ScriptedAI, make_evaluation

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "backend"))

import main
from adaptive_career_assessment.assessment_ai import RATE_LIMIT_MESSAGE
from adaptive_career_assessment.assessment_store import AssessmentStore
from adaptive_career_assessment.exceptions import CollaboratorError
from adaptive_career_assessment.session_registry import SessionRegistry
from adaptive_career_assessment.user_profile_manager import UserProfileManager


@pytest.fixture
def ai():
    return ScriptedAI()


@pytest.fixture
def client(ai):
    store = AssessmentStore()
    profile_manager = UserProfileManager()
    main.app.dependency_overrides[main.get_assessment_ai] = lambda: ai
    main.app.dependency_overrides[main.get_assessment_store] = lambda: store
    main.app.dependency_overrides[main.get_profile_manager] = lambda: profile_manager

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()
    main._sessions.clear()


def _start(client, **overrides):
    body = {"topic": "SQL & Databases", "totalQuestions": 3, "difficulty": "medium"}
    body.update(overrides)
    return client.post("/api/assessments", json=body)


class TestAssessmentEndpoints:
    """Test suite for /api/assessments."""

    def test_health(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_full_session(self, client, ai):
        ai.evaluations.extend([
            make_evaluation(score=90, recommendation="harder", bloom="Understand"),
            make_evaluation(score=50, bloom="Analyze"),
            make_evaluation(score=70, bloom="Analyze"),
        ])

        response = _start(client)
        assert response.status_code == 201
        state = response.json()
        assert state["status"] == "answering"
        assert state["current_question"]["question_text"] == "SQL & Databases question 1"
        session_id = state["session_id"]

        response = client.post(f"/api/assessments/{session_id}/answers", json={"answer": "JOINs", "timeSpentSeconds": 40})
        assert response.status_code == 200
        assert response.json()["status"] == "reviewed"
        assert response.json()["current_difficulty"] == "hard"

        for answer in ("second", "third"):
            assert client.post(f"/api/assessments/{session_id}/next").json()["status"] == "answering"
            state = client.post(f"/api/assessments/{session_id}/answers", json={"answer": answer}).json()

        assert state["status"] == "completed"
        assert state["questions_answered"] == 3

        summary = client.get(f"/api/assessments/{session_id}/summary").json()
        assert summary["average_score"] == 70
        assert summary["accuracy"] == 67
        assert summary["grade"] == "B"
        assert summary["bloom_distribution"] == {"Understand": 1, "Analyze": 2}

        history = client.get(f"/api/assessments/{session_id}/questions").json()["questions"]
        assert [q["question_number"] for q in history] == [1, 2, 3]
        assert history[0]["time_spent_seconds"] == 40

    def test_get_state(self, client):
        session_id = _start(client).json()["session_id"]

        response = client.get(f"/api/assessments/{session_id}")

        assert response.status_code == 200
        assert response.json()["current_question_number"] == 1

    def test_unknown_session(self, client):
        assert client.get("/api/assessments/does-not-exist").status_code == 404
        assert client.post("/api/assessments/does-not-exist/next").status_code == 404

    @pytest.mark.parametrize("total", [2, 11])
    def test_question_count_bounds(self, client, total):
        assert _start(client, totalQuestions=total).status_code == 422

    def test_unknown_difficulty(self, client):
        response = _start(client, difficulty="impossible")

        assert response.status_code == 422
        assert "Difficulty must be one of" in response.json()["error"]

    def test_blank_answer(self, client):
        session_id = _start(client).json()["session_id"]

        response = client.post(f"/api/assessments/{session_id}/answers", json={"answer": "  "})

        assert response.status_code == 422
        assert client.get(f"/api/assessments/{session_id}").json()["status"] == "answering"

    def test_action_in_wrong_status(self, client):
        session_id = _start(client).json()["session_id"]

        response = client.post(f"/api/assessments/{session_id}/next")

        assert response.status_code == 409

    def test_summary_before_any_answer(self, client):
        session_id = _start(client).json()["session_id"]

        assert client.get(f"/api/assessments/{session_id}/summary").status_code == 409

    def test_evaluation_failure_reported_in_state(self, client, ai):
        session_id = _start(client).json()["session_id"]
        ai.evaluate_errors.append(CollaboratorError("AI gateway error"))

        response = client.post(f"/api/assessments/{session_id}/answers", json={"answer": "answer"})

        assert response.status_code == 200
        assert response.json()["status"] == "answering"
        assert response.json()["error"] == "AI gateway error"

    def test_first_question_failure_not_kept(self, client, ai):
        ai.generate_errors.append(CollaboratorError(RATE_LIMIT_MESSAGE, 429))

        response = _start(client)

        assert response.status_code == 201
        state = response.json()
        assert state["status"] == "setup"
        assert state["error"] == RATE_LIMIT_MESSAGE
        assert client.get(f"/api/assessments/{state['session_id']}").status_code == 404

    def test_reset(self, client):
        session_id = _start(client).json()["session_id"]

        response = client.post(f"/api/assessments/{session_id}/reset")

        assert response.status_code == 200
        assert response.json()["status"] == "idle"
        assert response.json()["session_id"] is None
        assert client.get(f"/api/assessments/{session_id}").status_code == 404

    def test_summary_and_history_debug_logs(self, client, caplog):
        caplog.set_level(logging.DEBUG, logger="backend.main")
        session_id = _start(client).json()["session_id"]
        client.post(f"/api/assessments/{session_id}/answers", json={"answer": "answer"})

        client.get(f"/api/assessments/{session_id}/summary")
        client.get(f"/api/assessments/{session_id}/questions")

        debug_messages = [
            record.getMessage() for record in caplog.records
            if record.name == "backend.main" and record.levelno == logging.DEBUG
        ]
        assert any(message.startswith(f"Summary for {session_id[:8]}") for message in debug_messages)
        assert any("Loaded 1 question record(s)" in message for message in debug_messages)

    def test_completed_session_expires(self, client, monkeypatch):
        now = [datetime(2024, 1, 1, 9, 0)]
        monkeypatch.setattr(main, "_sessions", SessionRegistry(
            completed_ttl_minutes=30, idle_ttl_minutes=240, max_sessions=10, clock=lambda: now[0]
        ))
        session_id = _start(client).json()["session_id"]
        for _ in range(3):
            state = client.post(f"/api/assessments/{session_id}/answers", json={"answer": "answer"}).json()
            if state["status"] == "reviewed":
                client.post(f"/api/assessments/{session_id}/next")
        assert state["status"] == "completed"

        now[0] += timedelta(minutes=29)
        assert client.get(f"/api/assessments/{session_id}/summary").status_code == 200

        now[0] += timedelta(minutes=31)
        assert client.get(f"/api/assessments/{session_id}").status_code == 404
        assert client.get("/").json()["active_assessments"] == 0


class TestFunctionEndpoints:
    """Test suite for /functions/*."""

    def test_generate_question(self, client, ai):
        response = client.post("/functions/generate-question", json={
            "topic": "Graphs",
            "difficulty": "hard",
            "bloomLevel": "Analyze",
            "previousQuestions": ["BFS vs DFS"],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["success"] == True
        assert body["question"]["difficulty"] == "hard"
        assert ai.generate_calls[0]["previous_questions"] == ["BFS vs DFS"]

    def test_generate_question_rate_limited(self, client, ai):
        ai.generate_errors.append(CollaboratorError(RATE_LIMIT_MESSAGE, 429))

        response = client.post("/functions/generate-question", json={"topic": "Graphs"})

        assert response.status_code == 429
        assert response.json() == {"error": RATE_LIMIT_MESSAGE}

    def test_evaluate_answer(self, client, ai):
        ai.evaluations.append(make_evaluation(score=45, recommendation="easier"))

        response = client.post("/functions/evaluate-answer", json={
            "question": "What is a B-tree?",
            "answer": "A balanced tree",
            "questionType": "theory",
        })

        assert response.status_code == 200
        evaluation = response.json()["evaluation"]
        assert evaluation["score"] == 45
        assert evaluation["is_correct"] == False
        assert evaluation["next_difficulty_recommendation"] == "easier"

    def test_ai_not_configured(self, client):
        def unavailable():
            raise CollaboratorError("OPENAI_API_KEY not found in environment variables", status_code=503)

        main.app.dependency_overrides[main.get_assessment_ai] = unavailable

        response = client.post("/functions/generate-question", json={"topic": "Graphs"})

        assert response.status_code == 503
        assert "OPENAI_API_KEY" in response.json()["error"]


class TestProfileEndpoints:
    """Test suite for /api/profiles."""

    def test_requires_experience_or_skills(self, client, ai):
        response = client.post("/api/profiles", json={"name": "Sam", "goals": "Become a staff engineer"})

        assert response.status_code == 422
        assert response.json()["error"] == "Please provide at least your experience or skills."
        assert ai.profile_calls == []

    def test_create_and_load_profile(self, client, ai):
        response = client.post("/api/profiles", json={"name": "Sam", "skills": "Python, PostgreSQL"})

        assert response.status_code == 201
        body = response.json()
        assert body["profile"]["career_cluster"] == "Backend Engineer"
        assert body["profile_id"] is not None

        saved = client.get(f"/api/profiles/{body['profile_id']}").json()
        assert saved["skills_text"] == "Python, PostgreSQL"
        assert saved["career_cluster"] == "Backend Engineer"
        assert saved["session_id"] == body["session_id"]

    def test_profile_creation_logs_steps(self, client, caplog):
        caplog.set_level(logging.INFO, logger="backend.main")

        client.post("/api/profiles", json={"skills": "Go, gRPC"})

        messages = [record.getMessage() for record in caplog.records if record.name == "backend.main"]
        assert "  → Extracting skills" in messages
        assert "  → Saving profile" in messages

    def test_unknown_profile(self, client):
        assert client.get("/api/profiles/missing").status_code == 404

    def test_stateless_profile_function(self, client, ai):
        response = client.post("/functions/ai-profile", json={"experience": "3 years of Django"})

        assert response.status_code == 200
        assert response.json()["profile"]["ai_confidence"] == 75
        assert ai.profile_calls[0]["experience"] == "3 years of Django"
