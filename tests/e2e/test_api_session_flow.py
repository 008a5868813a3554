from fastapi.testclient import TestClient

from api_server import create_app
from conftest import IDENTITY, FakeGenerator

HEADERS = {"X-User-Id": IDENTITY}
TRANSCRIPT = "Interviewer: Describe a migration you led.\nCandidate: We moved billing to Postgres with zero downtime."


def _client(manager) -> TestClient:
    return TestClient(create_app(manager))


def test_full_session_flow(manager) -> None:
    client = _client(manager)

    user = client.post("/api/users/me", json={"industry": "Fintech", "skills": ["Python"]}, headers=HEADERS)
    assert user.status_code == 200
    assert user.json()["identity"] == IDENTITY

    created = client.post(
        "/api/interview-sessions",
        json={"role": "Backend Engineer", "techStack": "Django", "questionCount": 3},
        headers=HEADERS,
    )
    assert created.status_code == 201
    body = created.json()
    session_id = body["session"]["session_id"]
    assert body["session"]["status"] == "SCHEDULED"
    assert body["interview_id"].startswith("interview-")

    started = client.post(f"/api/interview-sessions/{session_id}/start", headers=HEADERS)
    assert started.status_code == 200
    start_body = started.json()
    assert start_body["session"]["status"] == "IN_PROGRESS"
    assert "Backend Engineer" in start_body["assistant_config"]["firstMessage"]
    assert start_body["assistant_config"]["voice"]["voiceId"] == "sarah"

    completed = client.post(
        f"/api/interview-sessions/{session_id}/complete",
        json={"transcript": TRANSCRIPT, "messages": [{"role": "assistant", "content": "Thanks!"}]},
        headers=HEADERS,
    )
    assert completed.status_code == 200
    done = completed.json()
    assert done["session"]["status"] == "COMPLETED"
    assert done["session"]["overall_score"] == 85
    assert done["feedback"]["totalScore"] == 85
    assert len(done["feedback"]["categoryScores"]) == 5

    detail = client.get(f"/api/interview-sessions/{session_id}", headers=HEADERS)
    assert detail.status_code == 200
    assert detail.json()["analytics"]["metadata"]["messages"] == 1

    listed = client.get("/api/interview-sessions", headers=HEADERS)
    assert [s["session_id"] for s in listed.json()] == [session_id]

    stats = client.get("/api/interview-sessions/stats", headers=HEADERS)
    assert stats.status_code == 200
    assert stats.json() == {
        "total_sessions": 1,
        "completed_sessions": 1,
        "average_score": 85,
        "improvement_rate": 0,
    }


def test_missing_identity_is_unauthorized(manager) -> None:
    client = _client(manager)
    assert client.get("/api/interview-sessions").status_code == 401
    assert client.post("/api/interview-sessions", json={"role": "Engineer"}).status_code == 401
    assert client.post("/api/users/me", json={}).status_code == 401


def test_unknown_user_and_session_are_not_found(manager, registered) -> None:
    client = _client(manager)
    stranger = {"X-User-Id": "stranger@example.com"}
    assert client.get("/api/interview-sessions", headers=stranger).status_code == 404
    assert client.post("/api/interview-sessions/missing/start", headers=HEADERS).status_code == 404
    assert client.get("/api/interview-sessions/missing", headers=HEADERS).status_code == 404


def test_invalid_create_payload_is_rejected(manager, registered) -> None:
    client = _client(manager)
    response = client.post("/api/interview-sessions", json={"role": ""}, headers=HEADERS)
    assert response.status_code == 422


def test_restart_after_completion_conflicts(manager, registered) -> None:
    client = _client(manager)
    session_id = client.post(
        "/api/interview-sessions", json={"role": "Engineer"}, headers=HEADERS
    ).json()["session"]["session_id"]
    client.post(f"/api/interview-sessions/{session_id}/complete", json={"transcript": TRANSCRIPT}, headers=HEADERS)
    response = client.post(f"/api/interview-sessions/{session_id}/start", headers=HEADERS)
    assert response.status_code == 409


def test_degraded_question_generation_still_creates_session(make_manager, feedback_generator) -> None:
    manager = make_manager(FakeGenerator(error=RuntimeError("offline")), feedback_generator)
    manager.register_user(IDENTITY)
    response = _client(manager).post("/api/interview-sessions", json={"role": "Support Lead"}, headers=HEADERS)
    assert response.status_code == 201
    assert len(response.json()["session"]["questions"]) == 8
    assert response.json()["interview_id"].startswith("interview-fallback-")


def test_unexpected_errors_map_to_500(manager, registered, monkeypatch) -> None:
    def boom(identity):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(manager, "list", boom)
    client = TestClient(create_app(manager), raise_server_exceptions=False)
    response = client.get("/api/interview-sessions", headers=HEADERS)
    assert response.status_code == 500
    assert response.json()["detail"] == "Unable to list interview sessions"
