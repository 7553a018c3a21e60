"""HTTP-level tests: status codes, role headers and error translation."""
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from openai import OpenAIError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.ai.assistant import PrayerAssistant
from app.api.deps import get_assistant
from app.api.routes import router
from app.database import get_db, init_db

WARRIOR = {"X-User-Id": "warrior_a", "X-User-Role": "warrior"}
OTHER_WARRIOR = {"X-User-Id": "warrior_b", "X-User-Role": "warrior"}
LEADER = {"X-User-Id": "leader_1", "X-User-Role": "leader"}


class FailingCompletions:
    def create(self, **kwargs):
        raise OpenAIError("service unavailable")


@pytest.fixture
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    init_db(engine)
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    failing = SimpleNamespace(chat=SimpleNamespace(completions=FailingCompletions()))

    app = FastAPI()
    app.include_router(router, prefix="/api")
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_assistant] = lambda: PrayerAssistant(api_key="test", client=failing)

    with TestClient(app) as test_client:
        yield test_client
    engine.dispose()


def _submit(client, **overrides):
    payload = {
        "title": "Job search",
        "description": "Looking for work after redundancy",
        "category": "Financial Provision",
        "privacy_level": "public",
        "requester_name": "Yaw",
    }
    payload.update(overrides)
    response = client.post("/api/prayer-requests", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestPrayerRequestEndpoints:

    def test_submit_is_public_and_survives_timeline_failure(self, client):
        body = _submit(client, timeline="interview in 3 days")

        assert body["status"] == "active"
        assert body["timeline_text"] == "interview in 3 days"
        assert body["timeline_days"] is None

    def test_submit_anonymous_drops_name(self, client):
        body = _submit(client, privacy_level="anonymous", requester_name="Hidden")
        assert body["requester_name"] is None

    def test_submit_validation(self, client):
        response = client.post("/api/prayer-requests", json={"title": "", "description": "x"})
        assert response.status_code == 422
        response = client.post(
            "/api/prayer-requests",
            json={"title": "t", "description": "d", "category": "Lottery"}
        )
        assert response.status_code == 422

    def test_whitespace_title_rejected_by_service(self, client):
        response = client.post("/api/prayer-requests", json={"title": "   ", "description": "d"})
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "title"

    def test_listing_requires_identity(self, client):
        assert client.get("/api/prayer-requests").status_code == 401
        bad_role = {"X-User-Id": "u1", "X-User-Role": "superuser"}
        assert client.get("/api/prayer-requests", headers=bad_role).status_code == 401

    def test_answered_listing_is_for_leaders(self, client):
        request = _submit(client)
        client.put(f"/api/prayer-requests/{request['id']}/answer", headers=LEADER)

        assert client.get("/api/prayer-requests?status=answered", headers=WARRIOR).status_code == 403
        answered = client.get("/api/prayer-requests?status=answered", headers=LEADER).json()
        assert [r["id"] for r in answered] == [request["id"]]
        assert client.get("/api/prayer-requests", headers=WARRIOR).json() == []
        assert client.get("/api/prayer-requests?status=bogus", headers=LEADER).status_code == 422

    def test_answer_is_idempotent(self, client):
        request = _submit(client)

        first = client.put(f"/api/prayer-requests/{request['id']}/answer", headers=LEADER).json()
        second = client.put(f"/api/prayer-requests/{request['id']}/answer", headers=LEADER).json()

        assert first["status"] == second["status"] == "answered"
        assert first["answered_at"] == second["answered_at"]

    def test_warrior_cannot_answer(self, client):
        request = _submit(client)
        response = client.put(f"/api/prayer-requests/{request['id']}/answer", headers=WARRIOR)
        assert response.status_code == 403

    def test_unknown_request_404(self, client):
        assert client.get("/api/prayer-requests/999", headers=WARRIOR).status_code == 404
        assert client.put("/api/prayer-requests/999/answer", headers=LEADER).status_code == 404
        assert client.delete("/api/prayer-requests/999", headers=LEADER).status_code == 404


class TestCommitmentFlow:

    def test_full_flow(self, client):
        request = _submit(client)
        request_id = request["id"]

        available = client.get("/api/prayer-requests/available", headers=WARRIOR).json()
        assert [r["id"] for r in available] == [request_id]

        response = client.post(f"/api/prayer-requests/{request_id}/commit", headers=WARRIOR)
        assert response.status_code == 201
        commitment = response.json()
        assert commitment["target_hours"] == 4.0
        assert commitment["state"] == "Pending"

        assert client.get("/api/prayer-requests/available", headers=WARRIOR).json() == []

        for minutes in (60, 60, 90, 45):
            response = client.post(
                f"/api/commitments/{commitment['id']}/sessions",
                json={"duration_minutes": minutes},
                headers=WARRIOR
            )
            assert response.status_code == 201

        mine = client.get("/api/commitments/mine?include_completed=true", headers=WARRIOR).json()
        assert mine[0]["accumulated_hours"] == 4.25
        assert mine[0]["completed"] is True
        assert mine[0]["state"] == "Completed"
        assert mine[0]["request"]["id"] == request_id
        assert client.get("/api/commitments/mine", headers=WARRIOR).json() == []

    def test_duplicate_commit_conflict(self, client):
        request = _submit(client)
        client.post(f"/api/prayer-requests/{request['id']}/commit", headers=WARRIOR)

        response = client.post(f"/api/prayer-requests/{request['id']}/commit", headers=WARRIOR)

        assert response.status_code == 409
        assert "already holds" in response.json()["detail"]["message"]

    def test_commit_to_answered_conflict(self, client):
        request = _submit(client)
        client.put(f"/api/prayer-requests/{request['id']}/answer", headers=LEADER)

        response = client.post(f"/api/prayer-requests/{request['id']}/commit", headers=WARRIOR)

        assert response.status_code == 409

    def test_custom_target(self, client):
        request = _submit(client)
        response = client.post(
            f"/api/prayer-requests/{request['id']}/commit",
            json={"target_hours": 2.0},
            headers=WARRIOR
        )
        assert response.json()["target_hours"] == 2.0

    def test_zero_duration_rejected(self, client):
        request = _submit(client)
        commitment = client.post(f"/api/prayer-requests/{request['id']}/commit", headers=WARRIOR).json()

        response = client.post(
            f"/api/commitments/{commitment['id']}/sessions",
            json={"duration_minutes": 0},
            headers=WARRIOR
        )

        assert response.status_code == 422

    def test_logging_on_someone_elses_commitment_forbidden(self, client):
        request = _submit(client)
        commitment = client.post(f"/api/prayer-requests/{request['id']}/commit", headers=WARRIOR).json()

        response = client.post(
            f"/api/commitments/{commitment['id']}/sessions",
            json={"duration_minutes": 30},
            headers=OTHER_WARRIOR
        )

        assert response.status_code == 403

    def test_reassign_carries_progress(self, client):
        request = _submit(client)
        commitment = client.post(f"/api/prayer-requests/{request['id']}/commit", headers=WARRIOR).json()
        client.post(
            f"/api/commitments/{commitment['id']}/sessions",
            json={"duration_minutes": 120},
            headers=WARRIOR
        )

        assert client.put(
            f"/api/commitments/{commitment['id']}/reassign",
            json={"volunteer_id": "warrior_b"},
            headers=WARRIOR
        ).status_code == 403
        response = client.put(
            f"/api/commitments/{commitment['id']}/reassign",
            json={"volunteer_id": "warrior_b"},
            headers=LEADER
        )

        assert response.status_code == 200
        assert response.json()["volunteer_id"] == "warrior_b"
        assert response.json()["accumulated_hours"] == 2.0

    def test_target_update(self, client):
        request = _submit(client)
        commitment = client.post(f"/api/prayer-requests/{request['id']}/commit", headers=WARRIOR).json()
        client.post(
            f"/api/commitments/{commitment['id']}/sessions",
            json={"duration_minutes": 60},
            headers=WARRIOR
        )

        response = client.put(
            f"/api/commitments/{commitment['id']}/target",
            json={"target_hours": 1.0},
            headers=LEADER
        )

        assert response.json()["completed"] is True

    def test_delete_cascades(self, client):
        request = _submit(client)
        commitment = client.post(f"/api/prayer-requests/{request['id']}/commit", headers=WARRIOR).json()
        client.post(
            f"/api/commitments/{commitment['id']}/sessions",
            json={"duration_minutes": 30},
            headers=WARRIOR
        )

        response = client.delete(f"/api/prayer-requests/{request['id']}", headers=LEADER)

        assert response.status_code == 204
        assert client.get("/api/commitments/mine?include_completed=true", headers=WARRIOR).json() == []
        assert client.get(f"/api/prayer-requests/{request['id']}", headers=LEADER).status_code == 404


class TestDashboardAndAssistant:

    def test_dashboard_totals(self, client):
        first = _submit(client)
        second = _submit(client, title="Healing")
        c1 = client.post(f"/api/prayer-requests/{first['id']}/commit", headers=WARRIOR).json()
        client.post(f"/api/prayer-requests/{first['id']}/commit", headers=OTHER_WARRIOR)
        client.post(f"/api/commitments/{c1['id']}/sessions", json={"duration_minutes": 90}, headers=WARRIOR)
        client.put(f"/api/prayer-requests/{second['id']}/answer", headers=LEADER)

        assert client.get("/api/dashboard/prayer", headers=WARRIOR).status_code == 403
        body = client.get("/api/dashboard/prayer?status=all", headers=LEADER).json()

        assert body["stats"] == {
            "total_requests": 2,
            "total_hours": 1.5,
            "active_warriors": 2,
            "answered_requests": 1,
        }
        by_id = {s["request"]["id"]: s for s in body["requests"]}
        assert by_id[first["id"]]["total_hours"] == 1.5
        assert by_id[first["id"]]["warriors_count"] == 2
        assert by_id[second["id"]]["warriors_count"] == 0

        active_only = client.get("/api/dashboard/prayer", headers=LEADER).json()
        assert [s["request"]["id"] for s in active_only["requests"]] == [first["id"]]

    def test_assistant_endpoints_fall_back(self, client):
        timeline = client.post("/api/assistant/timeline", json={"text": "in 3 days"}).json()
        assert timeline == {"days": None, "deadline": None}

        verse = client.post("/api/assistant/verse", json={"text": "Worried", "category": "Other"}).json()
        assert "Psalm 34:18" in verse["verse"]

        encouragement = client.post("/api/assistant/encouragement", json={"text": "Lost my job"}).json()
        assert "lifting you up" in encouragement["encouragement"]

        frequency = client.post("/api/assistant/reminder-frequency", json={"timeline": "tomorrow"}).json()
        assert frequency == {"frequency": "daily"}

    def test_trends_for_leaders(self, client):
        _submit(client)
        assert client.get("/api/assistant/trends", headers=WARRIOR).status_code == 403
        body = client.get("/api/assistant/trends", headers=LEADER).json()
        assert body["insights"] == "Prayer trends analysis not available."
