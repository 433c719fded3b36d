"""
Tests for the timeline API endpoints.

The store and the reference day are swapped in through FastAPI dependency
overrides so every request runs against the pinned fixture DB.
"""

import pytest
from fastapi.testclient import TestClient

from api.server import app
from api.timeline_router import get_recalibrator, get_timeline_store, get_today
from tests.fixtures.fixture_db import FIXTURE_TODAY


@pytest.fixture()
def client(store):
    app.dependency_overrides[get_timeline_store] = lambda: store
    app.dependency_overrides[get_today] = lambda: FIXTURE_TODAY
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestRecalculateEndpoint:
    def test_success(self, client, store):
        resp = client.post("/api/timelines/tl-wedding/recalculate", json={})
        assert resp.status_code == 200

        data = resp.json()
        assert data["success"] is True
        assert data["lead_time_months"] == 12
        assert data["scale_factor"] == 1.0
        assert data["converged"] is True
        assert {"id": "b-12m", "start_date": "2026-01-07", "end_date": "2026-02-22"} in data[
            "blocks"
        ]
        assert {"id": "t-venue", "due_date": "2026-01-18"} in data["tasks"]
        assert data["diagnostics"][0]["code"] == "unresolvable_block"
        assert data["diagnostics"][0]["subject_id"] == "b-odd"

        assert store.fetch_timeline("tl-wedding").scale_factor == 1.0

    def test_no_body_uses_defaults(self, client):
        resp = client.post("/api/timelines/tl-wedding/recalculate")
        assert resp.status_code == 200
        assert {"id": "t-dress", "due_date": "2026-03-15"} in resp.json()["tasks"]

    def test_camel_case_options(self, client, store):
        resp = client.post(
            "/api/timelines/tl-wedding/recalculate",
            json={"distribution": "even", "respectLocks": False, "dryRun": True},
        )
        assert resp.status_code == 200
        assert {"id": "t-dress", "due_date": "2026-03-25"} in resp.json()["tasks"]
        # dry run
        tasks = {t.id: t for t in store.fetch_tasks("tl-wedding")}
        assert tasks["t-venue"].due_date is None

    def test_snake_case_options(self, client):
        resp = client.post(
            "/api/timelines/tl-wedding/recalculate",
            json={"respect_locks": False, "dry_run": True},
        )
        assert resp.status_code == 200
        assert {"id": "t-menu", "due_date": "2026-06-28"} in resp.json()["tasks"]

    def test_blank_id_is_bad_request(self, client):
        resp = client.post("/api/timelines/%20/recalculate", json={})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Timeline ID required"

    def test_missing_timeline(self, client):
        resp = client.post("/api/timelines/nope/recalculate", json={})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Timeline not found"

    def test_missing_event(self, client):
        resp = client.post("/api/timelines/tl-orphan/recalculate", json={})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Event not found"

    def test_load_failure(self, client):
        resp = client.post("/api/timelines/tl-broken/recalculate", json={})
        assert resp.status_code == 500
        assert resp.json()["detail"].startswith("Failed to load tasks")

    def test_unknown_distribution_rejected(self, client):
        resp = client.post(
            "/api/timelines/tl-wedding/recalculate", json={"distribution": "random"}
        )
        assert resp.status_code == 422

    def test_unexpected_error_is_500_with_message(self, client):
        class ExplodingRecalibrator:
            def recalculate(self, timeline_id, options=None, *, today, now=None):
                raise RuntimeError("boom")

        app.dependency_overrides[get_recalibrator] = lambda: ExplodingRecalibrator()
        resp = client.post("/api/timelines/tl-wedding/recalculate", json={})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "boom"


class TestProgressEndpoint:
    def test_progress(self, client):
        resp = client.get("/api/timelines/tl-wedding/progress")
        assert resp.status_code == 200

        data = resp.json()
        assert data["overall"] == {"completed": 1, "total": 10, "percentage": 10}
        assert data["by_assignee"]["planner"]["total"] == 1
        assert data["by_block"]["b-12m"]["percentage"] == 33
        assert data["overdue_task_ids"] == []

    def test_missing_timeline(self, client):
        resp = client.get("/api/timelines/nope/progress")
        assert resp.status_code == 404


class TestAuditEndpoint:
    def test_recalculation_shows_up(self, client):
        client.post("/api/timelines/tl-wedding/recalculate", json={})

        resp = client.get("/api/timelines/tl-wedding/audit")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["items"][0]["changes"]["type"] == "recalculation"
        assert data["items"][0]["actor"] == "admin"

    def test_dry_run_not_audited(self, client):
        client.post("/api/timelines/tl-wedding/recalculate", json={"dryRun": True})
        assert client.get("/api/timelines/tl-wedding/audit").json() == {"items": [], "total": 0}

    def test_limit_validated(self, client):
        assert client.get("/api/timelines/tl-wedding/audit?limit=0").status_code == 422


class TestServer:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_request_id_echoed(self, client):
        resp = client.get("/api/health", headers={"X-Request-ID": "req-test123"})
        assert resp.headers["x-request-id"] == "req-test123"

    def test_request_id_generated(self, client):
        resp = client.get("/api/health")
        assert resp.headers["x-request-id"].startswith("req-")
