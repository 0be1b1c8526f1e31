"""Integration tests for the review API.

These tests spin up a TestClient around an app backed by an in-memory
store and verify status codes, payloads and error mapping.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from docreview.store.memory import InMemoryAssignmentStore
from docreview.web.app import create_app


@pytest.fixture
def client():
    """Return a TestClient for a fresh app."""
    return TestClient(create_app(store=InMemoryAssignmentStore()))


def _create(client, assignment_id, **fields):
    body = {"assignment_id": assignment_id, "assignee_id": fields.pop("assignee_id", "u1"), **fields}
    response = client.post("/api/reviews", json=body)
    assert response.status_code == 201
    return response.json()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_and_get(client):
    created = _create(client, "A1", document_id="doc-1", notes="focus on section 2")
    assert created["status"] == "pending"
    assert created["version"] == 0

    response = client.get("/api/reviews/A1")
    assert response.status_code == 200
    assert response.json() == created


def test_create_generates_id(client):
    response = client.post("/api/reviews", json={"assignee_id": "u1"})
    assert response.status_code == 201
    assert response.json()["assignment_id"]


def test_create_ignores_client_status(client):
    created = _create(client, "A1", status="completed", version=7)
    assert created["status"] == "pending"
    assert created["version"] == 0


def test_duplicate_create(client):
    _create(client, "A1")
    response = client.post("/api/reviews", json={"assignment_id": "A1", "assignee_id": "u2"})
    assert response.status_code == 409
    assert response.json()["error"] == "exists"


def test_get_missing(client):
    response = client.get("/api/reviews/missing-id")
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "not_found"
    assert "missing-id" in body["detail"]


def test_toggle_round_trip(client):
    """A1 pending -> completed -> pending."""
    _create(client, "A1")
    first = client.post("/api/reviews/A1/toggle")
    assert first.status_code == 200
    assert first.json()["status"] == "completed"

    second = client.post("/api/reviews/A1/toggle")
    assert second.status_code == 200
    assert second.json()["status"] == "pending"


def test_toggle_missing(client):
    response = client.post("/api/reviews/missing-id/toggle")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"
    # Guard was released: the id can be used as soon as it exists
    _create(client, "missing-id")
    assert client.post("/api/reviews/missing-id/toggle").status_code == 200


def test_put_status(client):
    _create(client, "A1")
    response = client.put("/api/reviews/A1", json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["version"] == 1


def test_put_invalid_status(client):
    _create(client, "A1")
    response = client.put("/api/reviews/A1", json={"status": "approved"})
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_status"
    assert client.get("/api/reviews/A1").json()["status"] == "pending"


def test_put_stale_version(client):
    _create(client, "A1")
    client.put("/api/reviews/A1", json={"status": "completed"})
    response = client.put("/api/reviews/A1", json={"status": "pending", "expected_version": 0})
    assert response.status_code == 409
    assert response.json()["error"] == "stale"


def test_delete(client):
    _create(client, "A1")
    assert client.delete("/api/reviews/A1").status_code == 204
    assert client.get("/api/reviews/A1").status_code == 404
    assert client.delete("/api/reviews/A1").status_code == 404


def test_list_filters(client):
    _create(client, "A1", document_id="doc-1", assignee_id="u1")
    _create(client, "A2", document_id="doc-1", assignee_id="u2")
    _create(client, "A3", document_id="doc-2", assignee_id="u1")
    client.post("/api/reviews/A2/toggle")

    by_doc = client.get("/api/reviews", params={"document_id": "doc-1"}).json()
    assert {a["assignment_id"] for a in by_doc} == {"A1", "A2"}

    by_user = client.get("/api/reviews", params={"assignee_id": "u1", "status": "pending"}).json()
    assert {a["assignment_id"] for a in by_user} == {"A1", "A3"}

    response = client.get("/api/reviews", params={"status": "overdue"})
    assert response.status_code == 422
    assert response.json()["error"] == "invalid_status"


def test_overdue(client):
    now = datetime.now(timezone.utc)
    _create(client, "late", due_date=(now - timedelta(days=2)).isoformat())
    _create(client, "future", due_date=(now + timedelta(days=2)).isoformat())
    _create(client, "late-done", due_date=(now - timedelta(days=5)).isoformat())
    client.post("/api/reviews/late-done/toggle")

    response = client.get("/api/reviews/overdue")
    assert response.status_code == 200
    assert [a["assignment_id"] for a in response.json()] == ["late"]


def test_document_summary(client):
    for i in range(3):
        _create(client, f"A{i}", document_id="doc-1", assignee_id=f"u{i}")
    client.post("/api/reviews/A0/toggle")

    response = client.get("/api/documents/doc-1/reviews/summary")
    assert response.status_code == 200
    assert response.json() == {
        "completed": 1,
        "total": 3,
        "percentage": 33,
        "remaining": 2,
        "all_completed": False,
    }


def test_document_summary_without_reviews(client):
    body = client.get("/api/documents/nothing/reviews/summary").json()
    assert body["total"] == 0
    assert body["all_completed"] is False


@pytest.mark.asyncio
async def test_concurrent_toggle_returns_conflict(gated_store):
    """A second toggle request while the first is waiting on the store gets 409."""
    app = create_app(store=gated_store)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
        await client.post("/api/reviews", json={"assignment_id": "A2", "assignee_id": "u2"})

        first = asyncio.create_task(client.post("/api/reviews/A2/toggle"))
        await gated_store.write_started.wait()

        second = await client.post("/api/reviews/A2/toggle")
        assert second.status_code == 409
        assert second.json()["error"] == "in_progress"

        gated_store.gate.set()
        response = await first
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

        current = await client.get("/api/reviews/A2")
        assert current.json()["status"] == "completed"
