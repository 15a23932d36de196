"""Integration tests for the recall API endpoint."""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient

from ivyrecall_server.services.metrics import get_metrics_service
from ivyrecall_server.services.storage import get_storage_backend


MISSING = "Missing required parameters: user_id and query/content"


class TestRecallValidation:
    """Requests lacking user_id or query are rejected with 400 before any retrieval."""

    def test_missing_user_id(self, test_client: TestClient):
        response = test_client.post("/v1/recall", json={"query": "What did I do today?"})
        assert response.status_code == 400
        assert response.json()["detail"] == MISSING

    def test_missing_query(self, test_client: TestClient):
        response = test_client.post("/v1/recall", json={"user_id": "api_user_missing"})
        assert response.status_code == 400
        assert response.json()["detail"] == MISSING

    def test_blank_query(self, test_client: TestClient):
        response = test_client.post("/v1/recall", json={"user_id": "api_user_blank", "query": "   "})
        assert response.status_code == 400


class TestRecallEndpoint:
    """End-to-end recall over the in-memory store."""

    async def test_recall_returns_seeded_memories(self, async_client: AsyncClient, v, record_factory):
        storage = get_storage_backend(v)
        user = "api_user_alex"
        await storage.add_memory(record_factory(
            "api_alex_old", "Had coffee with Alex and talked about the move", importance=0.4,
            age=timedelta(days=3), user_id=user,
        ))
        await storage.add_memory(record_factory(
            "api_alex_new", "Alex told me the promotion came through", importance=0.9,
            age=timedelta(days=1), user_id=user,
        ))

        response = await async_client.post("/v1/recall", json={
            "user_id": user,
            "query": "What happened with Alex yesterday?",
        })
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "success"
        ids = [m["record"]["id"] for m in data["memories"]]
        assert ids.index("api_alex_new") < ids.index("api_alex_old")
        assert "embedding" not in data["memories"][0]["record"]
        assert data["diagnostics"]["tier"] == "MODERATE"
        assert data["diagnostics"]["entities"] == ["Alex"]
        assert data["synthesis"]["summary"].startswith("Found 2 relevant memories about Alex")

    async def test_content_alias_and_session_header(self, async_client: AsyncClient, v, record_factory):
        storage = get_storage_backend(v)
        user = "api_user_session"
        await storage.add_memory(record_factory(
            "api_session_1", "Planning the garden layout", session_id="sess_api", user_id=user,
        ))

        response = await async_client.post(
            "/v1/recall",
            json={"user_id": user, "content": "garden"},
            headers={"X-Session-ID": "sess_api"},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["metadata"]["session_id"] == "sess_api"
        assert [p["id"] for p in data["session_buffer"]] == ["api_session_1"]

    def test_lockdown_returns_limited(self, test_client: TestClient, v):
        metrics = get_metrics_service(v)
        before = metrics.get("recall.stream.session.calls")

        response = test_client.post("/v1/recall", json={
            "user_id": "api_user_locked",
            "query": "Tell me everything",
            "integrity_state": {"risk": 0.2, "status": "LOCKED"},
        })
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "limited"
        assert data["reason"] == "integrity_lockdown"
        assert data["memories"] == []
        assert data["synthesis"]["summary"] == (
            "System is in integrity lockdown. Only verified information available."
        )
        assert metrics.get("recall.stream.session.calls") == before

    def test_unknown_user_has_no_candidates(self, test_client: TestClient):
        response = test_client.post("/v1/recall", json={"user_id": "api_user_nobody", "query": "anything new"})
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "success"
        assert data["memories"] == []
        assert data["diagnostics"]["reason"] == "no_candidates"


@pytest.mark.parametrize("risk", [0.9, 0.95])
def test_high_risk_is_lockdown(test_client: TestClient, risk: float):
    response = test_client.post("/v1/recall", json={
        "user_id": "api_user_risk",
        "query": "How am I doing?",
        "integrity_state": {"risk": risk},
    })
    assert response.status_code == 200
    assert response.json()["status"] == "limited"


class TestResponseOptions:
    """Response shape options are accepted in the request body."""

    async def test_clustered_with_awareness(self, async_client: AsyncClient, v, record_factory):
        user = "api_user_shape"
        await get_storage_backend(v).add_memory(record_factory(
            "api_shape_1", "Jamie and I keep thinking about the garden", importance=0.7, user_id=user,
        ))

        response = await async_client.post("/v1/recall", json={
            "user_id": user,
            "query": "Jamie",
            "consolidation_level": "clustered",
            "awareness_mode": True,
        })
        assert response.status_code == 200

        data = response.json()
        assert data["memories"] == []
        members = [m for c in data["clusters"] for m in c["members"]]
        assert [m["record"]["id"] for m in members] == ["api_shape_1"]
        assert members[0]["patterns_detected"] == ["rumination"]
        assert data["awareness"]["query_understanding"] == "User is asking about: Jamie"
        assert data["diagnostics"]["consolidation_level"] == "clustered"
        assert data["reflections"] is None

    def test_unknown_consolidation_level_rejected(self, test_client: TestClient):
        response = test_client.post("/v1/recall", json={
            "user_id": "api_user_shape", "query": "Jamie", "consolidation_level": "summarized",
        })
        assert response.status_code == 422
