"""
Tests for the FastAPI endpoint.

The committee dependency is overridden with a rule-based one, so no
live LLM provider is needed.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_committee
from api.models import HealthResponse, SessionRequest
from orchestrator.committee import DebateCommittee
from orchestrator.registry import build_fallback_registry
from orchestrator.session_store import SessionStore
from orchestrator.validation import ValidationEngine

SESSION = {
    "session_id": "s1",
    "instrument_symbol": "005930",
    "instrument_name": "Samsung Electronics",
    "reference_price": 70000,
    "sector": "Semiconductors",
}


@pytest.fixture
def client(today):
    committee = DebateCommittee(
        registry=build_fallback_registry(),
        store=SessionStore(max_rounds=2),
        validator=ValidationEngine(seed=2, clock=lambda: today),
    )
    app.dependency_overrides[get_committee] = lambda: committee
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestApiModels:
    def test_session_request_requires_positive_price(self):
        with pytest.raises(ValueError):
            SessionRequest(session_id="s", instrument_symbol="X", instrument_name="X", reference_price=0)

    def test_health_defaults(self):
        assert HealthResponse().status == "ok"


class TestRoutes:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["max_rounds"] == 2

    def test_create_session(self, client):
        resp = client.post("/sessions", json=SESSION)
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "created"
        assert body["analysts"] == ["balanced", "growth", "macro_risk"]

    def test_create_session_validation_error(self, client):
        resp = client.post("/sessions", json={**SESSION, "reference_price": -5})
        assert resp.status_code == 422

    def test_run_rounds_and_consensus(self, client):
        client.post("/sessions", json=SESSION)

        first = client.post("/sessions/s1/rounds/1")
        assert first.status_code == 200
        body = first.json()
        assert [s["analyst"] for s in body["statements"]] == ["balanced", "growth", "macro_risk"]
        assert body["round_score"]["round_number"] == 1
        assert body["is_complete"] is False

        second = client.post("/sessions/s1/rounds/2").json()
        assert second["is_complete"] is True

        history = client.get("/sessions/s1/history").json()
        assert len(history["statements"]) == 6

        consensus = client.get("/sessions/s1/consensus")
        assert consensus.status_code == 200
        assert consensus.json()["consensus"]["dispersion_pct"] >= 0

    def test_replayed_round_matches(self, client):
        client.post("/sessions", json=SESSION)
        first = client.post("/sessions/s1/rounds/1").json()
        again = client.post("/sessions/s1/rounds/1").json()
        assert again["statements"] == first["statements"]

    def test_out_of_order_is_conflict(self, client):
        client.post("/sessions", json=SESSION)
        resp = client.post("/sessions/s1/rounds/2")
        assert resp.status_code == 409

    def test_consensus_before_rounds_is_conflict(self, client):
        client.post("/sessions", json=SESSION)
        resp = client.get("/sessions/s1/consensus")
        assert resp.status_code == 409
        assert "round incomplete" in resp.json()["detail"]

    def test_unknown_session_is_404(self, client):
        assert client.post("/sessions/nope/rounds/1").status_code == 404
        assert client.get("/sessions/nope/history").status_code == 404
        assert client.get("/sessions/nope/consensus").status_code == 404
        assert client.delete("/sessions/nope").status_code == 404

    def test_delete_session(self, client):
        client.post("/sessions", json=SESSION)
        assert client.delete("/sessions/s1").json() == {"evicted": "s1"}
        assert client.get("/sessions/s1/history").status_code == 404
