"""
API Server Tests
================

Exercises the HTTP surface against a small on-disk graph.
"""

import json

import pytest
from fastapi.testclient import TestClient

from interaction_graph.api import server
from tests.fixtures import SIM_SEED, pentagon_payload


@pytest.fixture
def client(tmp_path, monkeypatch):
    data = tmp_path / "graph.json"
    data.write_text(json.dumps(pentagon_payload()), encoding="utf-8")
    monkeypatch.setenv("INTERACTION_GRAPH_DATA", str(data))
    monkeypatch.setenv("INTERACTION_GRAPH_SEED", str(SIM_SEED))

    with TestClient(server.app) as test_client:
        yield test_client
    assert server.engine_instance is None


class TestReadEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "online", "simulation": "idle"}

    def test_initial_view(self, client):
        body = client.get("/api/v1/view").json()
        assert body["selection"] == "all"
        assert len(body["active_edges"]) == 6
        assert body["active_edges"][0] == {
            "user1": 1, "user2": 2, "assignmentId": 1, "value": "Text Placeholder"
        }
        assert body["interaction_counts"] == {"1": 3, "2": 2, "3": 3, "4": 2, "5": 2}
        assert body["isolated_nodes"] == []
        assert body["metrics"]["is_connected"] is True

    def test_positions_before_start(self, client):
        body = client.get("/api/v1/positions").json()
        assert body == {"status": "idle", "state": None, "positions": {}}


class TestFilterEndpoints:

    def test_toggle_walkthrough(self, client):
        body = client.post("/api/v1/filter/toggle", json={"key": 2}).json()
        assert body["view"]["selection"] == [1, 3]
        assert body["warnings"] == []

        body = client.post("/api/v1/filter/toggle", json={"key": "all"}).json()
        assert body["view"]["selection"] == "all"

    def test_toggle_unknown_id_warns(self, client):
        body = client.post("/api/v1/filter/toggle", json={"key": 42}).json()
        assert body["view"]["selection"] == "all"
        assert len(body["warnings"]) == 1

    def test_toggle_bad_string_key(self, client):
        assert client.post("/api/v1/filter/toggle", json={"key": "everything"}).status_code == 422

    def test_set_filter(self, client):
        body = client.post("/api/v1/filter", json={"assignment_ids": [2]}).json()
        assert body["view"]["selection"] == [2]
        assert body["view"]["isolated_nodes"] == [1, 2]

    def test_set_filter_requires_a_selection(self, client):
        assert client.post("/api/v1/filter", json={}).status_code == 422


class TestSimulationEndpoints:

    def test_tick_when_idle_is_conflict(self, client):
        response = client.post("/api/v1/simulation/tick")
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "ENGINE_IDLE"

    def test_run_lifecycle(self, client):
        body = client.post("/api/v1/simulation/start").json()
        assert body["status"] == "running"
        assert set(body["positions"]) == {"1", "2", "3", "4", "5"}

        body = client.post("/api/v1/simulation/tick", json={"count": 3}).json()
        assert body["state"]["tick_count"] == 3

        body = client.post("/api/v1/simulation/run").json()
        assert body["status"] == "cooled"

        body = client.post("/api/v1/simulation/stop").json()
        assert body == {"status": "idle", "state": None}

    def test_drag(self, client):
        client.post("/api/v1/simulation/start")
        body = client.post("/api/v1/drag/start", json={"node_id": 1}).json()
        assert body["state"]["alpha_target"] == pytest.approx(0.3)

        client.post("/api/v1/drag/move", json={"node_id": 1, "x": 10.0, "y": -5.0})
        positions = client.post("/api/v1/simulation/tick").json()["positions"]
        assert positions["1"] == {"x": 10.0, "y": -5.0}

        body = client.post("/api/v1/drag/end", json={"node_id": 1}).json()
        assert body["state"]["alpha_target"] == 0.0

    def test_drag_unknown_node(self, client):
        client.post("/api/v1/simulation/start")
        response = client.post("/api/v1/drag/start", json={"node_id": 99})
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "UNKNOWN_DRAG_TARGET"


class TestAuditEndpoint:

    def test_audit_report(self, client):
        client.post("/api/v1/filter/toggle", json={"key": 1})
        body = client.get("/api/v1/audit", params={"limit": 5}).json()
        assert body["report"]["by_layer"]["ingestion"] == 1
        assert body["report"]["by_layer"]["filter"] == 1
        assert 0 < len(body["entries"]) <= 5
