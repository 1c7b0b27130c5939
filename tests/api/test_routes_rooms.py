"""Tests for room, transfer request and reaction API endpoints."""

import pytest
from fastapi.testclient import TestClient

from colony.api.app import create_app
from colony.config import Settings
from colony.core.engine import CoreEngine
from colony.core.layout import build_colony
from colony.core.logistics import LogisticsTask


@pytest.fixture
def engine():
    settings = Settings(room_names=["W1N1"])
    return CoreEngine(rooms=build_colony(settings), settings=settings)


@pytest.fixture
def client(engine):
    """Create a test client over a fresh colony."""
    return TestClient(create_app(engine=engine))


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["engine_running"] == "False"
    assert data["tick"] == "0"
    assert float(data["uptime_seconds"]) >= 0.0


def test_app_state_resolves_rooms(client, engine):
    state = client.app.state.app_state

    assert state.room("W1N1") is engine.rooms["W1N1"]
    assert state.room("W9N9") is None
    assert state.graph.resolve("OH") == ("H", "O")


def test_list_rooms(client, engine):
    engine.step()

    response = client.get("/api/rooms")

    assert response.status_code == 200
    rooms = response.json()
    assert len(rooms) == 1
    assert rooms[0]["name"] == "W1N1"
    assert rooms[0]["agent_count"] == 3
    assert rooms[0]["facility_state"] == "getResource"
    assert rooms[0]["facility_target"] == "OH"


def test_get_room(client):
    response = client.get("/api/rooms/W1N1")

    assert response.status_code == 200
    data = response.json()
    assert data["tick"] == 0
    assert data["facility"]["state"] == "getTarget"
    assert data["task"] is None
    assert data["requests"] == []
    assert data["stock"]["energy"] == 100000
    assert {a["role"] for a in data["agents"]} == {"transfer", "centerTransfer", "taskCarrier"}


def test_get_unknown_room(client):
    response = client.get("/api/rooms/E5S5")

    assert response.status_code == 404


def test_queue_transfer_request(client, engine):
    response = client.post(
        "/api/rooms/W1N1/requests",
        json={"source_id": "W1N1-storage", "target_id": "W1N1-tower", "resource_type": "energy", "amount": 400},
    )

    assert response.status_code == 200
    assert response.json()["queued"] is True
    request = engine.rooms["W1N1"].requests[("W1N1-storage", "W1N1-tower", "energy")]
    assert request.amount == 400
    assert request.requested_by == "api"


def test_queue_request_covered_by_active_task(client, engine):
    engine.rooms["W1N1"].task = LogisticsTask("W1N1-storage", "W1N1-lab", "H", 500)

    response = client.post(
        "/api/rooms/W1N1/requests",
        json={"source_id": "W1N1-storage", "target_id": "W1N1-lab", "resource_type": "H", "amount": 500},
    )

    assert response.status_code == 200
    assert response.json()["queued"] is False


def test_queue_request_unknown_room(client):
    response = client.post(
        "/api/rooms/E5S5/requests",
        json={"source_id": "a", "target_id": "b", "resource_type": "H", "amount": 1},
    )

    assert response.status_code == 404


def test_queue_request_unknown_structure(client, engine):
    response = client.post(
        "/api/rooms/W1N1/requests",
        json={"source_id": "W1N1-storage", "target_id": "nowhere", "resource_type": "H", "amount": 10},
    )

    assert response.status_code == 422
    assert engine.rooms["W1N1"].requests == {}


def test_queue_request_rejects_non_positive_amount(client):
    response = client.post(
        "/api/rooms/W1N1/requests",
        json={"source_id": "W1N1-storage", "target_id": "W1N1-lab", "resource_type": "H", "amount": 0},
    )

    assert response.status_code == 422


def test_get_reaction(client):
    response = client.get("/api/reactions/XKHO2")

    assert response.status_code == 200
    data = response.json()
    assert data["raw"] is False
    assert data["substrates"] == ["KHO2", "X"]
    assert data["tier"] == 3
    assert data["chain"] == ["KO", "OH", "KHO2", "XKHO2"]
    assert data["raw_requirements"] == {"K": 1, "O": 2, "H": 1, "X": 1}


def test_get_raw_material_reaction(client):
    response = client.get("/api/reactions/H")

    assert response.status_code == 200
    data = response.json()
    assert data["raw"] is True
    assert data["substrates"] is None
    assert data["tier"] == 0
    assert data["chain"] == []


def test_get_unknown_reaction(client):
    response = client.get("/api/reactions/H2O")

    assert response.status_code == 404
    assert "H2O" in response.json()["detail"]
