"""Tests for the registry REST API."""

import pytest
from fastapi.testclient import TestClient

from seedreg.registry.service import VarietyRegistry
from seedreg.security.audit_log import AuditLogger
from web.backend.app.main import app
from web.backend.app.middleware.context import get_registry

ALICE = {"X-Caller-Identity": "alice", "X-Current-Height": "100"}
BOB = {"X-Caller-Identity": "bob", "X-Current-Height": "120"}

TOMATO = {
    "name": "Cherokee Purple Tomato",
    "species": "Solanum lycopersicum",
    "origin": "United States, Cherokee Nation",
    "description": "Heirloom beefsteak tomato",
    "year_documented": 1890,
    "rarity_level": 3,
}


@pytest.fixture
def client(tmp_path):
    registry = VarietyRegistry(audit=AuditLogger(tmp_path / "audit"))
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").json()["name"] == "seedreg API"


def test_register_and_get(client):
    response = client.post("/api/varieties", json=TOMATO, headers=ALICE)
    assert response.status_code == 201
    assert response.json() == {"variety_id": 1}

    variety = client.get("/api/varieties/1").json()
    assert variety["name"] == "Cherokee Purple Tomato"
    assert variety["registered_by"] == "alice"
    assert variety["registration_height"] == 100
    assert variety["active"] is True

    steward = client.get("/api/varieties/1/stewards/alice").json()
    assert steward["is_steward"] is True


def test_register_requires_caller(client):
    response = client.post("/api/varieties", json=TOMATO)
    assert response.status_code == 401


def test_register_invalid_rarity(client):
    response = client.post("/api/varieties", json={**TOMATO, "rarity_level": 6}, headers=ALICE)
    assert response.status_code == 422
    assert response.json()["detail"] == {"error": "INVALID_RARITY", "code": 1}
    assert client.get("/api/varieties/next-id").json() == {"next_variety_id": 1}


def test_get_unknown_variety(client):
    response = client.get("/api/varieties/999")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == 2


def test_update_variety(client):
    client.post("/api/varieties", json=TOMATO, headers=ALICE)
    response = client.patch(
        "/api/varieties/1",
        json={"name": "Cherokee Purple", "description": "Dusky rose", "rarity_level": 4},
        headers=ALICE,
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    variety = client.get("/api/varieties/1").json()
    assert variety["name"] == "Cherokee Purple"
    assert variety["description"] == "Dusky rose"
    assert variety["rarity_level"] == 4
    assert variety["species"] == "Solanum lycopersicum"


def test_update_by_non_steward(client):
    client.post("/api/varieties", json=TOMATO, headers=ALICE)
    response = client.patch(
        "/api/varieties/1",
        json={"name": "Stolen", "description": "x", "rarity_level": 9},
        headers=BOB,
    )
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "UNAUTHORIZED"


def test_update_unknown_variety(client):
    response = client.patch(
        "/api/varieties/5",
        json={"name": "N", "description": "D", "rarity_level": 1},
        headers=ALICE,
    )
    assert response.status_code == 404


def test_add_steward_flow(client):
    client.post("/api/varieties", json=TOMATO, headers=ALICE)

    refused = client.post("/api/varieties/1/stewards", json={"steward": "bob"}, headers=BOB)
    assert refused.status_code == 403

    response = client.post("/api/varieties/1/stewards", json={"steward": "bob"}, headers=ALICE)
    assert response.status_code == 200

    stewards = client.get("/api/varieties/1/stewards").json()
    assert [s["steward"] for s in stewards] == ["alice", "bob"]
    assert stewards[1]["since"] == 100


def test_deactivate_and_filter(client):
    client.post("/api/varieties", json=TOMATO, headers=ALICE)
    client.post("/api/varieties", json={**TOMATO, "name": "Brandywine"}, headers=ALICE)

    assert client.post("/api/varieties/1/deactivate", headers=ALICE).status_code == 200
    assert client.post("/api/varieties/1/deactivate", headers=ALICE).status_code == 200
    assert client.post("/api/varieties/1/deactivate", headers=BOB).status_code == 403

    assert len(client.get("/api/varieties").json()) == 2
    active = client.get("/api/varieties", params={"active_only": True}).json()
    assert [v["name"] for v in active] == ["Brandywine"]


def test_default_height(client):
    client.post("/api/varieties", json=TOMATO, headers=ALICE)
    response = client.post("/api/varieties/1/stewards", json={"steward": "bob"}, headers={"X-Caller-Identity": "alice"})
    assert response.json()["height"] == 101


def test_variety_audit(client):
    client.post("/api/varieties", json=TOMATO, headers=ALICE)
    client.post("/api/varieties/1/deactivate", headers=BOB)

    events = client.get("/api/varieties/1/audit").json()
    assert [e["action"] for e in events] == ["deactivate_variety", "register_variety"]
    assert events[0]["success"] is False
    assert events[0]["actor"] == "bob"


def test_empty_name_and_steward_are_accepted(client):
    response = client.post("/api/varieties", json={**TOMATO, "name": ""}, headers=ALICE)
    assert response.status_code == 201
    assert client.get("/api/varieties/1").json()["name"] == ""

    renamed = client.patch(
        "/api/varieties/1",
        json={"name": "", "description": "", "rarity_level": 1},
        headers=ALICE,
    )
    assert renamed.status_code == 200

    added = client.post("/api/varieties/1/stewards", json={"steward": ""}, headers=ALICE)
    assert added.status_code == 200
    stewards = client.get("/api/varieties/1/stewards").json()
    assert [s["steward"] for s in stewards] == ["", "alice"]
