"""Tests for the FastAPI web layer."""

import pytest
from fastapi.testclient import TestClient

from appreg.registry.store import Registry
from web.backend.app.main import app
from web.backend.app.middleware.auth import get_registry


@pytest.fixture
def client():
    reg = Registry("owner")
    app.dependency_overrides[get_registry] = lambda: reg
    yield TestClient(app)
    app.dependency_overrides.clear()


def _as(principal):
    return {"X-Principal": principal}


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_node_admission_flow(client):
    resp = client.post("/api/nodes", json={"url": "https://a"}, headers=_as("owner"))
    assert resp.status_code == 201
    assert resp.json() == {"url": "https://a", "is_approved": True}

    resp = client.post("/api/nodes", json={"url": "https://b"})
    assert resp.status_code == 201
    assert resp.json()["is_approved"] is False

    listing = client.get("/api/nodes").json()
    assert listing["approved"] == ["https://a"]
    assert listing["pending"] == ["https://b"]
    assert listing["pending_count"] == 1

    resp = client.post("/api/nodes/approve", json={"url": "https://b"}, headers=_as("owner"))
    assert resp.status_code == 200
    assert client.get("/api/nodes/info", params={"url": "https://b"}).json()["is_approved"]

    resp = client.post("/api/nodes/remove", json={"url": "https://a"}, headers=_as("owner"))
    assert resp.status_code == 204
    assert client.get("/api/nodes/info", params={"url": "https://a"}).status_code == 404


def test_error_mapping(client):
    client.post("/api/nodes", json={"url": "https://a"}, headers=_as("owner"))

    resp = client.post("/api/nodes", json={"url": "https://a"}, headers=_as("owner"))
    assert resp.status_code == 409
    assert resp.json()["code"] == "already_exists"

    resp = client.post("/api/nodes", json={"url": ""}, headers=_as("owner"))
    assert resp.status_code == 400

    resp = client.post("/api/nodes/approve", json={"url": "https://a"}, headers=_as("owner"))
    assert resp.status_code == 409
    assert resp.json()["code"] == "already_approved"

    resp = client.post("/api/nodes/approve", json={"url": "https://a"}, headers=_as("stranger"))
    assert resp.status_code == 403

    resp = client.post("/api/nodes/approve", json={"url": "https://a"})
    assert resp.status_code == 401

    resp = client.delete("/api/managers/owner", headers=_as("owner"))
    assert resp.status_code == 409
    assert resp.json()["code"] == "invariant_violation"


def test_batches_report_skips(client):
    client.post("/api/nodes", json={"url": "https://A"})
    client.post("/api/nodes", json={"url": "https://C"}, headers=_as("owner"))

    resp = client.post(
        "/api/nodes/approve-batch",
        json={"urls": ["https://A", "https://B", "https://C"]},
        headers=_as("owner"),
    )
    assert resp.json() == {"changed": ["https://A"], "skipped": ["https://B", "https://C"]}

    resp = client.post(
        "/api/nodes/remove-batch", json={"urls": ["https://A", "https://B"]}, headers=_as("owner")
    )
    assert resp.json() == {"changed": ["https://A"], "skipped": ["https://B"]}

    resp = client.post("/api/nodes/remove-batch", json={"urls": []}, headers=_as("nobody"))
    assert resp.status_code == 403


def test_managers_and_ownership(client):
    resp = client.post("/api/managers", json={"principal": "mgr"}, headers=_as("owner"))
    assert resp.status_code == 201
    assert client.get("/api/managers/mgr").json()["is_manager"] is True
    assert client.get("/api/managers").json() == {"owner": "owner", "managers": ["mgr", "owner"]}

    resp = client.delete("/api/managers/mgr", headers=_as("owner"))
    assert resp.json() == {"principal": "mgr", "is_manager": False}

    resp = client.post("/api/owner/transfer", json={"new_owner": None}, headers=_as("owner"))
    assert resp.status_code == 400
    assert client.get("/api/owner").json() == {"owner": "owner"}

    resp = client.post("/api/owner/transfer", json={"new_owner": "X"}, headers=_as("owner"))
    assert resp.json() == {"owner": "X"}


def test_app_info(client):
    assert client.get("/api/app-info").json() == {
        "version": "",
        "download_link": "",
        "update_content": "",
    }
    body = {"version": "1.2.0", "download_link": "https://dl/1.2.0", "update_content": "fixes"}

    assert client.put("/api/app-info", json=body, headers=_as("stranger")).status_code == 403
    resp = client.put("/api/app-info", json=body, headers=_as("owner"))
    assert resp.status_code == 200
    assert client.get("/api/app-info").json() == body

    resp = client.put("/api/app-info/version", json={"version": "1.2.1"}, headers=_as("owner"))
    assert resp.status_code == 200
    assert resp.json() == {**body, "version": "1.2.1"}
    assert client.put("/api/app-info/version", json={"version": "2"}, headers=_as("x")).status_code == 403
