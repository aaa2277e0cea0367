from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from performance_track.server.app import create_app

EMPLOYEE = {"X-User-Id": "10", "X-User-Role": "EMPLOYEE"}
OTHER_EMPLOYEE = {"X-User-Id": "11", "X-User-Role": "EMPLOYEE"}
MANAGER = {"X-User-Id": "20", "X-User-Role": "MANAGER"}
ADMIN = {"X-User-Id": "1", "X-User-Role": "ADMIN"}

GOAL_BODY = {
    "title": "Automate the release checklist",
    "description": "Replace the manual release steps with a pipeline",
    "category": "TECHNICAL",
    "priority": "HIGH",
    "startDate": "2026-01-01",
    "endDate": "2026-06-30",
    "managerId": 20,
}


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("PT_STATE_PATH", str(tmp_path / "state"))
    monkeypatch.setenv("PT_DISPATCH_WORKERS", "0")
    monkeypatch.setenv("PT_REMINDER_SWEEP_ENABLED", "false")
    return TestClient(create_app())


def _create(client: TestClient) -> int:
    resp = client.post("/api/v1/goals", json=GOAL_BODY, headers=EMPLOYEE)
    assert resp.status_code == 201
    return resp.json()["data"]["goal_id"]


def test_health(client: TestClient) -> None:
    assert client.get("/api/v1/health").json() == {"status": "ok"}


def test_missing_identity_is_unauthorized(client: TestClient) -> None:
    resp = client.get("/api/v1/goals")
    assert resp.status_code == 401
    body = resp.json()
    assert body["status"] == "error"
    assert body["code"] == "HTTP_401"


def test_full_lifecycle(client: TestClient) -> None:
    goal_id = _create(client)

    resp = client.put(f"/api/v1/goals/{goal_id}/approve", headers=MANAGER)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "IN_PROGRESS"

    for note in ("Wrote the pipeline", "Ran it on staging"):
        resp = client.post(
            f"/api/v1/goals/{goal_id}/progress", json={"note": note}, headers=EMPLOYEE
        )
        assert resp.status_code == 200

    progress = client.get(f"/api/v1/goals/{goal_id}/progress", headers=MANAGER).json()["data"]
    assert [e["note"] for e in progress["entries"]] == ["Wrote the pipeline", "Ran it on staging"]
    assert progress["text"].splitlines()[1].endswith(": Ran it on staging")

    resp = client.post(
        f"/api/v1/goals/{goal_id}/submit-completion",
        json={"evidenceLink": "https://ci.example.com/run/1", "linkDescription": "CI run"},
        headers=EMPLOYEE,
    )
    assert resp.json()["data"]["evidence_verification_status"] == "PENDING"

    resp = client.post(f"/api/v1/goals/{goal_id}/approve-completion", headers=MANAGER)
    assert resp.status_code == 409
    assert resp.json()["code"] == "INVALID_TRANSITION"

    resp = client.put(
        f"/api/v1/goals/{goal_id}/evidence/verify",
        json={"status": "VERIFIED", "notes": "Looks good"},
        headers=MANAGER,
    )
    assert resp.json()["data"]["evidence_verification_status"] == "VERIFIED"

    resp = client.post(
        f"/api/v1/goals/{goal_id}/approve-completion",
        json={"managerComments": "Nice"},
        headers=MANAGER,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "COMPLETED"

    resp = client.post(
        f"/api/v1/goals/{goal_id}/progress", json={"note": "after"}, headers=EMPLOYEE
    )
    assert resp.status_code == 409


def test_error_mapping(client: TestClient) -> None:
    goal_id = _create(client)

    resp = client.put(f"/api/v1/goals/{goal_id}/approve", headers=EMPLOYEE)
    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"

    resp = client.get("/api/v1/goals/999", headers=ADMIN)
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"

    resp = client.get(f"/api/v1/goals/{goal_id}", headers=OTHER_EMPLOYEE)
    assert resp.status_code == 403

    client.put(f"/api/v1/goals/{goal_id}/approve", headers=MANAGER)
    resp = client.post(
        f"/api/v1/goals/{goal_id}/submit-completion",
        json={"linkDescription": "no link"},
        headers=EMPLOYEE,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_FAILED"


def test_invalid_body_uses_envelope(client: TestClient) -> None:
    body = {k: v for k, v in GOAL_BODY.items() if k != "managerId"}
    resp = client.post("/api/v1/goals", json=body, headers=EMPLOYEE)

    assert resp.status_code == 400
    assert resp.json()["status"] == "error"
    assert resp.json()["code"] == "VALIDATION_FAILED"


def test_change_request_and_update(client: TestClient) -> None:
    goal_id = _create(client)

    resp = client.put(
        f"/api/v1/goals/{goal_id}/request-changes",
        json={"comments": "Add a target date per step"},
        headers=MANAGER,
    )
    assert resp.json()["data"]["request_changes"] is True

    updated = {**GOAL_BODY, "title": "Automate the release checklist by Q2"}
    updated.pop("managerId")
    resp = client.put(f"/api/v1/goals/{goal_id}", json=updated, headers=EMPLOYEE)
    assert resp.status_code == 200
    assert resp.json()["data"]["title"] == "Automate the release checklist by Q2"
    assert resp.json()["data"]["request_changes"] is False


def test_delete_keeps_record(client: TestClient) -> None:
    goal_id = _create(client)

    assert client.delete(f"/api/v1/goals/{goal_id}", headers=MANAGER).status_code == 403
    assert client.delete(f"/api/v1/goals/{goal_id}", headers=EMPLOYEE).status_code == 200

    data = client.get(f"/api/v1/goals/{goal_id}", headers=EMPLOYEE).json()["data"]
    assert data["status"] == "REJECTED"
    assert data["deleted"] is True


def test_list_goals_by_role(client: TestClient) -> None:
    goal_id = _create(client)

    mine = client.get("/api/v1/goals", headers=EMPLOYEE).json()["data"]
    assert [g["goal_id"] for g in mine] == [goal_id]
    assert client.get("/api/v1/goals", headers=OTHER_EMPLOYEE).json()["data"] == []

    team = client.get("/api/v1/goals", params={"userId": 10}, headers=MANAGER).json()["data"]
    assert [g["goal_id"] for g in team] == [goal_id]

    by_manager = client.get("/api/v1/goals", params={"mgrId": 20}, headers=ADMIN).json()["data"]
    assert [g["goal_id"] for g in by_manager] == [goal_id]


def test_create_succeeds_after_app_restart_with_worker_pool(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("PT_STATE_PATH", str(tmp_path / "state"))
    monkeypatch.setenv("PT_DISPATCH_WORKERS", "2")
    monkeypatch.setenv("PT_REMINDER_SWEEP_ENABLED", "false")
    app = create_app()

    # Each lifespan exit shuts the worker pool down; the second run reuses it.
    for _ in range(2):
        with TestClient(app) as client:
            _create(client)

    with TestClient(app) as client:
        goals = client.get("/api/v1/goals", headers=EMPLOYEE).json()["data"]
        assert len(goals) == 2
        inbox = client.get("/api/v1/notifications", headers=MANAGER).json()["data"]
        assert [n["type"] for n in inbox] == ["GOAL_SUBMITTED", "GOAL_SUBMITTED"]
