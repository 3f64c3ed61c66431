"""End-to-end tests through the HTTP API and the board client."""

import logging
import os
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")

from sprintboard.main import app
from sprintboard.client import SprintBoardClient
from sprintboard.core.config import settings
from sprintboard.core.errors import BoardReadOnly, PersistenceFailure
from sprintboard.core.security import issue_token_pair
from sprintboard.crud.organizations import create_organization, set_membership
from sprintboard.db.session import Base, get_db
from sprintboard.services.ordering import IssueSlot, MoveInstruction

API_KEY = "test-service-key"


@pytest.fixture()
def client(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    seed = TestingSessionLocal()
    try:
        create_organization(seed, {"id": "org_acme", "name": "Acme", "slug": "acme"})
        create_organization(seed, {"id": "org_other", "name": "Other", "slug": "other"})
        set_membership(seed, "org_acme", "owner", "admin")
        set_membership(seed, "org_acme", "dev", "member")
        set_membership(seed, "org_acme", "qa", "member")
        set_membership(seed, "org_other", "stranger", "admin")
    finally:
        seed.close()

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(settings, "API_KEY", API_KEY)
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _headers(user_id, org_id="org_acme"):
    token = issue_token_pair(user_id, name=user_id.title()).access_token
    return {"Authorization": f"Bearer {token}", "X-Organization-ID": org_id}


def _active_sprint(client):
    owner = _headers("owner")
    project = client.post("/api/v1/projects", json={"name": "Web", "key": "WEB"}, headers=owner)
    assert project.status_code == 201
    project_id = project.json()["id"]

    today = date.today()
    sprint = client.post(
        f"/api/v1/projects/{project_id}/sprints",
        json={
            "name": "Sprint 1",
            "start_date": (today - timedelta(days=1)).isoformat(),
            "end_date": (today + timedelta(days=13)).isoformat(),
        },
        headers=owner,
    )
    assert sprint.status_code == 201
    sprint_id = sprint.json()["id"]
    started = client.patch(f"/api/v1/sprints/{sprint_id}/status", json={"status": "ACTIVE"}, headers=owner)
    assert started.status_code == 200
    assert started.json()["status"] == "ACTIVE"
    return project_id, sprint_id


def _add_issue(client, project_id, sprint_id, title, status="TODO", user="dev"):
    response = client.post(
        f"/api/v1/projects/{project_id}/issues",
        json={"title": title, "status": status, "sprint_id": sprint_id},
        headers=_headers(user),
    )
    assert response.status_code == 201
    return response.json()


def test_token_exchange(client):
    response = client.post("/api/v1/auth/token", json={"apiKey": API_KEY, "userId": "dev", "name": "Dev"})
    assert response.status_code == 200
    tokens = response.json()
    assert tokens["token_type"] == "bearer"

    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200

    rejected = client.post("/api/v1/auth/token", json={"apiKey": "wrong", "userId": "dev"})
    assert rejected.status_code == 401
    assert rejected.json()["code"] == "http_error"


def test_health_and_security_headers(client):
    assert client.get("/health").json() == {"ok": True}
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "http_request" in metrics.text

    response = client.get("/api/v1/projects", headers=_headers("dev"))
    assert response.status_code == 200
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Request-ID"]


def test_request_log_carries_organization(client, caplog):
    with caplog.at_level(logging.INFO, logger="sprintboard.request"):
        client.get("/api/v1/projects", headers=_headers("dev"))

    record = next(r for r in caplog.records if r.getMessage() == "request.completed")
    assert record.levelno == logging.INFO
    assert record.extra_data["org_id"] == "org_acme"
    assert record.extra_data["status"] == 200


def test_gate_errors_use_envelope(client):
    anonymous = client.get("/api/v1/projects", headers={"X-Organization-ID": "org_acme"})
    assert anonymous.status_code == 401
    assert anonymous.json()["code"] == "unauthorized"

    no_org = client.get("/api/v1/projects", headers={"Authorization": _headers("dev")["Authorization"]})
    assert no_org.status_code == 400
    assert no_org.json()["code"] == "no_organization_selected"

    member_only = client.post("/api/v1/projects", json={"name": "X", "key": "X"}, headers=_headers("dev"))
    assert member_only.status_code == 403
    assert member_only.json()["code"] == "access_denied"


def test_cross_organization_access_matches_missing_resource(client):
    project_id, _ = _active_sprint(client)
    stranger = _headers("stranger", org_id="org_other")

    cross = client.get(f"/api/v1/projects/{project_id}", headers=stranger)
    missing = client.get("/api/v1/projects/9999", headers=stranger)

    assert cross.status_code == missing.status_code == 404
    assert cross.json() == missing.json() == {"code": "not_found", "message": "Project not found"}


def test_reorder_does_not_reveal_issues_of_other_organizations(client):
    project_id, sprint_id = _active_sprint(client)
    issue = _add_issue(client, project_id, sprint_id, "Private")
    stranger = _headers("stranger", org_id="org_other")

    def reorder(issue_id):
        return client.post(
            "/api/v1/issues/reorder",
            json={"issues": [{"id": issue_id, "status": "DONE", "order": 0}]},
            headers=stranger,
        )

    foreign = reorder(issue["id"])
    unknown = reorder(999999)

    assert foreign.status_code == unknown.status_code == 409
    assert foreign.json()["code"] == unknown.json()["code"] == "persistence_failure"
    assert foreign.json()["message"] == unknown.json()["message"]
    stored = client.get(f"/api/v1/sprints/{sprint_id}/issues", headers=_headers("dev")).json()
    assert [(i["id"], i["status"]) for i in stored] == [(issue["id"], "TODO")]


def test_board_move_round_trip_through_client(client):
    project_id, sprint_id = _active_sprint(client)
    a = _add_issue(client, project_id, sprint_id, "A")
    b = _add_issue(client, project_id, sprint_id, "B")
    c = _add_issue(client, project_id, sprint_id, "C", status="IN_PROGRESS")
    token = issue_token_pair("dev").access_token

    with SprintBoardClient(token=token, org_id="org_acme", http=client) as api:
        sprint = api.get_sprint(project_id, sprint_id)
        board = api.board(sprint)
        assert board.drag_enabled

        assert board.move(MoveInstruction("TODO", 0, "IN_PROGRESS", 0)) is True
        shown = [(i.id, i.status, i.order) for i in board.issues]
        stored = [(i.id, i.status, i.order) for i in api.get_sprint_issues(sprint_id)]

    expected = [(b["id"], "TODO", 0), (a["id"], "IN_PROGRESS", 0), (c["id"], "IN_PROGRESS", 1)]
    assert shown == expected
    assert stored == expected


def test_server_side_move_endpoint(client):
    project_id, sprint_id = _active_sprint(client)
    a = _add_issue(client, project_id, sprint_id, "A")
    b = _add_issue(client, project_id, sprint_id, "B")

    response = client.post(
        f"/api/v1/sprints/{sprint_id}/board/move",
        json={"source_status": "TODO", "source_index": 1, "destination_status": "TODO", "destination_index": 0},
        headers=_headers("dev"),
    )

    assert response.status_code == 200
    assert [(i["id"], i["order"]) for i in response.json()] == [(b["id"], 0), (a["id"], 1)]


def test_reorder_with_deleted_issue_is_rejected_and_board_recovers(client):
    project_id, sprint_id = _active_sprint(client)
    a = _add_issue(client, project_id, sprint_id, "A")
    b = _add_issue(client, project_id, sprint_id, "B")
    token = issue_token_pair("dev").access_token

    with SprintBoardClient(token=token, org_id="org_acme", http=client) as api:
        board = api.board(api.get_sprint(project_id, sprint_id))
        # B is deleted by its reporter after the board was loaded
        deleted = client.delete(f"/api/v1/issues/{b['id']}", headers=_headers("dev"))
        assert deleted.status_code == 200

        with pytest.raises(PersistenceFailure) as excinfo:
            board.move(MoveInstruction("TODO", 1, "TODO", 0))

        assert excinfo.value.details == {"missing_ids": [b["id"]]}
        assert [(i.id, i.order) for i in board.issues] == [(a["id"], 0)]
        assert [(i.id, i.order) for i in api.get_sprint_issues(sprint_id)] == [(a["id"], 0)]

        with pytest.raises(PersistenceFailure):
            api.reorder([IssueSlot(a["id"], "DONE", 0), IssueSlot(b["id"], "DONE", 1)])
    assert client.get(f"/api/v1/sprints/{sprint_id}/issues", headers=_headers("dev")).json()[0]["status"] == "TODO"


def test_delete_by_other_member_is_denied(client):
    project_id, sprint_id = _active_sprint(client)
    issue = _add_issue(client, project_id, sprint_id, "Mine", user="dev")
    denied = client.delete(f"/api/v1/issues/{issue['id']}", headers=_headers("qa"))
    assert denied.status_code == 403
    assert denied.json()["code"] == "access_denied"

    remaining = client.get(f"/api/v1/sprints/{sprint_id}/issues", headers=_headers("dev")).json()
    assert [i["id"] for i in remaining] == [issue["id"]]


def test_planned_board_is_read_only(client):
    owner = _headers("owner")
    project_id = client.post("/api/v1/projects", json={"name": "Web", "key": "WEB"}, headers=owner).json()["id"]
    sprint = client.post(
        f"/api/v1/projects/{project_id}/sprints",
        json={"name": "Later", "start_date": "2099-01-01", "end_date": "2099-01-14"},
        headers=owner,
    ).json()
    token = issue_token_pair("dev").access_token

    with SprintBoardClient(token=token, org_id="org_acme", http=client) as api:
        with pytest.raises(BoardReadOnly):
            api.move(sprint["id"], MoveInstruction("TODO", 0, "DONE", 0))

    early = client.patch(f"/api/v1/sprints/{sprint['id']}/status", json={"status": "ACTIVE"}, headers=owner)
    assert early.status_code == 409
    assert early.json()["code"] == "invalid_sprint_transition"


def test_request_validation_uses_envelope(client):
    response = client.post(
        "/api/v1/issues/reorder",
        json={"issues": [{"id": 1, "status": "BACKLOG", "order": 0}]},
        headers=_headers("dev"),
    )
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["details"]["errors"]


def test_organization_endpoints(client):
    _active_sprint(client)

    org = client.get("/api/v1/organizations/acme", headers=_headers("dev"))
    assert org.status_code == 200
    assert org.json() == {"id": "org_acme", "name": "Acme", "slug": "acme"}

    assert client.get("/api/v1/organizations/other", headers=_headers("dev")).status_code == 404

    users = client.get("/api/v1/organizations/current/users", headers=_headers("dev")).json()
    assert sorted(u["external_id"] for u in users) == ["dev", "owner"]
