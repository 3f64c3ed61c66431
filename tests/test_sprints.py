"""Tests for sprint creation and the PLANNED -> ACTIVE -> COMPLETED lifecycle."""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")

from sprintboard.core.errors import AccessDenied, InvalidSprintTransition, ValidationError
from sprintboard.crud.organizations import create_organization, set_membership
from sprintboard.db.session import Base
from sprintboard.services import projects, sprints
from sprintboard.services.authorization import RequestContext
from sprintboard.services.identity import LocalIdentityProvider, UserIdentity

# Ensure models are registered so metadata tables are created
from sprintboard.models import issue as issue_model  # noqa: F401
from sprintboard.models import organization as organization_model  # noqa: F401
from sprintboard.models import project as project_model  # noqa: F401
from sprintboard.models import sprint as sprint_model  # noqa: F401
from sprintboard.models import user as user_model  # noqa: F401


def _at(day):
    return datetime(2024, 5, day, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _ctx(db, user_id):
    return RequestContext(identity=LocalIdentityProvider(db, UserIdentity(id=user_id)), org_id="org_acme")


@pytest.fixture()
def sprint(db_session):
    create_organization(db_session, {"id": "org_acme", "name": "Acme", "slug": "acme"})
    set_membership(db_session, "org_acme", "lead", "admin")
    set_membership(db_session, "org_acme", "dev", "member")
    project = projects.create_project(db_session, _ctx(db_session, "lead"), {"name": "Web", "key": "WEB"})
    # Sprint creation only needs membership.
    return sprints.create_sprint(
        db_session,
        _ctx(db_session, "dev"),
        project.id,
        {"name": "Sprint 1", "start_date": "2024-05-01", "end_date": "2024-05-14"},
    )


def test_new_sprint_is_planned_with_utc_dates(sprint):
    assert sprint.status == "PLANNED"
    assert sprint.start_date == "2024-05-01T00:00:00Z"
    assert sprint.end_date == "2024-05-14T00:00:00Z"


def test_start_before_start_date_fails(db_session, sprint):
    with pytest.raises(InvalidSprintTransition):
        sprints.update_sprint_status(
            db_session, _ctx(db_session, "lead"), sprint.id, "ACTIVE", now=datetime(2024, 4, 30, 23, 0, tzinfo=timezone.utc)
        )
    assert sprint.status == "PLANNED"


def test_start_after_end_date_fails(db_session, sprint):
    with pytest.raises(InvalidSprintTransition):
        sprints.update_sprint_status(db_session, _ctx(db_session, "lead"), sprint.id, "ACTIVE", now=_at(20))


def test_full_lifecycle(db_session, sprint):
    lead = _ctx(db_session, "lead")

    active = sprints.update_sprint_status(db_session, lead, sprint.id, "ACTIVE", now=_at(3))
    assert active.status == "ACTIVE"

    completed = sprints.update_sprint_status(db_session, lead, sprint.id, "completed")
    assert completed.status == "COMPLETED"

    with pytest.raises(InvalidSprintTransition):
        sprints.update_sprint_status(db_session, lead, sprint.id, "ACTIVE", now=_at(3))


def test_planned_cannot_skip_to_completed(db_session, sprint):
    with pytest.raises(InvalidSprintTransition) as excinfo:
        sprints.update_sprint_status(db_session, _ctx(db_session, "lead"), sprint.id, "COMPLETED")
    assert str(excinfo.value) == "Can only complete an active sprint"


def test_transition_requires_admin(db_session, sprint):
    with pytest.raises(AccessDenied):
        sprints.update_sprint_status(db_session, _ctx(db_session, "dev"), sprint.id, "ACTIVE", now=_at(3))


def test_unknown_status_is_rejected(db_session, sprint):
    with pytest.raises(ValidationError):
        sprints.update_sprint_status(db_session, _ctx(db_session, "lead"), sprint.id, "ARCHIVED")


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "", "start_date": "2024-05-01", "end_date": "2024-05-14"},
        {"name": "No dates"},
        {"name": "Bad", "start_date": "May first", "end_date": "2024-05-14"},
        {"name": "Backwards", "start_date": "2024-05-14", "end_date": "2024-05-01"},
    ],
)
def test_invalid_sprint_payloads(db_session, sprint, payload):
    with pytest.raises(ValidationError):
        sprints.create_sprint(db_session, _ctx(db_session, "dev"), sprint.project_id, payload)
