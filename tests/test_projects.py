"""Tests for organization-scoped projects."""

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")

from sprintboard.core.errors import (
    AccessDenied,
    Conflict,
    CrossOrganizationAccess,
    NoOrganizationSelected,
    NotFound,
    Unauthorized,
)
from sprintboard.crud.organizations import create_organization, set_membership
from sprintboard.crud.users import get_user_by_external_id
from sprintboard.db.session import Base
from sprintboard.models.issue import Issue
from sprintboard.models.sprint import Sprint
from sprintboard.services import issues, organizations, projects, sprints
from sprintboard.services.authorization import RequestContext
from sprintboard.services.identity import LocalIdentityProvider, UserIdentity

# Ensure models are registered so metadata tables are created
from sprintboard.models import organization as organization_model  # noqa: F401
from sprintboard.models import project as project_model  # noqa: F401
from sprintboard.models import user as user_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        create_organization(session, {"id": "org_acme", "name": "Acme", "slug": "acme"})
        create_organization(session, {"id": "org_other", "name": "Other", "slug": "other"})
        set_membership(session, "org_acme", "owner", "org:admin")
        set_membership(session, "org_acme", "dev", "org:member")
        set_membership(session, "org_other", "stranger", "org:admin")
        yield session
    finally:
        session.close()


def _ctx(db, user_id, org_id="org_acme", **identity):
    principal = UserIdentity(id=user_id, **identity) if user_id else None
    return RequestContext(identity=LocalIdentityProvider(db, principal), org_id=org_id)


def test_admin_creates_project_with_normalized_key(db_session):
    project = projects.create_project(
        db_session, _ctx(db_session, "owner"), {"name": "Web app", "key": " web ", "description": "Site"}
    )

    assert project.key == "WEB"
    assert project.organization_id == "org_acme"
    assert [p.id for p in projects.list_projects(db_session, _ctx(db_session, "dev"))] == [project.id]


def test_member_cannot_create_project(db_session):
    with pytest.raises(AccessDenied):
        projects.create_project(db_session, _ctx(db_session, "dev"), {"name": "Nope", "key": "NOPE"})


def test_duplicate_key_is_rejected_per_organization(db_session):
    projects.create_project(db_session, _ctx(db_session, "owner"), {"name": "Web", "key": "WEB"})

    with pytest.raises(Conflict):
        projects.create_project(db_session, _ctx(db_session, "owner"), {"name": "Web again", "key": "web"})

    # the same key is free in another organization
    other = projects.create_project(
        db_session, _ctx(db_session, "stranger", org_id="org_other"), {"name": "Web", "key": "WEB"}
    )
    assert other.organization_id == "org_other"


def test_gate_order(db_session):
    with pytest.raises(Unauthorized):
        projects.list_projects(db_session, _ctx(db_session, None))
    with pytest.raises(NoOrganizationSelected):
        projects.list_projects(db_session, _ctx(db_session, "dev", org_id=" "))
    with pytest.raises(AccessDenied):
        projects.list_projects(db_session, _ctx(db_session, "dev", org_id="org_other"))


def test_other_organization_project_is_reported_missing(db_session):
    project = projects.create_project(db_session, _ctx(db_session, "owner"), {"name": "Web", "key": "WEB"})

    with pytest.raises(CrossOrganizationAccess) as excinfo:
        projects.get_project(db_session, _ctx(db_session, "stranger", org_id="org_other"), project.id)
    assert isinstance(excinfo.value, NotFound)
    assert excinfo.value.code == "not_found"
    assert str(excinfo.value) == "Project not found"


def test_delete_project_cascades_to_sprints_and_issues(db_session):
    owner = _ctx(db_session, "owner")
    project = projects.create_project(db_session, owner, {"name": "Web", "key": "WEB"})
    sprint = sprints.create_sprint(
        db_session, owner, project.id, {"name": "S1", "start_date": "2024-05-01", "end_date": "2024-05-14"}
    )
    issues.create_issue(db_session, owner, project.id, {"title": "On board", "sprint_id": sprint.id})
    issues.create_issue(db_session, owner, project.id, {"title": "Backlog"})

    with pytest.raises(AccessDenied):
        projects.delete_project(db_session, _ctx(db_session, "dev"), project.id)

    projects.delete_project(db_session, owner, project.id)

    assert db_session.execute(select(func.count()).select_from(Sprint)).scalar() == 0
    assert db_session.execute(select(func.count()).select_from(Issue)).scalar() == 0
    with pytest.raises(NotFound):
        projects.get_project(db_session, owner, project.id)


def test_first_call_creates_local_user(db_session):
    projects.list_projects(db_session, _ctx(db_session, "dev", name="Dev Eloper", email="dev@example.com"))

    user = get_user_by_external_id(db_session, "dev")
    assert user.name == "Dev Eloper"
    assert user.email == "dev@example.com"


def test_organization_lookup_requires_membership(db_session):
    found = organizations.get_organization(db_session, _ctx(db_session, "dev"), "acme")
    assert found.id == "org_acme"

    assert organizations.get_organization(db_session, _ctx(db_session, "dev"), "other") is None
    assert organizations.get_organization(db_session, _ctx(db_session, "dev"), "missing") is None


def test_organization_users_only_lists_members_seen_locally(db_session):
    projects.list_projects(db_session, _ctx(db_session, "owner", name="Owner"))
    projects.list_projects(db_session, _ctx(db_session, "stranger", org_id="org_other", name="Stranger"))

    users = organizations.get_organization_users(db_session, _ctx(db_session, "dev", name="Dev"))

    assert sorted(u.external_id for u in users) == ["dev", "owner"]
