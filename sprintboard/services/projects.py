"""Guarded project operations."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import Conflict, NotFound, ValidationError
from ..crud import projects as crud
from ..models.project import Project
from .authorization import RequestContext, authorize, require_same_organization

logger = logging.getLogger(__name__)


def load_project(db: Session, project_id: int, org_id: str) -> Project:
    """Fetch a project owned by ``org_id``; anything else looks missing."""

    project = crud.get_project(db, project_id)
    if project is None:
        raise NotFound.for_resource("Project")
    require_same_organization(project.organization_id, org_id, "Project")
    return project


def list_projects(db: Session, ctx: RequestContext) -> list[Project]:
    caller = authorize(db, ctx)
    return crud.list_projects(db, caller.org_id)


def get_project(db: Session, ctx: RequestContext, project_id: int) -> Project:
    caller = authorize(db, ctx)
    return load_project(db, project_id, caller.org_id)


def create_project(db: Session, ctx: RequestContext, payload: dict) -> Project:
    caller = authorize(db, ctx, elevated=True)
    key = crud.normalize_key(payload.get("key"))
    if key and crud.get_project_by_key(db, caller.org_id, key):
        raise Conflict(f'Project with key "{key}" already exists for this organization')
    try:
        project = crud.create_project(db, caller.org_id, payload)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    except IntegrityError as exc:
        db.rollback()
        raise Conflict(f'A project with key "{key}" already exists for this organization') from exc
    logger.info(
        "project.created",
        extra={"extra_data": {"project_id": project.id, "org_id": caller.org_id, "key": project.key}},
    )
    return project


def delete_project(db: Session, ctx: RequestContext, project_id: int) -> None:
    caller = authorize(db, ctx, elevated=True)
    project = load_project(db, project_id, caller.org_id)
    crud.delete_project(db, project)
    logger.info("project.deleted", extra={"extra_data": {"project_id": project_id, "org_id": caller.org_id}})
