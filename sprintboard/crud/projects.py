"""CRUD helpers for projects."""

from __future__ import annotations

from sqlalchemy import desc, select
from sqlalchemy.orm import Session, selectinload

from ..models.project import Project
from .common import utcnow


def normalize_key(value: str | None) -> str:
    return (value or "").strip().upper()


def list_projects(db: Session, org_id: str, limit: int = 200, offset: int = 0) -> list[Project]:
    stmt = (
        select(Project)
        .where(Project.organization_id == org_id)
        .order_by(desc(Project.created_at), desc(Project.id))
        .limit(limit)
        .offset(offset)
    )
    return list(db.execute(stmt).scalars().all())


def get_project(db: Session, project_id: int) -> Project | None:
    stmt = select(Project).options(selectinload(Project.sprints)).where(Project.id == project_id)
    return db.execute(stmt).scalars().first()


def get_project_by_key(db: Session, org_id: str, key: str) -> Project | None:
    stmt = select(Project).where(Project.organization_id == org_id, Project.key == normalize_key(key))
    return db.execute(stmt).scalars().first()


def create_project(db: Session, org_id: str, payload: dict) -> Project:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    key = normalize_key(payload.get("key"))
    if not key:
        raise ValueError("key is required")
    now = utcnow()
    project = Project(
        name=name,
        key=key,
        description=(payload.get("description") or None),
        organization_id=org_id,
        created_at=now,
        updated_at=now,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, project: Project) -> None:
    # Sprints and issues follow through the relationship cascade.
    db.delete(project)
    db.commit()
