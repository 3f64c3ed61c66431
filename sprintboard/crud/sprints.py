"""CRUD helpers for sprints."""

from __future__ import annotations

from sqlalchemy import desc, select
from sqlalchemy.orm import Session, selectinload

from ..core.statuses import SPRINT_STATUS_PLANNED
from ..models.sprint import Sprint
from .common import format_instant, parse_instant, utcnow


def list_sprints(db: Session, project_id: int) -> list[Sprint]:
    stmt = select(Sprint).where(Sprint.project_id == project_id).order_by(desc(Sprint.created_at), desc(Sprint.id))
    return list(db.execute(stmt).scalars().all())


def get_sprint(db: Session, sprint_id: int) -> Sprint | None:
    stmt = select(Sprint).options(selectinload(Sprint.project)).where(Sprint.id == sprint_id)
    return db.execute(stmt).scalars().first()


def create_sprint(db: Session, project_id: int, payload: dict) -> Sprint:
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("Sprint name is required")
    if not payload.get("start_date") or not payload.get("end_date"):
        raise ValueError("Start and end dates are required")
    start = parse_instant(payload.get("start_date"))
    end = parse_instant(payload.get("end_date"))
    if start is None or end is None:
        raise ValueError("Start and end dates must be ISO-8601 dates")
    if end < start:
        raise ValueError("end_date must not be before start_date")
    now = utcnow()
    sprint = Sprint(
        name=name,
        start_date=format_instant(start),
        end_date=format_instant(end),
        status=SPRINT_STATUS_PLANNED,
        project_id=project_id,
        created_at=now,
        updated_at=now,
    )
    db.add(sprint)
    db.commit()
    db.refresh(sprint)
    return sprint


def set_sprint_status(db: Session, sprint: Sprint, status: str) -> Sprint:
    sprint.status = status
    sprint.updated_at = utcnow()
    db.commit()
    db.refresh(sprint)
    return sprint
