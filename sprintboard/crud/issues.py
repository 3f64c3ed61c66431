"""CRUD helpers for issues, including the atomic board reorder."""

from __future__ import annotations

import logging
from typing import Iterable, Protocol

from sqlalchemy import case, desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.errors import PersistenceFailure
from ..core.statuses import (
    ISSUE_PRIORITY_CHOICES,
    ISSUE_PRIORITY_MEDIUM,
    ISSUE_STATUS_CHOICES,
    ISSUE_STATUS_TODO,
    normalize_choice,
)
from ..models.issue import Issue
from ..models.project import Project
from .common import utcnow

logger = logging.getLogger(__name__)

STATUS_RANK = case(
    {status: rank for rank, status in enumerate(ISSUE_STATUS_CHOICES)},
    value=Issue.status,
    else_=len(ISSUE_STATUS_CHOICES),
)


class OrderAssignment(Protocol):
    id: int
    status: str
    order: int


def _with_people(stmt):
    return stmt.options(selectinload(Issue.assignee), selectinload(Issue.reporter))


def get_issue(db: Session, issue_id: int) -> Issue | None:
    stmt = _with_people(select(Issue)).options(selectinload(Issue.project)).where(Issue.id == issue_id)
    return db.execute(stmt).scalars().first()


def list_sprint_issues(db: Session, sprint_id: int) -> list[Issue]:
    """Issues of a sprint in board order: column left to right, then ``order``."""

    stmt = _with_people(select(Issue)).where(Issue.sprint_id == sprint_id).order_by(STATUS_RANK, Issue.order, Issue.id)
    return list(db.execute(stmt).scalars().all())


def list_user_issues(db: Session, user_id: int, org_id: str) -> list[Issue]:
    stmt = (
        _with_people(select(Issue))
        .options(selectinload(Issue.project))
        .join(Project, Issue.project_id == Project.id)
        .where(
            Project.organization_id == org_id,
            or_(Issue.assignee_id == user_id, Issue.reporter_id == user_id),
        )
        .order_by(desc(func.coalesce(Issue.updated_at, Issue.created_at)), desc(Issue.id))
    )
    return list(db.execute(stmt).scalars().all())


def next_order(db: Session, project_id: int, status: str) -> int:
    """One past the highest ``order`` in the project's ``status`` column, or 0."""

    stmt = select(func.max(Issue.order)).where(Issue.project_id == project_id, Issue.status == status)
    current = db.execute(stmt).scalar()
    return 0 if current is None else current + 1


def create_issue(db: Session, project_id: int, reporter_id: int, payload: dict) -> Issue:
    title = (payload.get("title") or "").strip()
    if not title:
        raise ValueError("title is required")
    status = normalize_choice(payload.get("status"), ISSUE_STATUS_CHOICES, default=ISSUE_STATUS_TODO)
    if status is None:
        raise ValueError(f"status must be one of {', '.join(ISSUE_STATUS_CHOICES)}")
    priority = normalize_choice(payload.get("priority"), ISSUE_PRIORITY_CHOICES, default=ISSUE_PRIORITY_MEDIUM)
    if priority is None:
        raise ValueError(f"priority must be one of {', '.join(ISSUE_PRIORITY_CHOICES)}")
    now = utcnow()
    issue = Issue(
        title=title,
        description=(payload.get("description") or None),
        status=status,
        priority=priority,
        order=next_order(db, project_id, status),
        project_id=project_id,
        sprint_id=payload.get("sprint_id"),
        assignee_id=payload.get("assignee_id") or None,
        reporter_id=reporter_id,
        created_at=now,
        updated_at=now,
    )
    db.add(issue)
    db.commit()
    return get_issue(db, issue.id) or issue


def update_issue(db: Session, issue: Issue, payload: dict) -> Issue:
    """Apply status, priority and assignee changes.

    A status change appends the issue to the end of its new column.
    """

    if payload.get("status") is not None:
        status = normalize_choice(payload.get("status"), ISSUE_STATUS_CHOICES)
        if status is None:
            raise ValueError(f"status must be one of {', '.join(ISSUE_STATUS_CHOICES)}")
        if status != issue.status:
            issue.order = next_order(db, issue.project_id, status)
            issue.status = status
    if payload.get("priority") is not None:
        priority = normalize_choice(payload.get("priority"), ISSUE_PRIORITY_CHOICES)
        if priority is None:
            raise ValueError(f"priority must be one of {', '.join(ISSUE_PRIORITY_CHOICES)}")
        issue.priority = priority
    if "assignee_id" in payload:
        issue.assignee_id = payload.get("assignee_id") or None
    issue.updated_at = utcnow()
    db.commit()
    return get_issue(db, issue.id) or issue


def delete_issue(db: Session, issue: Issue) -> None:
    db.delete(issue)
    db.commit()


def stale_batch(missing: list[int]) -> PersistenceFailure:
    """The single error for batch ids the caller cannot write, whatever the reason."""

    logger.warning("issue.order.rejected", extra={"extra_data": {"missing_ids": missing}})
    return PersistenceFailure("Some issues no longer exist; reload the board", details={"missing_ids": missing})


def apply_issue_order(db: Session, assignments: Iterable[OrderAssignment]) -> int:
    """Write every ``(id, status, order)`` assignment in one transaction.

    Either all rows are updated or none are: a missing issue (for example
    deleted by another user since the board was loaded) rolls the whole
    batch back and raises :class:`PersistenceFailure`. Returns the number of
    rows written.
    """

    batch = list(assignments)
    if not batch:
        return 0
    wanted = {assignment.id for assignment in batch}
    try:
        rows = db.execute(select(Issue).where(Issue.id.in_(wanted))).scalars().all()
        found = {row.id: row for row in rows}
        missing = sorted(wanted - found.keys())
        if missing:
            db.rollback()
            raise stale_batch(missing)
        now = utcnow()
        for assignment in batch:
            row = found[assignment.id]
            if row.status != assignment.status or row.order != assignment.order:
                row.status = assignment.status
                row.order = assignment.order
                row.updated_at = now
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("issue.order.failed", exc_info=exc)
        raise PersistenceFailure("Error updating issue order") from exc
    return len(batch)
