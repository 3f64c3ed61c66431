"""Guarded sprint operations and the sprint status state machine."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..core.errors import BoardReadOnly, InvalidSprintTransition, NotFound, ValidationError
from ..core.statuses import (
    SPRINT_STATUS_ACTIVE,
    SPRINT_STATUS_CHOICES,
    SPRINT_STATUS_COMPLETED,
    SPRINT_STATUS_PLANNED,
    normalize_choice,
)
from ..crud import sprints as crud
from ..crud.common import parse_instant
from ..models.sprint import Sprint
from .authorization import RequestContext, authorize, require_same_organization
from .projects import load_project

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        (SPRINT_STATUS_PLANNED, SPRINT_STATUS_ACTIVE),
        (SPRINT_STATUS_ACTIVE, SPRINT_STATUS_COMPLETED),
    }
)


def validate_transition(sprint: Sprint, new_status: str, *, now: datetime | None = None) -> None:
    """Raise :class:`InvalidSprintTransition` unless ``sprint`` may move to ``new_status``."""

    if (sprint.status, new_status) not in VALID_TRANSITIONS:
        if new_status == SPRINT_STATUS_COMPLETED:
            raise InvalidSprintTransition("Can only complete an active sprint")
        raise InvalidSprintTransition(f"Cannot move sprint from {sprint.status} to {new_status}")
    if new_status == SPRINT_STATUS_ACTIVE:
        current = now or datetime.now(tz=timezone.utc)
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        start = parse_instant(sprint.start_date)
        end = parse_instant(sprint.end_date)
        if start is None or end is None or current < start or current > end:
            raise InvalidSprintTransition("Cannot start sprint outside of its date range")


def ensure_board_editable(sprint: Sprint) -> None:
    if sprint.status == SPRINT_STATUS_PLANNED:
        raise BoardReadOnly("Start the sprint to update board")
    if sprint.status == SPRINT_STATUS_COMPLETED:
        raise BoardReadOnly("Cannot update board after sprint end")


def load_sprint(db: Session, sprint_id: int, org_id: str) -> Sprint:
    sprint = crud.get_sprint(db, sprint_id)
    if sprint is None:
        raise NotFound.for_resource("Sprint")
    require_same_organization(sprint.project.organization_id, org_id, "Sprint")
    return sprint


def list_sprints(db: Session, ctx: RequestContext, project_id: int) -> list[Sprint]:
    caller = authorize(db, ctx)
    project = load_project(db, project_id, caller.org_id)
    return crud.list_sprints(db, project.id)


def create_sprint(db: Session, ctx: RequestContext, project_id: int, payload: dict) -> Sprint:
    caller = authorize(db, ctx)
    project = load_project(db, project_id, caller.org_id)
    try:
        sprint = crud.create_sprint(db, project.id, payload)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    logger.info("sprint.created", extra={"extra_data": {"sprint_id": sprint.id, "project_id": project.id}})
    return sprint


def update_sprint_status(
    db: Session,
    ctx: RequestContext,
    sprint_id: int,
    new_status: str,
    *,
    now: datetime | None = None,
) -> Sprint:
    caller = authorize(db, ctx, elevated=True)
    status = normalize_choice(new_status, SPRINT_STATUS_CHOICES)
    if status is None:
        raise ValidationError(f"status must be one of {', '.join(SPRINT_STATUS_CHOICES)}")
    sprint = load_sprint(db, sprint_id, caller.org_id)
    validate_transition(sprint, status, now=now)
    previous = sprint.status
    sprint = crud.set_sprint_status(db, sprint, status)
    logger.info(
        "sprint.status.updated",
        extra={"extra_data": {"sprint_id": sprint.id, "from": previous, "to": status}},
    )
    return sprint
