"""Guarded issue operations, including board moves."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from ..core.errors import BoardReadOnly, NotFound, ValidationError
from ..core.statuses import ISSUE_STATUS_CHOICES
from ..crud import issues as crud
from ..crud.sprints import get_sprint
from ..crud.users import get_user
from ..models.issue import Issue
from .authorization import Caller, RequestContext, authorize, require_reporter_or_admin, require_same_organization
from .ordering import IssueSlot, MoveInstruction, apply_move, changed_slots
from .projects import load_project
from .sprints import ensure_board_editable, load_sprint

logger = logging.getLogger(__name__)


def load_issue(db: Session, issue_id: int, org_id: str) -> Issue:
    issue = crud.get_issue(db, issue_id)
    if issue is None:
        raise NotFound.for_resource("Issue")
    require_same_organization(issue.project.organization_id, org_id, "Issue")
    return issue


def _check_assignee(db: Session, ctx: RequestContext, caller: Caller, assignee_id: int | None) -> None:
    if not assignee_id:
        return
    assignee = get_user(db, assignee_id)
    if assignee is None or ctx.identity.get_member(assignee.external_id, caller.org_id) is None:
        raise ValidationError("assignee must be a member of this organization")


def get_issues_for_sprint(db: Session, ctx: RequestContext, sprint_id: int) -> list[Issue]:
    caller = authorize(db, ctx)
    sprint = load_sprint(db, sprint_id, caller.org_id)
    return crud.list_sprint_issues(db, sprint.id)


def get_user_issues(db: Session, ctx: RequestContext) -> list[Issue]:
    """Issues in the caller's organization they reported or are assigned to."""

    caller = authorize(db, ctx)
    return crud.list_user_issues(db, caller.user.id, caller.org_id)


def create_issue(db: Session, ctx: RequestContext, project_id: int, payload: dict) -> Issue:
    caller = authorize(db, ctx)
    project = load_project(db, project_id, caller.org_id)
    sprint_id = payload.get("sprint_id")
    if sprint_id is not None:
        sprint = get_sprint(db, sprint_id)
        if sprint is None or sprint.project_id != project.id:
            raise ValidationError("sprint_id must reference a sprint of the same project")
    _check_assignee(db, ctx, caller, payload.get("assignee_id"))
    try:
        issue = crud.create_issue(db, project.id, caller.user.id, payload)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    logger.info(
        "issue.created",
        extra={"extra_data": {"issue_id": issue.id, "project_id": project.id, "status": issue.status, "order": issue.order}},
    )
    return issue


def update_issue(db: Session, ctx: RequestContext, issue_id: int, payload: dict) -> Issue:
    caller = authorize(db, ctx)
    issue = load_issue(db, issue_id, caller.org_id)
    require_reporter_or_admin(caller, issue.reporter_id, "modify")
    if "assignee_id" in payload:
        _check_assignee(db, ctx, caller, payload.get("assignee_id"))
    try:
        updated = crud.update_issue(db, issue, payload)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    logger.info("issue.updated", extra={"extra_data": {"issue_id": updated.id, "fields": sorted(payload)}})
    return updated


def delete_issue(db: Session, ctx: RequestContext, issue_id: int) -> None:
    caller = authorize(db, ctx)
    issue = load_issue(db, issue_id, caller.org_id)
    require_reporter_or_admin(caller, issue.reporter_id, "delete")
    crud.delete_issue(db, issue)
    logger.info("issue.deleted", extra={"extra_data": {"issue_id": issue_id}})


def update_issue_order(db: Session, ctx: RequestContext, assignments: Iterable[IssueSlot]) -> int:
    """Persist a board reorder computed by the client.

    Every issue in the batch must belong to the caller's organization and to
    an active sprint. Ids owned by another organization are reported exactly
    like deleted ones, so the response does not reveal that they exist.
    """

    caller = authorize(db, ctx)
    batch = list(assignments)
    unwritable: list[int] = []
    for assignment in batch:
        if assignment.status not in ISSUE_STATUS_CHOICES:
            raise ValidationError(f"Unknown issue status: {assignment.status}")
        if assignment.order < 0:
            raise ValidationError("order must not be negative")
        issue = crud.get_issue(db, assignment.id)
        if issue is None or issue.project.organization_id != caller.org_id:
            unwritable.append(assignment.id)
            continue
        if issue.sprint is None:
            raise BoardReadOnly("Only issues on a sprint board can be reordered")
        ensure_board_editable(issue.sprint)
    if unwritable:
        raise crud.stale_batch(sorted(set(unwritable)))
    written = crud.apply_issue_order(db, batch)
    logger.info("issue.order.updated", extra={"extra_data": {"count": written}})
    return written


def move_issue(db: Session, ctx: RequestContext, sprint_id: int, move: MoveInstruction) -> list[Issue]:
    """Move one card on the server's copy of the board and persist the result.

    Returns the sprint's issues as stored after the commit.
    """

    caller = authorize(db, ctx)
    sprint = load_sprint(db, sprint_id, caller.org_id)
    ensure_board_editable(sprint)
    current = crud.list_sprint_issues(db, sprint.id)
    if move.is_noop:
        return current
    before = [IssueSlot.from_issue(issue) for issue in current]
    after = apply_move(before, move)
    changes = changed_slots(before, after)
    crud.apply_issue_order(db, changes)
    logger.info(
        "issue.moved",
        extra={
            "extra_data": {
                "sprint_id": sprint.id,
                "from": move.source_status,
                "to": move.destination_status,
                "changed": len(changes),
            }
        },
    )
    return crud.list_sprint_issues(db, sprint.id)
