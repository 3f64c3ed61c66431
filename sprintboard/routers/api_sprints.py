from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import get_request_context
from ..schemas.issue import IssueOut, MoveRequest
from ..schemas.sprint import SprintOut, SprintStatusUpdate
from ..services import issues, sprints
from ..services.authorization import RequestContext
from ..services.ordering import MoveInstruction

router = APIRouter(prefix="/api/v1/sprints", tags=["sprints"])


@router.patch("/{sprint_id}/status", response_model=SprintOut)
def api_update_sprint_status(
    sprint_id: int,
    payload: SprintStatusUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return sprints.update_sprint_status(db, ctx, sprint_id, payload.status)


@router.get("/{sprint_id}/issues", response_model=list[IssueOut])
def api_sprint_issues(sprint_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return issues.get_issues_for_sprint(db, ctx, sprint_id)


@router.post("/{sprint_id}/board/move", response_model=list[IssueOut])
def api_move_issue(
    sprint_id: int,
    payload: MoveRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    move = MoveInstruction(**payload.model_dump())
    return issues.move_issue(db, ctx, sprint_id, move)
