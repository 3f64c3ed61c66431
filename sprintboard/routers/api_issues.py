from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import get_request_context
from ..schemas.issue import IssueOrderUpdate, IssueOut, IssueUpdate
from ..services import issues
from ..services.authorization import RequestContext
from ..services.ordering import IssueSlot

router = APIRouter(prefix="/api/v1/issues", tags=["issues"])


@router.post("/reorder")
def api_reorder_issues(
    payload: IssueOrderUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    slots = [IssueSlot(id=item.id, status=item.status, order=item.order) for item in payload.issues]
    written = issues.update_issue_order(db, ctx, slots)
    return {"success": True, "updated": written}


@router.patch("/{issue_id}", response_model=IssueOut)
def api_update_issue(
    issue_id: int,
    payload: IssueUpdate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return issues.update_issue(db, ctx, issue_id, payload.model_dump(exclude_unset=True))


@router.delete("/{issue_id}")
def api_delete_issue(issue_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    issues.delete_issue(db, ctx, issue_id)
    return {"status": "deleted"}
