from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import get_request_context
from ..schemas.issue import IssueCreate, IssueOut
from ..schemas.project import ProjectCreate, ProjectDetail, ProjectOut
from ..schemas.sprint import SprintCreate, SprintOut
from ..services import issues, projects, sprints
from ..services.authorization import RequestContext

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.get("", response_model=list[ProjectOut])
def api_list_projects(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return projects.list_projects(db, ctx)


@router.post("", response_model=ProjectOut, status_code=201)
def api_create_project(
    payload: ProjectCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return projects.create_project(db, ctx, payload.model_dump(exclude_unset=True))


@router.get("/{project_id}", response_model=ProjectDetail)
def api_get_project(project_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return projects.get_project(db, ctx, project_id)


@router.delete("/{project_id}")
def api_delete_project(project_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    projects.delete_project(db, ctx, project_id)
    return {"status": "deleted"}


@router.get("/{project_id}/sprints", response_model=list[SprintOut])
def api_list_sprints(project_id: int, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return sprints.list_sprints(db, ctx, project_id)


@router.post("/{project_id}/sprints", response_model=SprintOut, status_code=201)
def api_create_sprint(
    project_id: int,
    payload: SprintCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return sprints.create_sprint(db, ctx, project_id, payload.model_dump())


@router.post("/{project_id}/issues", response_model=IssueOut, status_code=201)
def api_create_issue(
    project_id: int,
    payload: IssueCreate,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return issues.create_issue(db, ctx, project_id, payload.model_dump())
