from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import NotFound
from ..db.session import get_db
from ..deps.auth import get_request_context
from ..schemas.issue import UserIssueOut
from ..schemas.organization import OrganizationOut
from ..schemas.user import UserOut
from ..services.authorization import RequestContext
from ..services.issues import get_user_issues
from ..services.organizations import get_organization, get_organization_users

router = APIRouter(prefix="/api/v1/organizations", tags=["organizations"])


@router.get("/current/users", response_model=list[UserOut])
def api_organization_users(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return get_organization_users(db, ctx)


@router.get("/current/issues", response_model=list[UserIssueOut])
def api_user_issues(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return get_user_issues(db, ctx)


@router.get("/{slug}", response_model=OrganizationOut)
def api_get_organization(slug: str, ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    organization = get_organization(db, ctx, slug)
    if organization is None:
        raise NotFound.for_resource("Organization")
    return organization
