"""Organization lookups, delegated to the identity provider."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ..crud.users import ensure_user, list_users_by_external_ids
from ..models.user import User
from .authorization import RequestContext, authorize, require_authenticated
from .identity import OrganizationInfo


def get_organization(db: Session, ctx: RequestContext, slug: str) -> OrganizationInfo | None:
    """The organization behind ``slug`` if the caller belongs to it, else ``None``."""

    current = require_authenticated(ctx.identity)
    ensure_user(db, current.id, name=current.name, email=current.email)
    organization = ctx.identity.get_organization(slug)
    if organization is None:
        return None
    if ctx.identity.get_member(current.id, organization.id) is None:
        return None
    return organization


def get_organization_users(db: Session, ctx: RequestContext) -> list[User]:
    """Local users for every member of the caller's organization.

    Members who have never signed in have no local row yet and are skipped.
    """

    caller = authorize(db, ctx)
    members = ctx.identity.list_organization_members(caller.org_id)
    return list_users_by_external_ids(db, [member.user_id for member in members])
