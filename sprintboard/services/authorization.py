"""Admission checks run in front of every guarded operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..core.errors import AccessDenied, CrossOrganizationAccess, NoOrganizationSelected, Unauthorized
from ..crud.users import ensure_user
from ..models.user import User
from .identity import IdentityProvider, OrganizationMember, UserIdentity

logger = logging.getLogger(__name__)


@dataclass
class RequestContext:
    """Who is asking, and on behalf of which organization."""

    identity: IdentityProvider
    org_id: str | None = None


@dataclass
class Caller:
    identity: UserIdentity
    user: User
    org_id: str
    membership: OrganizationMember

    @property
    def is_admin(self) -> bool:
        return self.membership.is_admin


def require_authenticated(identity: IdentityProvider) -> UserIdentity:
    current = identity.get_current_user()
    if current is None:
        raise Unauthorized()
    return current


def require_organization_context(org_id: str | None) -> str:
    cleaned = (org_id or "").strip()
    if not cleaned:
        raise NoOrganizationSelected()
    return cleaned


def require_membership(identity: IdentityProvider, user_id: str, org_id: str) -> OrganizationMember:
    member = identity.get_member(user_id, org_id)
    if member is None:
        logger.info("auth.denied", extra={"extra_data": {"reason": "not_a_member", "org_id": org_id}})
        raise AccessDenied("You are not a member of this organization")
    return member


def require_elevated_role(identity: IdentityProvider, user_id: str, org_id: str) -> OrganizationMember:
    member = require_membership(identity, user_id, org_id)
    if not member.is_admin:
        logger.info("auth.denied", extra={"extra_data": {"reason": "not_admin", "org_id": org_id}})
        raise AccessDenied("Only organization admins can perform this action")
    return member


def require_same_organization(resource_org_id: str | None, org_id: str, resource: str) -> None:
    if resource_org_id != org_id:
        logger.info("auth.denied", extra={"extra_data": {"reason": "cross_organization", "resource": resource}})
        raise CrossOrganizationAccess(f"{resource} not found")


def authorize(db: Session, ctx: RequestContext, *, elevated: bool = False) -> Caller:
    """Run the standard gate and make sure the caller has a local user row."""

    current = require_authenticated(ctx.identity)
    org_id = require_organization_context(ctx.org_id)
    if elevated:
        membership = require_elevated_role(ctx.identity, current.id, org_id)
    else:
        membership = require_membership(ctx.identity, current.id, org_id)
    user = ensure_user(db, current.id, name=current.name, email=current.email)
    return Caller(identity=current, user=user, org_id=org_id, membership=membership)


def require_reporter_or_admin(caller: Caller, reporter_id: int, action: str) -> None:
    if caller.is_admin or caller.user.id == reporter_id:
        return
    logger.info("auth.denied", extra={"extra_data": {"reason": "not_reporter_or_admin", "action": action}})
    raise AccessDenied(f"You don't have permission to {action} this issue")


__all__ = [
    "Caller",
    "RequestContext",
    "authorize",
    "require_authenticated",
    "require_elevated_role",
    "require_membership",
    "require_organization_context",
    "require_reporter_or_admin",
    "require_same_organization",
]
