"""Identity provider seam.

Everything the tracker needs to know about who is calling and which
organizations they belong to goes through :class:`IdentityProvider`. The
bundled :class:`LocalIdentityProvider` reads the caller from the verified
JWT and memberships from the ``organizations`` tables; an external provider
SDK can be wrapped behind the same three methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy.orm import Session

from ..core.statuses import ROLE_ADMIN, normalize_role
from ..crud.organizations import get_organization_by_slug, list_memberships


@dataclass(frozen=True)
class UserIdentity:
    id: str
    name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class OrganizationMember:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class OrganizationInfo:
    id: str
    name: str
    slug: str


class IdentityProvider(ABC):
    @abstractmethod
    def get_current_user(self) -> UserIdentity | None:
        """The authenticated caller, or ``None`` for anonymous requests."""

    @abstractmethod
    def list_organization_members(self, org_id: str) -> list[OrganizationMember]:
        """Every member of ``org_id`` with their role."""

    @abstractmethod
    def get_organization(self, slug: str) -> OrganizationInfo | None:
        """Look an organization up by slug."""

    def get_member(self, user_id: str, org_id: str) -> OrganizationMember | None:
        for member in self.list_organization_members(org_id):
            if member.user_id == user_id:
                return member
        return None


class LocalIdentityProvider(IdentityProvider):
    def __init__(self, db: Session, principal: UserIdentity | None = None) -> None:
        self.db = db
        self.principal = principal

    def get_current_user(self) -> UserIdentity | None:
        return self.principal

    def list_organization_members(self, org_id: str) -> list[OrganizationMember]:
        return [
            OrganizationMember(user_id=membership.user_external_id, role=normalize_role(membership.role))
            for membership in list_memberships(self.db, org_id)
        ]

    def get_organization(self, slug: str) -> OrganizationInfo | None:
        organization = get_organization_by_slug(self.db, slug)
        if organization is None:
            return None
        return OrganizationInfo(id=organization.id, name=organization.name, slug=organization.slug)


__all__ = [
    "IdentityProvider",
    "LocalIdentityProvider",
    "OrganizationInfo",
    "OrganizationMember",
    "UserIdentity",
]
