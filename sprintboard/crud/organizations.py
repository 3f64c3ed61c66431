"""CRUD helpers for the self-hosted organization and membership tables."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.statuses import normalize_role
from ..models.organization import Organization, OrganizationMembership
from .common import utcnow


def get_organization(db: Session, org_id: str) -> Organization | None:
    return db.get(Organization, org_id)


def get_organization_by_slug(db: Session, slug: str) -> Organization | None:
    stmt = select(Organization).where(Organization.slug == slug)
    return db.execute(stmt).scalars().first()


def create_organization(db: Session, payload: dict) -> Organization:
    org_id = (payload.get("id") or "").strip()
    if not org_id:
        raise ValueError("id is required")
    name = (payload.get("name") or "").strip()
    if not name:
        raise ValueError("name is required")
    slug = (payload.get("slug") or "").strip().lower()
    if not slug:
        raise ValueError("slug is required")
    if get_organization_by_slug(db, slug):
        raise ValueError(f"slug {slug!r} is already taken")
    organization = Organization(id=org_id, name=name, slug=slug, created_at=utcnow())
    db.add(organization)
    db.commit()
    db.refresh(organization)
    return organization


def list_memberships(db: Session, org_id: str) -> list[OrganizationMembership]:
    stmt = (
        select(OrganizationMembership)
        .where(OrganizationMembership.organization_id == org_id)
        .order_by(OrganizationMembership.id)
    )
    return list(db.execute(stmt).scalars().all())


def set_membership(db: Session, org_id: str, user_external_id: str, role: str | None = None) -> OrganizationMembership:
    """Add ``user_external_id`` to the organization or change their role."""

    stmt = select(OrganizationMembership).where(
        OrganizationMembership.organization_id == org_id,
        OrganizationMembership.user_external_id == user_external_id,
    )
    membership = db.execute(stmt).scalars().first()
    if membership is None:
        membership = OrganizationMembership(
            organization_id=org_id,
            user_external_id=user_external_id,
            created_at=utcnow(),
        )
        db.add(membership)
    membership.role = normalize_role(role)
    db.commit()
    db.refresh(membership)
    return membership


def remove_membership(db: Session, org_id: str, user_external_id: str) -> bool:
    stmt = select(OrganizationMembership).where(
        OrganizationMembership.organization_id == org_id,
        OrganizationMembership.user_external_id == user_external_id,
    )
    membership = db.execute(stmt).scalars().first()
    if membership is None:
        return False
    db.delete(membership)
    db.commit()
    return True
