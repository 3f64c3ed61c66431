"""Self-hosted organization and membership tables.

These back :class:`~sprintboard.services.identity.LocalIdentityProvider`. A
deployment that delegates to an external identity provider can leave them
empty and plug in its own provider instead.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.statuses import ROLE_MEMBER
from ..db.session import Base


class Organization(Base):
    __tablename__ = "organizations"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True, index=True)
    created_at = Column(Text, nullable=False)

    memberships = relationship(
        "OrganizationMembership",
        back_populates="organization",
        cascade="all, delete-orphan",
    )


class OrganizationMembership(Base):
    __tablename__ = "organization_memberships"
    __table_args__ = (UniqueConstraint("organization_id", "user_external_id", name="uq_membership_org_user"),)
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Text, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_external_id = Column(Text, nullable=False, index=True)
    role = Column(Text, nullable=False, default=ROLE_MEMBER)
    created_at = Column(Text, nullable=False)

    organization = relationship("Organization", back_populates="memberships")


__all__ = ["Organization", "OrganizationMembership"]
