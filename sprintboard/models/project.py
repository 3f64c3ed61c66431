"""SQLAlchemy model for projects, the owners of sprints and issues."""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Project(Base):
    """A project inside an organization. Deleting it removes its sprints and issues."""

    __tablename__ = "projects"
    __table_args__ = (Index("ix_projects_organization_key", "organization_id", "key", unique=True),)
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    key = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    organization_id = Column(Text, nullable=False, index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    sprints = relationship(
        "Sprint",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Sprint.id.desc()",
    )
    issues = relationship("Issue", back_populates="project", cascade="all, delete-orphan")


__all__ = ["Project"]
