"""SQLAlchemy model for sprints."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..core.statuses import SPRINT_STATUS_PLANNED
from ..db.session import Base


class Sprint(Base):
    __tablename__ = "sprints"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    start_date = Column(Text, nullable=False)
    end_date = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default=SPRINT_STATUS_PLANNED)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=True)

    project = relationship("Project", back_populates="sprints")
    # Issues go away with the project, not with the sprint.
    issues = relationship("Issue", back_populates="sprint", passive_deletes=True)


__all__ = ["Sprint"]
