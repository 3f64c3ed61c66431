"""SQLAlchemy model for issues shown on a sprint board."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship

from ..core.statuses import ISSUE_PRIORITY_MEDIUM, ISSUE_STATUS_TODO
from ..db.session import Base


class Issue(Base):
    """An issue. ``order`` is only meaningful inside one status column."""

    __tablename__ = "issues"
    __table_args__ = (
        Index("ix_issues_sprint_column", "sprint_id", "status", "order"),
        Index("ix_issues_project_column", "project_id", "status", "order"),
    )
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default=ISSUE_STATUS_TODO)
    priority = Column(Text, nullable=False, default=ISSUE_PRIORITY_MEDIUM)
    order = Column(Integer, nullable=False, default=0)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    sprint_id = Column(Integer, ForeignKey("sprints.id", ondelete="SET NULL"), nullable=True, index=True)
    assignee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    reporter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=True)

    project = relationship("Project", back_populates="issues")
    sprint = relationship("Sprint", back_populates="issues")
    assignee = relationship("User", back_populates="assigned_issues", foreign_keys=[assignee_id])
    reporter = relationship("User", back_populates="reported_issues", foreign_keys=[reporter_id])


__all__ = ["Issue"]
