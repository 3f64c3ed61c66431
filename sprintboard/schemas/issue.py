"""Pydantic schemas for issues and board moves."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.statuses import ISSUE_PRIORITY_CHOICES, ISSUE_STATUS_CHOICES
from .project import ProjectOut
from .user import UserOut

ISSUE_STATUS_PATTERN = f"^({'|'.join(ISSUE_STATUS_CHOICES)})$"
ISSUE_PRIORITY_PATTERN = f"^({'|'.join(ISSUE_PRIORITY_CHOICES)})$"


class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    status: str = Field(default="TODO", pattern=ISSUE_STATUS_PATTERN)
    priority: str = Field(default="MEDIUM", pattern=ISSUE_PRIORITY_PATTERN)
    sprint_id: Optional[int] = None
    assignee_id: Optional[int] = None


class IssueUpdate(BaseModel):
    status: Optional[str] = Field(default=None, pattern=ISSUE_STATUS_PATTERN)
    priority: Optional[str] = Field(default=None, pattern=ISSUE_PRIORITY_PATTERN)
    assignee_id: Optional[int] = None


class IssueOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    order: int
    project_id: int
    sprint_id: Optional[int] = None
    assignee_id: Optional[int] = None
    reporter_id: int
    created_at: str
    updated_at: Optional[str] = None
    assignee: Optional[UserOut] = None
    reporter: Optional[UserOut] = None

    model_config = {"from_attributes": True}


class UserIssueOut(IssueOut):
    project: Optional[ProjectOut] = None


class IssuePosition(BaseModel):
    id: int
    status: str = Field(..., pattern=ISSUE_STATUS_PATTERN)
    order: int = Field(..., ge=0)


class IssueOrderUpdate(BaseModel):
    issues: list[IssuePosition] = Field(default_factory=list)


class MoveRequest(BaseModel):
    source_status: str = Field(..., pattern=ISSUE_STATUS_PATTERN)
    source_index: int = Field(..., ge=0)
    destination_status: str = Field(..., pattern=ISSUE_STATUS_PATTERN)
    destination_index: int = Field(..., ge=0)
