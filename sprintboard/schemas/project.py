"""Pydantic schemas that describe project payloads for the API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .sprint import SprintOut


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1, max_length=10)
    description: Optional[str] = None


class ProjectOut(BaseModel):
    id: int
    name: str
    key: str
    description: Optional[str] = None
    organization_id: str
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class ProjectDetail(ProjectOut):
    sprints: list[SprintOut] = Field(default_factory=list)
