from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..core.statuses import SPRINT_STATUS_CHOICES

SPRINT_STATUS_PATTERN = f"^({'|'.join(SPRINT_STATUS_CHOICES)})$"


class SprintCreate(BaseModel):
    name: str = Field(..., min_length=1)
    start_date: str
    end_date: str


class SprintStatusUpdate(BaseModel):
    status: str = Field(..., pattern=SPRINT_STATUS_PATTERN)


class SprintOut(BaseModel):
    id: int
    name: str
    start_date: str
    end_date: str
    status: str
    project_id: int
    created_at: str
    updated_at: Optional[str] = None

    model_config = {"from_attributes": True}
