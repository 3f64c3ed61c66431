from __future__ import annotations

from pydantic import BaseModel


class UserOut(BaseModel):
    id: int
    external_id: str
    name: str
    email: str

    model_config = {"from_attributes": True}
