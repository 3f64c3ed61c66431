from __future__ import annotations

from pydantic import BaseModel, Field


class TokenRequest(BaseModel):
    api_key: str | None = Field(default=None, alias="apiKey")
    user_id: str = Field(..., alias="userId", min_length=1)
    name: str | None = None
    email: str | None = None

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "apiKey": "super-secret-key",
                "userId": "user_2abc",
                "name": "Ada Lovelace",
                "email": "ada@example.com",
            }
        },
    }


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshRequest(BaseModel):
    refresh_token: str
