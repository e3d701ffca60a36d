from __future__ import annotations

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {"username": "student", "password": "password123"}
        },
    }


class UserOut(BaseModel):
    username: str
    created_at: str

    model_config = {"from_attributes": True}


class MeResponse(BaseModel):
    """The caller plus their net units per pool.

    Check-ins are validated against the pool, not against the caller, so a
    user who returns units someone else took shows a negative holding.
    """

    username: str
    scheme: str
    holdings: dict[str, int] = Field(default_factory=dict)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

    model_config = {
        "json_schema_extra": {
            "example": {
                "access_token": "<jwt>",
                "refresh_token": "<jwt>",
                "token_type": "bearer",
                "expires_in": 900,
            }
        }
    }


class RefreshRequest(BaseModel):
    refresh_token: str

    model_config = {
        "json_schema_extra": {
            "example": {"refresh_token": "<jwt>"}
        }
    }
