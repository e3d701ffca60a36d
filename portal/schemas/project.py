"""Pydantic schemas that describe project payloads for the API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class ProjectCreate(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: Optional[str] = None


class ProjectSummary(BaseModel):
    id: str
    name: str
    description: str
    member_count: int = 0
    created_at: str

    class Config:
        from_attributes = True


class ProjectOut(ProjectSummary):
    created_by: str
    updated_at: str
    members: list[str] = Field(default_factory=list)
