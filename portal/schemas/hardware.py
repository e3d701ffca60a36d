"""Beginner-friendly overview for this module.

WHAT: Pydantic payloads for the hardware ledger endpoints.
WHEN: Parsed from request bodies and rendered into responses by FastAPI.
WHY: Keeps the wire format separate from the SQLAlchemy models.
HOW: ``from_attributes`` lets responses be built straight from ORM rows.

File: portal/schemas/hardware.py
"""


from __future__ import annotations
from pydantic import BaseModel, StrictInt
from typing import Optional


class HardwareRequest(BaseModel):
    # Strict: JSON true, "5" and 5.0 are request errors, not quantities.
    # Range checks happen in the ledger so they surface as ``invalid_quantity``.
    quantity: StrictInt
    project_id: Optional[str] = None


class PoolOut(BaseModel):
    name: str
    capacity: int
    checked_out: int
    available: int

    class Config:
        from_attributes = True


class PoolState(BaseModel):
    capacity: int
    checked_out: int
    available: int


class HardwareEventOut(BaseModel):
    id: int
    pool_name: str
    username: str
    action: str
    quantity: int
    change: int
    project_id: Optional[str]
    created_at: str

    class Config:
        from_attributes = True
