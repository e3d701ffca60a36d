"""Beginner-friendly overview for this module.

WHAT: The append-only log of hardware movements.
WHEN: A row is written by the ledger every time a check-out or check-in commits.
WHY: Pools only store totals; the log answers who holds what and since when.
HOW: Each row lives in the same transaction as the pool update it describes.

File: portal/models/inventory.py
"""


from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, Text

from ..db.session import Base


class HardwareEvent(Base):
    """A committed change to a pool's ``checked_out`` count.

    Positive ``change`` values are check-outs, negative values are check-ins.
    """

    __tablename__ = "hardware_events"

    id = Column(Integer, primary_key=True, index=True)
    pool_name = Column(Text, ForeignKey("hardware_pools.name"), nullable=False, index=True)
    username = Column(Text, nullable=False, index=True)
    change = Column(Integer, nullable=False)
    project_id = Column(Text, nullable=True, index=True)
    created_at = Column(Text, nullable=False)

    @property
    def action(self) -> str:
        return "checkout" if self.change > 0 else "checkin"

    @property
    def quantity(self) -> int:
        return abs(self.change)
