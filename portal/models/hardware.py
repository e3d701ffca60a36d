"""SQLAlchemy model for the shared hardware pools."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Integer, Text

from ..db.session import Base


class HardwarePool(Base):
    """A named set of identical hardware units shared by every project.

    ``checked_out`` only ever moves through the ledger's guarded updates; the
    table constraint is a second line that rejects any write leaving the pool
    overdrawn or negative.
    """

    __tablename__ = "hardware_pools"
    __table_args__ = (
        CheckConstraint("capacity >= 0", name="ck_hardware_pools_capacity"),
        CheckConstraint(
            "checked_out >= 0 AND checked_out <= capacity",
            name="ck_hardware_pools_checked_out",
        ),
    )

    name = Column(Text, primary_key=True)
    capacity = Column(Integer, nullable=False)
    checked_out = Column(Integer, nullable=False, default=0)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    @property
    def available(self) -> int:
        return self.capacity - self.checked_out


__all__ = ["HardwarePool"]
