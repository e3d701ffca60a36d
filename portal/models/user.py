from __future__ import annotations

from sqlalchemy import Column, Text

from ..db.session import Base


class User(Base):
    __tablename__ = "users"

    username = Column(Text, primary_key=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
