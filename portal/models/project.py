"""SQLAlchemy models for projects and their membership rows."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class Project(Base):
    """A student project; its members are the users allowed to open it."""

    __tablename__ = "projects"
    __allow_unmapped__ = True

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    created_by = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    memberships = relationship(
        "ProjectMember",
        back_populates="project",
        lazy="selectin",
        order_by="ProjectMember.joined_at",
    )

    @property
    def members(self) -> list[str]:
        return sorted(m.username for m in self.memberships)

    @property
    def member_count(self) -> int:
        return len(self.memberships)

    def has_member(self, username: str) -> bool:
        return any(m.username == username for m in self.memberships)


class ProjectMember(Base):
    # The composite key is what keeps ``members`` duplicate free under racing joins.
    __tablename__ = "project_members"

    project_id = Column(Text, ForeignKey("projects.id"), primary_key=True)
    username = Column(Text, primary_key=True, index=True)
    joined_at = Column(Text, nullable=False)

    project = relationship("Project", back_populates="memberships")


__all__ = ["Project", "ProjectMember"]
