"""CRUD helpers for projects and their membership rows."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import DuplicateId, Forbidden, NotFound
from ..db.session import store_guard
from ..models.project import Project, ProjectMember

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _load(db: Session, project_id: str) -> Project | None:
    stmt = (
        select(Project)
        .where(Project.id == project_id)
        .execution_options(populate_existing=True)
    )
    return db.execute(stmt).scalars().first()


def _require_project(db: Session, project_id: str) -> Project:
    project = _load(db, project_id)
    if project is None:
        raise NotFound(f"Project {project_id!r} does not exist", project_id=project_id)
    return project


def list_projects(db: Session, limit: int = 200, offset: int = 0) -> list[Project]:
    stmt = select(Project).order_by(desc(Project.created_at), Project.id).limit(limit).offset(offset)
    with store_guard(db, "list_projects"):
        return list(db.execute(stmt).scalars().all())


def get_project(db: Session, project_id: str) -> Project | None:
    with store_guard(db, "get_project"):
        return _load(db, project_id)


def list_projects_for_user(db: Session, username: str) -> list[Project]:
    stmt = (
        select(Project)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .where(ProjectMember.username == username)
        .order_by(desc(Project.created_at), Project.id)
    )
    with store_guard(db, "list_projects_for_user"):
        return list(db.execute(stmt).scalars().all())


def create_project(db: Session, project_id: str, name: str, description: str | None, creator: str) -> Project:
    """Register a project with ``creator`` as its only member."""

    project_id = (project_id or "").strip()
    if not project_id:
        raise ValueError("id is required")
    name = (name or "").strip()
    if not name:
        raise ValueError("name is required")

    with store_guard(db, "create_project"):
        if _load(db, project_id) is not None:
            raise DuplicateId(f"Project {project_id!r} already exists", project_id=project_id)
        now = _utcnow()
        project = Project(
            id=project_id,
            name=name,
            description=(description or "").strip(),
            created_by=creator,
            created_at=now,
            updated_at=now,
        )
        db.add(project)
        db.add(ProjectMember(project_id=project_id, username=creator, joined_at=now))
        try:
            db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent create of the same id.
            db.rollback()
            raise DuplicateId(f"Project {project_id!r} already exists", project_id=project_id) from exc
        logger.info("project.created", extra={"extra_data": {"project_id": project_id, "username": creator}})
        return _require_project(db, project_id)


def join_project(db: Session, project_id: str, username: str) -> Project:
    """Add ``username`` to the project's members; joining twice is a no-op."""

    with store_guard(db, "join_project"):
        project = _require_project(db, project_id)
        if project.has_member(username):
            return project
        db.add(ProjectMember(project_id=project_id, username=username, joined_at=_utcnow()))
        try:
            db.commit()
        except IntegrityError:
            # A concurrent join of the same user committed first.
            db.rollback()
        else:
            logger.info("project.joined", extra={"extra_data": {"project_id": project_id, "username": username}})
        return _require_project(db, project_id)


def leave_project(db: Session, project_id: str, username: str) -> Project:
    """Remove ``username`` from the project's members; leaving as a non-member is a no-op."""

    with store_guard(db, "leave_project"):
        _require_project(db, project_id)
        result = db.execute(
            delete(ProjectMember)
            .where(ProjectMember.project_id == project_id, ProjectMember.username == username)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        if result.rowcount:
            logger.info("project.left", extra={"extra_data": {"project_id": project_id, "username": username}})
        return _require_project(db, project_id)


def open_project(db: Session, project_id: str, username: str) -> Project:
    """Return the project if ``username`` is a member, else raise ``Forbidden``."""

    with store_guard(db, "open_project"):
        project = _require_project(db, project_id)
    if not project.has_member(username):
        raise Forbidden(
            f"{username} is not a member of project {project_id!r}",
            project_id=project_id,
        )
    return project
