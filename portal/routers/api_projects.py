from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import InvalidInput
from ..crud.projects import (
    create_project,
    join_project,
    leave_project,
    list_projects,
    list_projects_for_user,
    open_project,
)
from ..db.session import get_db
from ..deps.auth import AuthContext, require_user
from ..schemas.project import ProjectCreate, ProjectOut, ProjectSummary

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.get("", response_model=list[ProjectSummary])
def api_list_projects(
    scope: Literal["mine", "all"] = "mine",
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    if scope == "all":
        return list_projects(db)
    return list_projects_for_user(db, auth.username)


@router.post("", response_model=ProjectOut, status_code=201)
def api_create_project(
    payload: ProjectCreate,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    try:
        return create_project(db, payload.id, payload.name, payload.description, auth.username)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc


@router.get("/{project_id}", response_model=ProjectOut)
def api_open_project(project_id: str, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    return open_project(db, project_id, auth.username)


@router.post("/{project_id}/join", response_model=ProjectOut)
def api_join_project(project_id: str, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    return join_project(db, project_id, auth.username)


@router.post("/{project_id}/leave", response_model=ProjectOut)
def api_leave_project(project_id: str, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    return leave_project(db, project_id, auth.username)
