"""Tests for project registration, membership and the member-only detail view."""

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from portal.db.session import Base
from portal.core.errors import DuplicateId, Forbidden, NotFound
from portal.crud.projects import (
    create_project,
    get_project,
    join_project,
    leave_project,
    list_projects,
    list_projects_for_user,
    open_project,
)

# Ensure models are registered so metadata tables are created
from portal.models import project as project_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def test_create_project_makes_creator_the_only_member(db_session):
    project = create_project(db_session, " JK3002 ", "Example Project", "This is an example Project.", "alice")

    assert project.id == "JK3002"
    assert project.name == "Example Project"
    assert project.description == "This is an example Project."
    assert project.created_by == "alice"
    assert project.members == ["alice"]
    assert project.member_count == 1


def test_duplicate_project_id_is_rejected_without_changes(db_session):
    create_project(db_session, "JK3002", "Example Project", None, "alice")

    with pytest.raises(DuplicateId) as excinfo:
        create_project(db_session, "JK3002", "Someone else's", "other", "bob")
    assert excinfo.value.details == {"project_id": "JK3002"}

    project = get_project(db_session, "JK3002")
    assert project.name == "Example Project"
    assert project.members == ["alice"]


@pytest.mark.parametrize("project_id,name", [("", "Name"), ("   ", "Name"), ("P1", ""), ("P1", "  ")])
def test_create_project_requires_id_and_name(db_session, project_id, name):
    with pytest.raises(ValueError):
        create_project(db_session, project_id, name, None, "alice")
    assert list_projects(db_session) == []


def test_join_is_idempotent(db_session):
    create_project(db_session, "P1", "Robots", "", "alice")

    first = join_project(db_session, "P1", "bob")
    second = join_project(db_session, "P1", "bob")

    assert first.members == ["alice", "bob"]
    assert second.members == ["alice", "bob"]


def test_leave_is_idempotent(db_session):
    create_project(db_session, "P1", "Robots", "", "alice")
    join_project(db_session, "P1", "bob")

    assert leave_project(db_session, "P1", "bob").members == ["alice"]
    assert leave_project(db_session, "P1", "bob").members == ["alice"]
    # Leaving a project you never joined is not an error either.
    assert leave_project(db_session, "P1", "carol").members == ["alice"]


def test_membership_operations_on_missing_project(db_session):
    with pytest.raises(NotFound):
        join_project(db_session, "nope", "bob")
    with pytest.raises(NotFound):
        leave_project(db_session, "nope", "bob")
    with pytest.raises(NotFound):
        open_project(db_session, "nope", "bob")


def test_open_project_requires_membership(db_session):
    create_project(db_session, "P1", "Robots", "", "alice")

    with pytest.raises(Forbidden):
        open_project(db_session, "P1", "bob")

    join_project(db_session, "P1", "bob")
    assert open_project(db_session, "P1", "bob").id == "P1"

    leave_project(db_session, "P1", "bob")
    with pytest.raises(Forbidden):
        open_project(db_session, "P1", "bob")


def test_creator_who_leaves_loses_access_but_project_remains(db_session):
    create_project(db_session, "P1", "Robots", "", "alice")
    project = leave_project(db_session, "P1", "alice")

    assert project.members == []
    assert get_project(db_session, "P1") is not None
    with pytest.raises(Forbidden):
        open_project(db_session, "P1", "alice")


def test_list_projects_for_user_only_returns_memberships(db_session):
    create_project(db_session, "P1", "Robots", "", "alice")
    create_project(db_session, "P2", "Drones", "", "bob")
    create_project(db_session, "P3", "Sensors", "", "carol")
    join_project(db_session, "P3", "alice")

    mine = {project.id for project in list_projects_for_user(db_session, "alice")}
    assert mine == {"P1", "P3"}
    assert list_projects_for_user(db_session, "dave") == []
    assert {project.id for project in list_projects(db_session)} == {"P1", "P2", "P3"}
