"""Concurrent check-outs, check-ins and joins against one file-backed database.

Every worker owns its own session and connection, so the only thing keeping
the pools consistent is the guarded update the ledger sends to the store.
"""

import os
import random
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from portal.db.session import Base, build_engine
from portal.core.errors import InsufficientCapacity, OverReturn
from portal.crud.hardware import check_in, check_out, ensure_pools, get_pool, list_events
from portal.crud.projects import create_project, join_project
from portal.models.project import ProjectMember

from portal.models import hardware as hardware_model  # noqa: F401
from portal.models import inventory as inventory_model  # noqa: F401
from portal.models import project as project_model  # noqa: F401

WORKERS = 20


@pytest.fixture()
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}", busy_timeout=30)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    try:
        yield factory
    finally:
        engine.dispose()


def _run_concurrently(session_factory, operation, arguments):
    """Release every call at once and collect ``(granted, rejected)`` per call."""

    barrier = threading.Barrier(len(arguments))

    def worker(args):
        db = session_factory()
        try:
            barrier.wait()
            try:
                operation(db, *args)
                return args[-1], None
            except (InsufficientCapacity, OverReturn) as exc:
                return 0, exc
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=len(arguments)) as executor:
        return list(executor.map(worker, arguments))


def _check_out(db, username, quantity):
    return check_out(db, "HWSET1", quantity, username)


def _check_in(db, username, quantity):
    return check_in(db, "HWSET1", quantity, username)


def test_simultaneous_checkouts_never_exceed_available(session_factory):
    with session_factory() as db:
        ensure_pools(db, {"HWSET1": 250})
        check_out(db, "HWSET1", 20, "seed")

    # 20 x 30 = 600 units requested against 230 available.
    results = _run_concurrently(
        session_factory,
        _check_out,
        [(f"user{i}", 30) for i in range(WORKERS)],
    )

    granted = sum(units for units, _ in results)
    rejected = [exc for _, exc in results if exc is not None]
    assert granted == 210
    assert len(rejected) == WORKERS - 7
    assert all(isinstance(exc, InsufficientCapacity) for exc in rejected)
    assert all(exc.details["available"] < 30 for exc in rejected)

    with session_factory() as db:
        pool = get_pool(db, "HWSET1")
        assert pool.checked_out == 230
        assert len(list_events(db, pool_name="HWSET1")) == 8


def test_mixed_quantities_grant_at_most_available(session_factory):
    with session_factory() as db:
        ensure_pools(db, {"HWSET1": 100})

    rng = random.Random(7)
    quantities = [rng.randint(1, 25) for _ in range(WORKERS)]
    assert sum(quantities) > 100

    results = _run_concurrently(
        session_factory,
        _check_out,
        [(f"user{i}", qty) for i, qty in enumerate(quantities)],
    )

    granted = sum(units for units, _ in results)
    assert granted <= 100
    with session_factory() as db:
        pool = get_pool(db, "HWSET1")
        assert pool.checked_out == granted
        assert sum(e.change for e in list_events(db, pool_name="HWSET1", limit=500)) == granted
    # Any rejection saw less room than it asked for.
    for (units, exc), qty in zip(results, quantities):
        if exc is not None:
            assert exc.details["available"] < qty


def test_simultaneous_checkins_never_go_negative(session_factory):
    with session_factory() as db:
        ensure_pools(db, {"HWSET1": 250})
        check_out(db, "HWSET1", 100, "seed")

    results = _run_concurrently(
        session_factory,
        _check_in,
        [(f"user{i}", 10) for i in range(WORKERS)],
    )

    granted = sum(units for units, _ in results)
    rejected = [exc for _, exc in results if exc is not None]
    assert granted == 100
    assert len(rejected) == WORKERS - 10
    assert all(isinstance(exc, OverReturn) for exc in rejected)
    with session_factory() as db:
        assert get_pool(db, "HWSET1").checked_out == 0


def test_simultaneous_joins_store_one_membership(session_factory):
    with session_factory() as db:
        create_project(db, "JK3002", "Example Project", "", "owner")

    barrier = threading.Barrier(WORKERS)

    def worker(_):
        db = session_factory()
        try:
            barrier.wait()
            return join_project(db, "JK3002", "student").members
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as executor:
        snapshots = list(executor.map(worker, range(WORKERS)))

    assert all(members == ["owner", "student"] for members in snapshots)
    with session_factory() as db:
        count = db.execute(
            select(func.count())
            .select_from(ProjectMember)
            .where(ProjectMember.project_id == "JK3002", ProjectMember.username == "student")
        ).scalar_one()
        assert count == 1
