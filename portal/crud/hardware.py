# portal/crud/hardware.py
"""Inventory ledger for the shared hardware pools.

Every change to ``checked_out`` is a single conditional ``UPDATE`` evaluated by
the database against the committed row. The capacity check and the increment
cannot be separated by another request, so two concurrent check-outs can never
both pass against the same stale value.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.errors import InsufficientCapacity, InvalidQuantity, NotFound, OverReturn
from ..db.session import store_guard
from ..models.hardware import HardwarePool
from ..models.inventory import HardwareEvent

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _validate_quantity(quantity: object) -> int:
    # bool is an int subclass; ``True`` units is not a quantity.
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity("quantity must be a positive integer", quantity=quantity)
    return quantity


def _current(db: Session, name: str) -> HardwarePool | None:
    stmt = (
        select(HardwarePool)
        .where(HardwarePool.name == name)
        .execution_options(populate_existing=True)
    )
    return db.execute(stmt).scalars().first()


def _require_pool(db: Session, name: str) -> HardwarePool:
    pool = _current(db, name)
    if pool is None:
        raise NotFound(f"Hardware pool {name!r} does not exist", pool=name)
    return pool


def list_pools(db: Session) -> list[HardwarePool]:
    """Return every pool ordered by name, refreshed from the store."""

    stmt = select(HardwarePool).order_by(HardwarePool.name).execution_options(populate_existing=True)
    with store_guard(db, "list_pools"):
        return list(db.execute(stmt).scalars().all())


def get_pool(db: Session, name: str) -> HardwarePool | None:
    with store_guard(db, "get_pool"):
        return _current(db, name)


def _apply(
    db: Session,
    *,
    name: str,
    change: int,
    username: str,
    project_id: str | None,
) -> HardwarePool:
    """Commit ``checked_out += change`` if the result stays within ``[0, capacity]``.

    Returns a detached snapshot of the pool as committed by this call. When
    the guard rejects the update nothing is written and the matching
    business error carries the pool's current numbers.
    """

    if change > 0:
        guard = HardwarePool.checked_out + change <= HardwarePool.capacity
    else:
        guard = HardwarePool.checked_out >= -change

    result = db.execute(
        update(HardwarePool)
        .where(HardwarePool.name == name, guard)
        .values(checked_out=HardwarePool.checked_out + change, updated_at=_utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = _require_pool(db, name)
        checked_out, available = current.checked_out, current.available
        db.rollback()
        extra = {
            "pool": name,
            "requested": abs(change),
            "username": username,
            "checked_out": checked_out,
            "available": available,
        }
        if change > 0:
            logger.info("hardware.checkout.rejected", extra={"extra_data": extra})
            raise InsufficientCapacity(
                f"Only {available} unit(s) of {name} are available",
                pool=name,
                requested=change,
                available=available,
            )
        logger.info("hardware.checkin.rejected", extra={"extra_data": extra})
        raise OverReturn(
            f"Only {checked_out} unit(s) of {name} are checked out",
            pool=name,
            requested=-change,
            checked_out=checked_out,
        )

    db.add(
        HardwareEvent(
            pool_name=name,
            username=username,
            change=change,
            project_id=project_id,
            created_at=_utcnow(),
        )
    )
    db.flush()
    snapshot = _require_pool(db, name)
    # Detached so the commit does not expire the values this transaction wrote.
    db.expunge(snapshot)
    db.commit()
    logger.info(
        "hardware.checkout" if change > 0 else "hardware.checkin",
        extra={
            "extra_data": {
                "pool": name,
                "quantity": abs(change),
                "username": username,
                "project_id": project_id,
                "checked_out": snapshot.checked_out,
                "available": snapshot.available,
            }
        },
    )
    return snapshot


def check_out(
    db: Session,
    name: str,
    quantity: int,
    username: str,
    *,
    project_id: str | None = None,
) -> HardwarePool:
    """Take ``quantity`` units from pool ``name`` for ``username``.

    Raises ``InvalidQuantity`` or ``NotFound`` before touching the store and
    ``InsufficientCapacity`` when fewer than ``quantity`` units are available
    at commit time. The pool is unchanged whenever an error is raised.
    """

    quantity = _validate_quantity(quantity)
    with store_guard(db, "check_out"):
        _require_pool(db, name)
        return _apply(db, name=name, change=quantity, username=username, project_id=project_id)


def check_in(
    db: Session,
    name: str,
    quantity: int,
    username: str,
    *,
    project_id: str | None = None,
) -> HardwarePool:
    """Return ``quantity`` units to pool ``name``.

    Raises ``OverReturn`` when ``quantity`` exceeds the units checked out at
    commit time.
    """

    quantity = _validate_quantity(quantity)
    with store_guard(db, "check_in"):
        _require_pool(db, name)
        return _apply(db, name=name, change=-quantity, username=username, project_id=project_id)


def ensure_pools(db: Session, pools: Mapping[str, int]) -> list[HardwarePool]:
    """Create any configured pool that does not exist yet.

    Existing pools keep their capacity and checked-out count.
    """

    for name, capacity in pools.items():
        if not name:
            raise ValueError("pool name is required")
        if capacity < 0:
            raise ValueError(f"capacity for {name} must be non-negative")

    with store_guard(db, "ensure_pools"):
        existing = set(db.execute(select(HardwarePool.name)).scalars().all())
        now = _utcnow()
        created = []
        for name, capacity in pools.items():
            if name in existing:
                continue
            db.add(HardwarePool(name=name, capacity=capacity, checked_out=0, created_at=now, updated_at=now))
            created.append(name)
        try:
            db.commit()
        except IntegrityError:
            # Another worker seeded the same pools first.
            db.rollback()
            created = []
        if created:
            logger.info("hardware.pools.created", extra={"extra_data": {"pools": created}})
    return list_pools(db)


def list_events(
    db: Session,
    *,
    pool_name: str | None = None,
    username: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[HardwareEvent]:
    """Fetch a page of hardware movements ordered by recency."""

    stmt = select(HardwareEvent)
    if pool_name:
        stmt = stmt.where(HardwareEvent.pool_name == pool_name)
    if username:
        stmt = stmt.where(HardwareEvent.username == username)
    stmt = (
        stmt.order_by(desc(HardwareEvent.created_at), desc(HardwareEvent.id))
        .limit(limit)
        .offset(offset)
    )
    with store_guard(db, "list_events"):
        return list(db.execute(stmt).scalars().all())


def get_holdings(db: Session, username: str) -> dict[str, int]:
    """Net units per pool that ``username`` has checked out and not returned.

    Values can be negative for a user who returned more than they took.
    """

    stmt = (
        select(HardwareEvent.pool_name, func.coalesce(func.sum(HardwareEvent.change), 0))
        .where(HardwareEvent.username == username)
        .group_by(HardwareEvent.pool_name)
        .order_by(HardwareEvent.pool_name)
    )
    with store_guard(db, "get_holdings"):
        rows = db.execute(stmt).all()
    return {pool_name: int(total) for pool_name, total in rows if total}
