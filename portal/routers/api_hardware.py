"""Beginner-friendly overview for this module.

WHAT: REST endpoints for the shared hardware pools.
WHEN: Called by the portal front end whenever a user views or moves hardware.
WHY: Clients never compute a new ``checked_out`` value themselves; they ask the
     ledger to apply a quantity and render whatever it returns.
HOW: Each endpoint authenticates the caller and invokes one ledger operation.
     Ledger errors are rendered by the ``PortalError`` handler.

File: portal/routers/api_hardware.py
"""


from __future__ import annotations
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from ..core.errors import NotFound
from ..db.session import get_db
from ..schemas.hardware import HardwareEventOut, HardwareRequest, PoolOut, PoolState
from ..crud.hardware import check_in, check_out, get_pool, list_events, list_pools
from ..crud.projects import open_project
from ..deps.auth import AuthContext, require_user

router = APIRouter(prefix="/api/v1/hardware", tags=["hardware"])


def _attributed_project(db: Session, project_id: str | None, username: str) -> str | None:
    # Only members may charge hardware to a project.
    if not project_id:
        return None
    return open_project(db, project_id, username).id


@router.get("", response_model=dict[str, PoolState])
def api_list_pools(auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    return {
        pool.name: PoolState(capacity=pool.capacity, checked_out=pool.checked_out, available=pool.available)
        for pool in list_pools(db)
    }


@router.get("/events", response_model=list[HardwareEventOut])
def api_list_events(
    pool: str | None = None,
    mine: bool = False,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    return list_events(
        db,
        pool_name=pool,
        username=auth.username if mine else None,
        limit=limit,
        offset=offset,
    )


@router.get("/{name}", response_model=PoolOut)
def api_get_pool(name: str, auth: AuthContext = Depends(require_user), db: Session = Depends(get_db)):
    pool = get_pool(db, name)
    if not pool:
        raise NotFound(f"Hardware pool {name!r} does not exist", pool=name)
    return pool


@router.post("/{name}/checkout", response_model=PoolOut)
def api_check_out(
    name: str,
    payload: HardwareRequest,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    project_id = _attributed_project(db, payload.project_id, auth.username)
    return check_out(db, name, payload.quantity, auth.username, project_id=project_id)


@router.post("/{name}/checkin", response_model=PoolOut)
def api_check_in(
    name: str,
    payload: HardwareRequest,
    auth: AuthContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    project_id = _attributed_project(db, payload.project_id, auth.username)
    return check_in(db, name, payload.quantity, auth.username, project_id=project_id)
