"""Create tables and seed the configured hardware pools."""

from __future__ import annotations

from typing import Mapping

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..crud.hardware import ensure_pools
from .session import Base

# Importing the SQLAlchemy models registers them with the metadata. Without
# this step ``Base.metadata.create_all`` would not know about our tables.
from ..models import hardware as _hardware  # noqa: F401
from ..models import inventory as _inventory  # noqa: F401
from ..models import project as _project  # noqa: F401
from ..models import user as _user  # noqa: F401


def init_db(engine: Engine, pools: Mapping[str, int]) -> None:
    """Idempotent: safe to run on every startup and from several workers."""

    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        ensure_pools(session, pools)
    finally:
        session.close()
