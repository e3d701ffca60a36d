"""SQLAlchemy engine, session factory and declarative base."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..core.config import settings
from ..core.errors import StoreUnavailable

logger = logging.getLogger(__name__)

# ``Base`` is the parent class for every SQLAlchemy model defined in portal/models.
Base = declarative_base()


def build_engine(url: str, *, busy_timeout: float | None = None) -> Engine:
    """Create an engine with the connect arguments the backend needs.

    SQLite connections are shared across FastAPI worker threads and wait up to
    ``busy_timeout`` seconds for a competing writer instead of failing fast.
    """

    connect_args: dict[str, object] = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = settings.DB_BUSY_TIMEOUT if busy_timeout is None else busy_timeout
    return create_engine(url, connect_args=connect_args)


# The engine manages the connection pool; one per process.
engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_guard(db: Session, operation: str) -> Iterator[Session]:
    """Translate store outages into ``StoreUnavailable`` and undo the partial write.

    Business rejections raised inside the block pass through untouched; only
    driver-level failures (locked or unreachable database) are converted.
    """

    try:
        yield db
    except OperationalError as exc:
        db.rollback()
        logger.error(
            "store.unavailable",
            exc_info=True,
            extra={"extra_data": {"operation": operation}},
        )
        raise StoreUnavailable("The data store is unavailable", operation=operation) from exc
