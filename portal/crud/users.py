"""Account helpers: sign-up and password verification."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.errors import DuplicateId
from ..db.session import store_guard
from ..models.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes and newer releases refuse longer input.
MAX_PASSWORD_BYTES = 72


def _utcnow() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


def get_user(db: Session, username: str) -> User | None:
    with store_guard(db, "get_user"):
        return db.get(User, username)


def create_user(db: Session, username: str, password: str) -> User:
    username = (username or "").strip()
    if not username:
        raise ValueError("username is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")

    with store_guard(db, "create_user"):
        if db.get(User, username) is not None:
            raise DuplicateId(f"Username {username!r} is taken", username=username)
        user = User(username=username, password_hash=hash_password(password), created_at=_utcnow())
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise DuplicateId(f"Username {username!r} is taken", username=username) from exc
        db.refresh(user)
    logger.info("user.created", extra={"extra_data": {"username": username}})
    return user


def authenticate(db: Session, username: str, password: str) -> User | None:
    user = get_user(db, (username or "").strip())
    if user is None or not verify_password(password or "", user.password_hash):
        return None
    return user
