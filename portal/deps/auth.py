from __future__ import annotations

from fastapi import Header, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param

from ..core.security import decode_token
from ..middlewares import principal_ctx_var
from .session import session_username


class AuthContext:
    def __init__(self, *, username: str, scheme: str) -> None:
        self.username = username
        self.scheme = scheme


def _unauthorized(detail: str = "Unauthorized") -> None:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def require_user(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AuthContext:
    """Resolve the caller from the session cookie, then from a bearer token."""

    username = session_username(request)
    if username:
        _set_principal(request, username)
        return AuthContext(username=username, scheme="session")

    if authorization:
        scheme, credentials = get_authorization_scheme_param(authorization)
        if scheme.lower() == "bearer" and credentials:
            try:
                payload = decode_token(credentials, verify_type="access")
            except ValueError as exc:
                _unauthorized(str(exc))
            _set_principal(request, payload.sub)
            return AuthContext(username=payload.sub, scheme="jwt")

    _unauthorized("Authentication required")
