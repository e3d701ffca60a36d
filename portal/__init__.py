"""Application wiring for the hardware portal.

This module brings together configuration, middleware, API routers and error
handling. Table creation and pool seeding run on startup rather than on
import, so tests can point the app at their own database first.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from .core.config import settings
from .core.errors import register_exception_handlers
from .db.bootstrap import init_db
from .db.session import engine
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware

logger = logging.getLogger(__name__)

# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME)

# ---------- Middleware ----------
# Sessions remember who is logged in between requests; the signed cookie only
# holds the username.
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.APP_SECRET,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
    https_only=False,  # set True once the app is always accessed via HTTPS at the edge
)
if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

# ---------- Errors ----------
register_exception_handlers(app)

# ---------- Routers ----------
from .routers import api_auth as api_auth_router  # noqa: E402

app.include_router(api_auth_router.router)

from .routers import api_hardware as api_hardware_router  # noqa: E402

app.include_router(api_hardware_router.router)

from .routers import api_projects as api_projects_router  # noqa: E402

app.include_router(api_projects_router.router)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@app.on_event("startup")
def _init_db() -> None:
    init_db(engine, settings.hardware_pools)
    logger.info("portal.started", extra={"extra_data": {"pools": sorted(settings.hardware_pools)}})


__all__ = ["app"]
