"""Beginner-friendly overview for this module.

WHAT: Starlette middleware for the portal: request correlation and the
      headers every API response carries.
WHEN: Registered in ``portal/__init__.py`` around every request.
WHY: The context vars exported here let ``portal.core.logging`` stamp each
     ledger and directory log line with the request id and the caller.
HOW: ``RequestIdMiddleware`` owns ``request_id_ctx_var``; ``require_user``
     fills ``principal_ctx_var`` once the caller is known.

File: portal/middlewares/__init__.py
"""

from __future__ import annotations

from .request_id import RequestIdMiddleware, principal_ctx_var, request_id_ctx_var
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "RequestIdMiddleware",
    "SecurityHeadersMiddleware",
    "request_id_ctx_var",
    "principal_ctx_var",
]
