"""Beginner-friendly overview for this module.

WHAT: Reads and writes the logged-in username stored in the session cookie.
WHEN: Called by the login/logout endpoints and by the auth dependency.
WHY: Keeps the cookie key in one place so every caller agrees on it.
HOW: Starlette's ``SessionMiddleware`` exposes ``request.session`` as a dict.

File: portal/deps/session.py
"""


from __future__ import annotations

from fastapi import Request

SESSION_USER_KEY = "username"


def session_username(request: Request) -> str | None:
    username = request.session.get(SESSION_USER_KEY)
    return username if isinstance(username, str) and username else None


def start_session(request: Request, username: str) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = username


def end_session(request: Request) -> None:
    request.session.clear()
