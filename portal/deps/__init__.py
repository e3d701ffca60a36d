"""Beginner-friendly overview for this module.

WHAT: FastAPI dependencies shared by the routers.
WHEN: Resolved by FastAPI on every request that declares them.
WHY: Authentication lives in one place instead of in every endpoint.
HOW: See ``auth.py`` for the identity resolution order.

File: portal/deps/__init__.py
"""
