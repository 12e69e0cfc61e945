"""Core utilities for the users GraphQL service."""

from __future__ import annotations

from typing import Any

from .database import Database, StoreError, resolve_database_path
from .events import USER_CREATED, EventBus


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the GraphQL application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "Database",
    "EventBus",
    "StoreError",
    "USER_CREATED",
    "create_app",
    "resolve_database_path",
]
