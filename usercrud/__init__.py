"""Core package for the user directory service."""

from __future__ import annotations

from typing import Any

from .database import Database, resolve_database_path
from .service import UserService
from .storage import InMemoryUserStore, UserStore


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the query/mutation API application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "Database",
    "InMemoryUserStore",
    "UserService",
    "UserStore",
    "resolve_database_path",
    "create_app",
]
