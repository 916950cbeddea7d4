"""Database layer for weekgrid."""

from .engine import get_db_path, init_db
from .repositories import StateRepository

__all__ = [
    "get_db_path",
    "init_db",
    "StateRepository",
]
