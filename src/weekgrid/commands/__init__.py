"""CLI commands for weekgrid."""

from .init import init
from .session import session
from .types import types
from .week import week

__all__ = [
    "init",
    "session",
    "types",
    "week",
]
