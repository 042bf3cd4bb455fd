"""Expose constructed client wrappers."""

from .storage import SQLiteStorage

__all__ = ["SQLiteStorage"]
