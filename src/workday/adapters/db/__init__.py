"""Application database adapters."""

from workday.adapters.db.app_db import AppDatabase
from workday.adapters.db.memory import InMemoryStore

__all__ = ["AppDatabase", "InMemoryStore"]
