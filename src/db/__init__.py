"""Database session management."""

from src.db.session import AsyncSessionLocal, engine, get_db, get_db_context

__all__ = [
    "engine",
    "AsyncSessionLocal",
    "get_db",
    "get_db_context",
]
