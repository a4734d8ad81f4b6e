"""
Infrastructure module: database sessions and request correlation.
"""

from menu_shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    get_db_context,
    safe_commit,
    set_rls_context,
)

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "safe_commit",
    "set_rls_context",
]
