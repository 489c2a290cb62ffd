"""Database module for StorePilot."""

from storepilot.db.database import (
    Base,
    dispose_engine,
    get_db,
    get_engine,
    get_session_local,
    init_db,
    verify_database_connection,
)
from storepilot.db.models import AuditLog, Store, StoreProgress, User

__all__ = [
    "Base",
    "get_db",
    "get_engine",
    "get_session_local",
    "init_db",
    "dispose_engine",
    "verify_database_connection",
    "User",
    "Store",
    "StoreProgress",
    "AuditLog",
]
