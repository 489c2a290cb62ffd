"""SQLAlchemy engine and session management."""

from __future__ import annotations

from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from storepilot.config import get_settings
from storepilot.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all models."""


_engine: Optional[Engine] = None
_session_local: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Get or create the engine for the configured database URL."""
    global _engine
    if _engine is None:
        database_url = get_settings().database_url
        connect_args: dict = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            db_file = make_url(database_url).database
            if db_file and db_file != ":memory:":
                Path(db_file).parent.mkdir(parents=True, exist_ok=True)
        _engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    return _engine


def get_session_local() -> sessionmaker:
    global _session_local
    if _session_local is None:
        _session_local = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _session_local


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a database session."""
    db = get_session_local()()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create missing tables."""
    # Import models so they are registered on Base.metadata
    from storepilot.db import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def verify_database_connection() -> bool:
    """Check the database answers a trivial query."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.error("Database connection check failed", data={"error": str(exc)})
        return False


def dispose_engine() -> None:
    """Dispose the engine so the next call picks up fresh settings."""
    global _engine, _session_local
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_local = None
