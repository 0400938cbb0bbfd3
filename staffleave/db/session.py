"""
Database session management
"""
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from staffleave.core.config import settings
from staffleave.db.base import Base


def _connect_args(database_url: str) -> Dict[str, Any]:
    """Driver-level timeouts so a stalled store surfaces as OperationalError"""
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS}
    if database_url.startswith("postgresql"):
        timeout_ms = int(settings.DB_TIMEOUT_SECONDS * 1000)
        return {
            "connect_timeout": max(1, int(settings.DB_TIMEOUT_SECONDS)),
            "options": f"-c statement_timeout={timeout_ms}",
        }
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=False,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_sqlite_tables() -> None:
    """Create all tables for local SQLite runs (PostgreSQL uses alembic)"""
    # Importing the package registers every model on Base.metadata
    import staffleave.models  # noqa: F401

    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
