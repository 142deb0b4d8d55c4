"""Database session management with connection pooling"""

from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from velocity_limits.config import settings
from velocity_limits.infrastructure.database.models import Base


def create_db_engine(database_url: str, timeout_seconds: float) -> Engine:
    """Build an engine whose store calls give up after timeout_seconds instead of hanging"""
    if database_url.startswith("sqlite"):
        # Busy timeout bounds waits on SQLite's database lock
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": timeout_seconds},
        )

    connect_args: Dict[str, Any] = {}
    if database_url.startswith("postgresql"):
        connect_args = {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": f"-c statement_timeout={int(timeout_seconds * 1000)}",
        }

    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
        pool_timeout=timeout_seconds,
        connect_args=connect_args,
    )


engine = create_db_engine(settings.database_url, settings.store_timeout_seconds)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create ledger tables if they do not exist yet"""
    Base.metadata.create_all(bind=bind)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
