"""
Database utilities and engine management.

This module provides the core database engine that can be used by any layer:
- API routes
- Repositories
- Scripts

No dependencies on higher-level modules (api, services, agents).
"""

from functools import lru_cache
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from config.settings import settings


def normalize_database_url(db_url: str) -> str:
    # psycopg (v3) driver for postgres
    if db_url.startswith("postgresql://"):
        return db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    if db_url.startswith("postgres://"):
        return db_url.replace("postgres://", "postgresql+psycopg://", 1)
    return db_url


def build_engine(db_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite gets a thread-agnostic connection so FastAPI worker threads can
    share it. Postgres gets a small pool and a statement timeout.
    """
    db_url = normalize_database_url(db_url)

    if db_url.startswith("sqlite"):
        return create_engine(db_url, connect_args={"check_same_thread": False})

    engine = create_engine(
        db_url,
        connect_args={
            "prepare_threshold": None,  # Disable prepared statements for pooler compatibility
            "connect_timeout": 10,
        },
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=3,
        max_overflow=2,
        pool_timeout=30,
    )

    @event.listens_for(engine, "connect")
    def set_statement_timeout(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("SET statement_timeout = '15000'")
        cursor.close()

    return engine


@lru_cache()
def get_engine() -> Engine:
    """
    Get cached database engine.

    Returns:
        SQLAlchemy engine singleton built from settings.DATABASE_URL
    """
    return build_engine(settings.DATABASE_URL)


def init_db(engine: Engine = None) -> None:
    """Create missing tables. Alembic migrations remain the source of truth for Postgres."""
    import models  # noqa: F401  registers tables on SQLModel.metadata

    SQLModel.metadata.create_all(engine or get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Yields:
        SQLModel Session that auto-closes after request

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            ...
    """
    engine = get_engine()
    with Session(engine) as session:
        yield session
