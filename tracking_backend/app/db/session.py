"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support (PostgreSQL in production, SQLite
for local development and tests).
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from tracking_backend.app.core.config import settings


def _engine_options(database_url: str) -> dict:
    # SQLite drivers reject the pool sizing arguments
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    future=True,
    **_engine_options(settings.database_url),
)


def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints (and so ON DELETE CASCADE) for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if settings.database_url.startswith("sqlite"):
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
