# app/db/session.py

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from app.core.config import settings


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """
    SQLite has no row locks, so every transaction takes the database write lock
    up front (BEGIN IMMEDIATE). Two bookings can then never both scan before
    either inserts.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # stop the driver from issuing its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async engine with the locking and timeout setup for its backend."""
    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            connect_args={"timeout": settings.SQLITE_BUSY_TIMEOUT},
            **kwargs,
        )
        _serialize_sqlite_writers(engine)
        return engine

    return create_async_engine(
        url,
        pool_pre_ping=True,   # avoids stale connection errors
        connect_args={
            "server_settings": {"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)},
        },
        **kwargs,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        expire_on_commit=False,  # keep objects usable after commit
        class_=AsyncSession,
    )


# 1) Engine: one per app
engine = build_engine(settings.async_db_uri)

# 2) Session factory: creates short-lived sessions per request
AsyncSessionLocal = build_session_factory(engine)

# 3) Declarative Base: all models inherit from this
class Base(DeclarativeBase):
    pass

