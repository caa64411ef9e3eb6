"""Engine/session helpers for the relational store."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from app.core.config import settings


class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores REFERENCES clauses unless enabled per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, *, echo: bool = False) -> Engine:
    is_sqlite = url.startswith("sqlite")
    connect_args = {}
    if is_sqlite:
        # Sync handlers run in FastAPI's thread pool.
        connect_args["check_same_thread"] = False
    engine = create_engine(url, echo=echo, pool_pre_ping=True, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


@lru_cache
def get_engine() -> Engine:
    url = (settings.database.url or "").strip()
    if not url:
        raise RuntimeError("DB_URL must be configured.")
    return build_engine(url, echo=settings.database.echo)


@lru_cache
def get_sessionmaker() -> sessionmaker[Session]:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request.

    Creating the session does not open a connection; nothing touches the
    database until the first query.
    """
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()
