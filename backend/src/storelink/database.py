"""Database engine and session management.

PostgreSQL in deployment; SQLite (file or in-memory) for local runs and
tests. Sessions are short-lived: one per request, one per task run.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import settings


def build_engine(url: str) -> Engine:
    """Create an engine with pool settings suited to the backend."""
    engine_kwargs: Dict[str, Any] = {"pool_pre_ping": True, "echo": False}

    if url.startswith("sqlite"):
        # Sessions may be used from FastAPI's worker threads
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10

    return create_engine(url, **engine_kwargs)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session for scripts and shell use; commits on success.

    Usage:
        with get_db_session() as session:
            session.add(Seller(name="Corner Shop"))
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session.

    Services commit their own units of work; the session is closed after the
    response is sent.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
