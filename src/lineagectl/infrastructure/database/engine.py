"""Database engine setup for SQLite with WAL mode.

SQLite holds the project store at ``{workspace}/.lineagectl/lineagectl.db``.
SQLAlchemy Core (not ORM) is used: the store reads and writes whole JSON
blobs and a flat index, so there is nothing for an ORM to map.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from lineagectl.infrastructure.database.schema import metadata


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode.

    Connections may be used from worker threads; the async store runs
    blocking SQL through ``asyncio.to_thread``.
    """
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


def init_database(db_path: Path) -> Engine:
    """Create the store directory and tables, returning a ready engine.

    Idempotent: safe to call on an existing store.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
