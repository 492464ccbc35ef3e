"""
core/database.py -- Engine construction shared by UserStore and TaskStore.

SQLAlchemy Core keeps the stores database-agnostic: swapping SQLite for
PostgreSQL is a DATABASE_URL change, not a rewrite. The SQLite-specific
tweaks live here so each store does not repeat them.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _ensure_sqlite_dir(db_url: str) -> None:
    # sqlite:///relative/or/absolute.db -- in-memory and URI forms are skipped.
    if ":///" not in db_url:
        return
    path = db_url.split(":///", 1)[1]
    if not path or path.startswith(("file:", ":memory:")) or "?" in path:
        return
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def make_engine(db_url: str) -> Engine:
    """Create an engine, applying the SQLite settings every store relies on.

    check_same_thread=False: FastAPI runs sync handlers in a thread pool, so a
    pooled connection may be used from a thread other than its creator.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        _ensure_sqlite_dir(db_url)
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
