"""Database engine initialization, SQLite WAL mode by default.

Usage:
    engine = init_db()                       # data/rebase_bot.db
    engine = init_db("postgresql://...")     # any SQLAlchemy URL
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine as SAEngine

from rebase_bot.persistence.schema import metadata

log = logging.getLogger("rb.persistence")

DEFAULT_DB_PATH = "data/rebase_bot.db"


def _set_sqlite_wal(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def init_db(url: str | None = None) -> SAEngine:
    """Create the engine and the ledger table if needed."""
    if not url:
        db_path = Path(DEFAULT_DB_PATH)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{db_path}"

    engine = create_engine(url, pool_pre_ping=True)

    if url.startswith("sqlite") and ":memory:" not in url:
        event.listen(engine, "connect", _set_sqlite_wal)

    metadata.create_all(engine)
    log.info("DB │ initialized at %s", url)
    return engine
