"""
SQLite storage file for the three Maamulat stores.

Owns the connection and the single ``documents`` table; the Repository does
all reads and writes.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent.parent / "maamulat.db"
MEMORY = ":memory:"

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Documents: one JSON snapshot per store ------------------------------------
CREATE TABLE IF NOT EXISTS documents (
    key         TEXT    PRIMARY KEY,
    payload     TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL DEFAULT (datetime('now'))
);
"""


class Database:
    """Opens the store file on demand. Usable as a context manager."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> sqlite3.Connection:
        return self.connect()

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def in_memory(self) -> bool:
        return str(self.db_path) == MEMORY

    def connect(self) -> sqlite3.Connection:
        if self.conn is not None:
            return self.conn
        if not self.in_memory:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        logger.info("Opening store file %s", self.db_path)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        if not self.in_memory:
            conn.execute("PRAGMA journal_mode=WAL")
        self.conn = conn
        self._ensure_schema()
        return conn

    def schema_version(self) -> int:
        return self.connect().execute("PRAGMA user_version").fetchone()[0]

    def close(self) -> None:
        if self.conn is None:
            return
        self.conn.close()
        self.conn = None
        logger.debug("Store file %s closed.", self.db_path)

    def _ensure_schema(self) -> None:
        found = self.conn.execute("PRAGMA user_version").fetchone()[0]
        if found > SCHEMA_VERSION:
            logger.warning("Store file schema v%d is newer than v%d.", found, SCHEMA_VERSION)
        self.conn.executescript(SCHEMA_SQL)
        if found < SCHEMA_VERSION:
            self.conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        self.conn.commit()


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Opens the SQLite file and makes sure the documents table exists. Nothing
#   else; queries belong to the Repository.
#
# Key pieces:
#   - PRAGMA user_version records the schema version of the file.
#   - WAL journaling for files on disk; skipped for ":memory:" databases.
#
# Data flow:
#   MaamulatApp.from_config() -> Database.connect() -> Repository(conn)
