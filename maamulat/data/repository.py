"""
Repository — the single place where SQL lives.

Each store (tasks, user progress, achievements) is saved as one JSON document
keyed by its storage name. Services call save_document() after every
mutation; they never see SQL or sqlite errors.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

MAAMULAT_STORAGE = "maamulat-storage"
USER_STORAGE = "user-storage"
ACHIEVEMENT_STORAGE = "achievement-storage"

# helper: parse ISO datetime strings from SQLite
_parse_dt = lambda s: datetime.fromisoformat(s) if s else None


class Repository:
    """Data-access layer wrapping a sqlite3 connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        # payloads whose last write failed; retried on the next save
        self._pending: Dict[str, str] = {}

    # ── Documents ───────────────────────────────────────────────────────────

    def load_document(self, key: str) -> Optional[dict]:
        """Return the stored document, or None if missing or unreadable."""
        if key in self._pending:
            return json.loads(self._pending[key])
        row = self.conn.execute(
            "SELECT payload FROM documents WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        try:
            data = json.loads(row["payload"])
        except json.JSONDecodeError:
            logger.warning("Corrupt document %r, ignoring stored copy.", key)
            return None
        return data if isinstance(data, dict) else None

    def save_document(self, key: str, data: dict) -> bool:
        """Write a full snapshot. Returns False if the write failed."""
        self._pending[key] = json.dumps(data, ensure_ascii=False)
        try:
            self._flush()
        except sqlite3.Error:
            logger.exception("Could not persist %r; will retry on next save.", key)
            return False
        return True

    def delete_document(self, key: str) -> None:
        self._pending.pop(key, None)
        self.conn.execute("DELETE FROM documents WHERE key = ?", (key,))
        self.conn.commit()
        logger.info("Deleted document %r", key)

    def list_documents(self) -> List[dict]:
        """Keys and last-update times of all stored documents."""
        rows = self.conn.execute(
            "SELECT key, updated_at FROM documents ORDER BY key"
        ).fetchall()
        return [
            {"key": r["key"], "updated_at": _parse_dt(r["updated_at"])}
            for r in rows
        ]

    def has_pending_writes(self) -> bool:
        return bool(self._pending)

    def reset_all_data(self) -> None:
        """Delete all data. Requires explicit confirmation from the caller."""
        self._pending.clear()
        self.conn.execute("DELETE FROM documents")
        self.conn.commit()
        logger.warning("All data has been reset.")

    # ── internal ────────────────────────────────────────────────────────────

    def _flush(self) -> None:
        now = datetime.now().isoformat(timespec="seconds")
        for key, payload in list(self._pending.items()):
            self.conn.execute(
                "INSERT INTO documents (key, payload, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET payload = excluded.payload, "
                "updated_at = excluded.updated_at",
                (key, payload, now),
            )
        self.conn.commit()
        self._pending.clear()


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   The Repository is the ONLY place raw SQL queries live. Services hand it
#   whole-store snapshots as dicts and get dicts back.
#
# Key methods:
#   - load_document() / save_document(): JSON in, JSON out, keyed by the
#     store name (maamulat-storage, user-storage, achievement-storage).
#   - A failed write keeps the payload in _pending so the next save (of any
#     store) flushes it; in-memory service state is never rolled back.
#
# Data flow:
#   Service mutation -> state.to_dict() -> save_document() -> UPSERT row
