"""SQLite-backed GUID -> payload cache shared across extraction runs."""
from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Optional

import orjson

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS assets (
    guid TEXT PRIMARY KEY,
    source TEXT,
    payload BLOB NOT NULL
)
"""


class AssetCache:
    """
    Persistent read-through store for resolved assets.

    Rows are never updated once written: the payload for a GUID is a pure
    function of the corpus, so concurrent writers racing on the same GUID
    write the same bytes and INSERT OR IGNORE keeps the first one.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self.db_path), timeout=30, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(SCHEMA)
        self._conn.commit()

    def get(self, guid: str) -> Optional[tuple[Any, Optional[str]]]:
        """Return (payload, source) for a cached GUID, or None."""
        with self._lock:
            row = self._conn.execute(
                "SELECT payload, source FROM assets WHERE guid = ?", (guid,)
            ).fetchone()
        if row is None:
            return None
        try:
            return orjson.loads(row[0]), row[1]
        except orjson.JSONDecodeError as e:
            logger.warning("Ignoring corrupt cache row for %s: %s", guid, e)
            return None

    def put(self, guid: str, payload: Any, source: Optional[str] = None) -> None:
        blob = orjson.dumps(payload)
        with self._lock:
            self._conn.execute(
                "INSERT OR IGNORE INTO assets (guid, source, payload) VALUES (?, ?, ?)",
                (guid, source, blob),
            )
            self._conn.commit()

    def __len__(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM assets").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "AssetCache":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
