from __future__ import annotations

"""
SQLite persistence for marketplace state
========================================

Stores a full `MarketState` snapshot as rows of `(tbl, key, value)` with JSON
payloads, plus a small `meta` table for schema version and host-side values
(the CLI keeps its last block height there).

Design notes
------------
- Single-writer, many-reader friendly via WAL.
- `save()` replaces the stored snapshot inside one SQLite transaction, so a
  crash mid-save leaves the previous snapshot intact.
- Keys and values go through `MarketState.dump()` / `MarketState.load()`; this
  module knows nothing about listings or rentals.

Example
-------
    db = MarketStateDB("market.db")
    db.save(market.snapshot())
    state = db.load()
"""

import contextlib
import json
import sqlite3
import threading
from typing import Any, Dict, Iterator, List, Optional

from ..state.store import MarketState


def _to_json_text(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, sort_keys=True)


class MarketStateDB:
    """Tiny SQLite adapter holding one MarketState snapshot."""

    SCHEMA_VERSION = 1

    def __init__(self, path: str) -> None:
        uri = path.startswith("file:")
        self._db = sqlite3.connect(
            path,
            uri=uri,
            check_same_thread=False,
            isolation_level=None,  # autocommit; transactions managed in tx()
        )
        self._db.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._apply_pragmas()
        with self.tx():
            self._migrate()

    # -- lifecycle -------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "MarketStateDB":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @contextlib.contextmanager
    def tx(self) -> Iterator[None]:
        with self._lock:
            self._db.execute("BEGIN IMMEDIATE")
            try:
                yield
            except BaseException:
                self._db.execute("ROLLBACK")
                raise
            self._db.execute("COMMIT")

    def _apply_pragmas(self) -> None:
        cur = self._db.cursor()
        cur.execute("PRAGMA journal_mode=WAL")
        cur.execute("PRAGMA synchronous=NORMAL")
        cur.close()

    def _migrate(self) -> None:
        cur = self._db.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS state_rows (
                tbl   TEXT NOT NULL,
                key   TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (tbl, key)
            )
            """
        )
        cur.execute(
            "INSERT OR IGNORE INTO meta(key, value) VALUES('schema_version', ?)",
            (str(self.SCHEMA_VERSION),),
        )
        cur.close()

    # -- meta --------------------------------------------------------------------

    def get_meta(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            row = self._db.execute("SELECT value FROM meta WHERE key=?", (key,)).fetchone()
        return row["value"] if row else default

    def set_meta(self, key: str, value: str) -> None:
        with self.tx():
            self._db.execute(
                "INSERT INTO meta(key, value) VALUES(?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (key, str(value)),
            )

    # -- snapshot ----------------------------------------------------------------

    def save(self, state: MarketState) -> int:
        """Replace the stored snapshot. Returns the number of rows written."""
        dumped = state.dump()
        rows = [
            (tbl, _to_json_text(k), _to_json_text(v))
            for tbl, pairs in dumped.items()
            for k, v in pairs
        ]
        with self.tx():
            self._db.execute("DELETE FROM state_rows")
            self._db.executemany("INSERT INTO state_rows(tbl, key, value) VALUES(?, ?, ?)", rows)
        return len(rows)

    def load(self) -> MarketState:
        data: Dict[str, List[List[Any]]] = {}
        with self._lock:
            cur = self._db.execute("SELECT tbl, key, value FROM state_rows")
            for row in cur.fetchall():
                data.setdefault(row["tbl"], []).append([json.loads(row["key"]), json.loads(row["value"])])
        return MarketState.load(data)

    def is_empty(self) -> bool:
        with self._lock:
            row = self._db.execute("SELECT COUNT(*) AS n FROM state_rows").fetchone()
        return int(row["n"]) == 0


__all__ = ["MarketStateDB"]
