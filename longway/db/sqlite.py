"""SQLite backend for self-hosted installs (one database file on disk)."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from longway.db.adapter import ExecuteResult, Params, StorageAdapter
from longway.db.schema import SQLITE, schema_statements
from longway.errors import StorageFailure

logger = logging.getLogger(__name__)


class SqliteAdapter(StorageAdapter):
    """
    SQLite wrapper with explicit transaction support.

    The connection runs in autocommit mode; ``transaction()`` issues
    BEGIN/COMMIT itself and rolls back on failure. One connection is shared
    by the whole process, so statements are serialised through a re-entrant
    lock; write-write conflicts between processes are left to SQLite's WAL.
    """

    dialect = SQLITE

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._tx_depth = 0

    # -- connection lifecycle --------------------------------------------------

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._ensure_dir()
            conn = sqlite3.connect(
                str(self.path), check_same_thread=False, isolation_level=None
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("PRAGMA journal_mode = WAL")
            self._conn = conn
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn:
                self._conn.close()
                self._conn = None

    def init_schema(self) -> None:
        """Create all tables (idempotent)."""
        with self.transaction() as tx:
            for statement in schema_statements(SQLITE):
                tx.execute(statement)

    # -- low-level query helpers -----------------------------------------------

    def _run(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        try:
            return self.connection().execute(sql, tuple(params))
        except sqlite3.Error as e:
            raise StorageFailure(str(e)) from e

    def query(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        with self._lock:
            rows = self._run(sql, params).fetchall()
        return [dict(r) for r in rows]

    def query_one(self, sql: str, params: Params = ()) -> Optional[dict[str, Any]]:
        with self._lock:
            row = self._run(sql, params).fetchone()
        return dict(row) if row else None

    def execute(self, sql: str, params: Params = ()) -> ExecuteResult:
        with self._lock:
            cursor = self._run(sql, params)
        return ExecuteResult(rows_affected=max(cursor.rowcount, 0))

    # -- transaction helpers ---------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[StorageAdapter]:
        """Commits on success, rolls back on exception."""
        with self._lock:
            if self._tx_depth:
                # Nested use joins the outer transaction
                self._tx_depth += 1
                try:
                    yield self
                finally:
                    self._tx_depth -= 1
                return

            self._run("BEGIN")
            self._tx_depth = 1
            try:
                yield self
                self._run("COMMIT")
            except Exception:
                self._rollback()
                raise
            finally:
                self._tx_depth = 0

    def _rollback(self) -> None:
        try:
            self.connection().execute("ROLLBACK")
        except sqlite3.Error:
            # The engine may already have aborted the transaction itself
            logger.exception("ROLLBACK failed on %s", self.path)
