"""PostgreSQL backend for networked / serverless deployments."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import psycopg2
import psycopg2.extras

from longway.db.adapter import ExecuteResult, Params, StorageAdapter
from longway.db.schema import POSTGRES, schema_statements
from longway.errors import StorageFailure

logger = logging.getLogger(__name__)


def to_pyformat(sql: str) -> str:
    """Rewrite ``?`` placeholders to psycopg2's ``%s``.

    Question marks inside quoted literals and identifiers are left alone.
    Every literal ``%`` is doubled because psycopg2 scans the whole string.
    """
    out: list[str] = []
    quote: Optional[str] = None
    for ch in sql:
        if ch == "%":
            out.append("%%")
            continue
        if quote:
            if ch == quote:
                quote = None
            out.append(ch)
        elif ch in ("'", '"'):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
        else:
            out.append(ch)
    return "".join(out)


class PostgresAdapter(StorageAdapter):
    """psycopg2 connection in autocommit mode with explicit BEGIN/COMMIT."""

    dialect = POSTGRES

    def __init__(self, dsn: str):
        self.dsn = dsn
        self._conn: Optional[Any] = None
        self._lock = threading.RLock()
        self._tx_depth = 0

    # -- connection lifecycle --------------------------------------------------

    def connection(self):
        if self._conn is None or self._conn.closed:
            try:
                conn = psycopg2.connect(
                    self.dsn, cursor_factory=psycopg2.extras.RealDictCursor
                )
            except psycopg2.Error as e:
                raise StorageFailure(str(e)) from e
            conn.autocommit = True
            self._conn = conn
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None and not self._conn.closed:
                self._conn.close()
            self._conn = None

    def init_schema(self) -> None:
        with self.transaction():
            with self._lock:
                cur = self.connection().cursor()
                try:
                    for statement in schema_statements(POSTGRES):
                        cur.execute(statement)
                except psycopg2.Error as e:
                    raise StorageFailure(str(e)) from e
                finally:
                    cur.close()

    # -- low-level query helpers -----------------------------------------------

    def _run(self, sql: str, params: Params, fetch: str):
        with self._lock:
            cur = self.connection().cursor()
            try:
                cur.execute(to_pyformat(sql), tuple(params))
                if fetch == "all":
                    return [dict(r) for r in cur.fetchall()]
                if fetch == "one":
                    row = cur.fetchone()
                    return dict(row) if row else None
                return cur.rowcount
            except psycopg2.Error as e:
                raise StorageFailure(str(e)) from e
            finally:
                cur.close()

    def query(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        return self._run(sql, params, "all")

    def query_one(self, sql: str, params: Params = ()) -> Optional[dict[str, Any]]:
        return self._run(sql, params, "one")

    def execute(self, sql: str, params: Params = ()) -> ExecuteResult:
        return ExecuteResult(rows_affected=max(self._run(sql, params, "none"), 0))

    # -- transaction helpers ---------------------------------------------------

    def _raw(self, statement: str) -> None:
        cur = self.connection().cursor()
        try:
            cur.execute(statement)
        except psycopg2.Error as e:
            raise StorageFailure(str(e)) from e
        finally:
            cur.close()

    @contextmanager
    def transaction(self) -> Iterator[StorageAdapter]:
        with self._lock:
            if self._tx_depth:
                self._tx_depth += 1
                try:
                    yield self
                finally:
                    self._tx_depth -= 1
                return

            self._raw("BEGIN")
            self._tx_depth = 1
            try:
                yield self
                self._raw("COMMIT")
            except Exception:
                self._rollback()
                raise
            finally:
                self._tx_depth = 0

    def _rollback(self) -> None:
        try:
            self._raw("ROLLBACK")
        except StorageFailure:
            logger.exception("ROLLBACK failed")
