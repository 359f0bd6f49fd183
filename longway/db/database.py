"""Database handle owned by the application's composition root.

Wraps the one live ``StorageAdapter`` and guarantees the schema exists before
the first statement runs. Repositories receive this handle; nothing in the
package keeps a module-level instance.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from longway.config import StorageConfig, get_storage_config
from longway.db.adapter import ExecuteResult, Params, StorageAdapter, create_adapter

logger = logging.getLogger(__name__)


class Database:
    """Lazily-initialised facade over a storage adapter."""

    def __init__(self, adapter: StorageAdapter):
        self.adapter = adapter
        self._init_lock = threading.Lock()
        self._ready = False
        self._init_error: Optional[BaseException] = None

    @classmethod
    def from_config(cls, config: Optional[StorageConfig] = None) -> "Database":
        return cls(create_adapter(config or get_storage_config()))

    @property
    def dialect(self) -> str:
        return self.adapter.dialect

    # -- schema ----------------------------------------------------------------

    def ensure_schema(self) -> None:
        """Run schema DDL exactly once.

        Concurrent callers wait on the same attempt. A failed attempt is kept
        and re-raised to every later caller.
        """
        if self._ready:
            return
        with self._init_lock:
            if self._init_error is not None:
                raise self._init_error
            if self._ready:
                return
            try:
                self.adapter.init_schema()
            except Exception as e:
                logger.error("Failed to initialize %s schema: %s", self.dialect, e)
                self._init_error = e
                raise
            self._ready = True
            logger.info("Initialized %s schema", self.dialect)

    def close(self) -> None:
        self.adapter.close()

    # -- statements ------------------------------------------------------------

    def query(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        self.ensure_schema()
        return self.adapter.query(sql, params)

    def query_one(self, sql: str, params: Params = ()) -> Optional[dict[str, Any]]:
        self.ensure_schema()
        return self.adapter.query_one(sql, params)

    def execute(self, sql: str, params: Params = ()) -> ExecuteResult:
        self.ensure_schema()
        return self.adapter.execute(sql, params)

    @contextmanager
    def transaction(self) -> Iterator[StorageAdapter]:
        """ACID transaction: commits on success, rolls back on exception."""
        self.ensure_schema()
        with self.adapter.transaction() as tx:
            yield tx
