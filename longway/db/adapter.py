"""Storage adapter contract and backend selection.

Repositories talk to one ``StorageAdapter`` and never know which engine sits
behind it. Statements are written once with ``?`` placeholders; each backend
translates them to its native syntax.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ContextManager, Optional, Sequence

from longway.config import StorageConfig
from longway.errors import ConfigurationError

Params = Sequence[Any]


@dataclass(frozen=True)
class ExecuteResult:
    rows_affected: int


class StorageAdapter(ABC):
    """Uniform query/execute/transaction contract."""

    dialect: str

    @abstractmethod
    def query(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        """Run a read and return every matching row."""

    @abstractmethod
    def query_one(self, sql: str, params: Params = ()) -> Optional[dict[str, Any]]:
        """Run a read expected to match at most one row; ``None`` when absent."""

    @abstractmethod
    def execute(self, sql: str, params: Params = ()) -> ExecuteResult:
        """Run an INSERT/UPDATE/DELETE and report how many rows changed."""

    @abstractmethod
    def transaction(self) -> ContextManager["StorageAdapter"]:
        """Yield a handle whose statements commit together or not at all.

        If the ``with`` block raises, everything issued through the handle is
        rolled back and the original exception propagates unchanged.
        """

    @abstractmethod
    def init_schema(self) -> None:
        """Create tables and indexes (idempotent)."""

    @abstractmethod
    def close(self) -> None:
        ...


def create_adapter(config: StorageConfig) -> StorageAdapter:
    """Instantiate the backend chosen by *config*."""
    if config.backend == "postgres":
        from longway.db.postgres import PostgresAdapter
        return PostgresAdapter(config.database_url)  # type: ignore[arg-type]

    if config.readonly_fs:
        raise ConfigurationError(
            "SQLite cannot be used on a read-only or ephemeral filesystem. "
            "Set DATABASE_URL to use PostgreSQL."
        )
    from longway.db.sqlite import SqliteAdapter
    return SqliteAdapter(config.database_path)
