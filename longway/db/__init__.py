"""Database layer: storage adapters, lazily-initialised handle, repositories."""

from longway.db.adapter import ExecuteResult, StorageAdapter, create_adapter
from longway.db.database import Database
from longway.db.schema import schema_statements

__all__ = ["Database", "ExecuteResult", "StorageAdapter", "create_adapter", "schema_statements"]
