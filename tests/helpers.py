"""Shared builders for the test suite."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

from longway.db.database import Database
from longway.db.sqlite import SqliteAdapter


class TempDatabase(Database):
    """Database in a private temporary directory, removed again on close()."""

    def __init__(self):
        self.tmpdir = tempfile.TemporaryDirectory(prefix="longway-test-")
        super().__init__(SqliteAdapter(Path(self.tmpdir.name) / "longway.db"))

    def close(self) -> None:
        super().close()
        self.tmpdir.cleanup()


def make_db() -> Database:
    """Return a Database backed by a fresh temporary SQLite file."""
    return TempDatabase()


def stop_fields(**overrides: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = dict(
        name="Sagrada Familia",
        type="stop",
        latitude=41.4036,
        longitude=2.1744,
    )
    defaults.update(overrides)
    return defaults
