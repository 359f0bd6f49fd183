"""Unit tests for the storage layer: adapter contract, schema and the
lazily-initialised Database handle.

Every test uses a fresh temporary SQLite file so tests are isolated.
"""

from __future__ import annotations

import threading
import unittest
from pathlib import Path
from unittest import mock

from longway.config import StorageConfig
from longway.db.adapter import create_adapter
from longway.db.database import Database
from longway.db.postgres import PostgresAdapter
from longway.db.schema import POSTGRES, SQLITE, now_sql, schema_statements
from longway.db.sqlite import SqliteAdapter
from longway.errors import ConfigurationError, StorageFailure

from helpers import make_db


# ===========================================================================
# 1. Schema
# ===========================================================================

class TestSchema(unittest.TestCase):
    def setUp(self):
        self.db = make_db()

    def tearDown(self):
        self.db.close()

    def test_close_removes_database_files(self):
        self.db.query("SELECT 1")
        path = self.db.adapter.path
        self.assertTrue(path.exists())
        self.db.close()
        self.assertFalse(path.parent.exists())

    def test_tables_created(self):
        tables = self.db.query("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
        names = {t["name"] for t in tables}
        self.assertTrue({"trips", "stops", "conversations", "settings"} <= names)

    def test_indexes_created(self):
        rows = self.db.query("SELECT name FROM sqlite_master WHERE type='index'")
        names = {r["name"] for r in rows}
        for idx in ("idx_stops_trip_id", "idx_stops_order", "idx_conversations_trip_id"):
            self.assertIn(idx, names)

    def test_init_schema_idempotent(self):
        self.db.ensure_schema()
        self.db.adapter.init_schema()
        self.db.adapter.init_schema()

    def test_foreign_keys_enforced(self):
        with self.assertRaises(StorageFailure):
            self.db.execute(
                'INSERT INTO stops (id, trip_id, name, type, latitude, longitude, "order") '
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                ("s1", "no-such-trip", "X", "stop", 0.0, 0.0, 0),
            )

    def test_default_timestamp_shape(self):
        self.db.execute("INSERT INTO trips (id, name) VALUES (?, ?)", ("t1", "Defaults"))
        row = self.db.query_one("SELECT created_at FROM trips WHERE id = ?", ("t1",))
        self.assertRegex(row["created_at"], r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")

    def test_dialect_statements(self):
        pg = "\n".join(schema_statements(POSTGRES))
        lite = "\n".join(schema_statements(SQLITE))
        self.assertIn("DOUBLE PRECISION", pg)
        self.assertIn(now_sql(POSTGRES), pg)
        self.assertIn(now_sql(SQLITE), lite)
        self.assertIn("ON DELETE CASCADE", lite)


# ===========================================================================
# 2. Adapter contract
# ===========================================================================

class TestSqliteAdapter(unittest.TestCase):
    def setUp(self):
        self.db = make_db()
        self.db.execute("INSERT INTO trips (id, name) VALUES (?, ?)", ("t1", "Trip"))

    def tearDown(self):
        self.db.close()

    def test_query_one_absent(self):
        self.assertIsNone(self.db.query_one("SELECT * FROM trips WHERE id = ?", ("nope",)))

    def test_execute_reports_rows_affected(self):
        result = self.db.execute("UPDATE trips SET name = ? WHERE id = ?", ("Renamed", "t1"))
        self.assertEqual(result.rows_affected, 1)
        result = self.db.execute("UPDATE trips SET name = ? WHERE id = ?", ("Renamed", "nope"))
        self.assertEqual(result.rows_affected, 0)

    def test_driver_error_wrapped(self):
        with self.assertRaises(StorageFailure) as ctx:
            self.db.query("SELECT * FROM no_such_table")
        self.assertIsNotNone(ctx.exception.__cause__)

    def test_transaction_commits(self):
        with self.db.transaction() as tx:
            tx.execute("INSERT INTO trips (id, name) VALUES (?, ?)", ("t2", "Second"))
            tx.execute("UPDATE trips SET name = ? WHERE id = ?", ("First", "t1"))
        self.assertIsNotNone(self.db.query_one("SELECT id FROM trips WHERE id = ?", ("t2",)))
        self.assertEqual(
            self.db.query_one("SELECT name FROM trips WHERE id = ?", ("t1",))["name"], "First"
        )

    def test_transaction_rolls_back_and_reraises(self):
        class Boom(Exception):
            pass

        with self.assertRaises(Boom):
            with self.db.transaction() as tx:
                tx.execute("INSERT INTO trips (id, name) VALUES (?, ?)", ("t2", "Second"))
                raise Boom()
        self.assertIsNone(self.db.query_one("SELECT id FROM trips WHERE id = ?", ("t2",)))

    def test_failed_second_statement_undoes_first(self):
        with self.assertRaises(StorageFailure):
            with self.db.transaction() as tx:
                tx.execute("INSERT INTO trips (id, name) VALUES (?, ?)", ("t2", "Second"))
                tx.execute("UPDATE no_such_table SET x = 1")
        self.assertIsNone(self.db.query_one("SELECT id FROM trips WHERE id = ?", ("t2",)))

    def test_nested_transaction_joins_outer(self):
        with self.assertRaises(RuntimeError):
            with self.db.transaction() as outer:
                outer.execute("INSERT INTO trips (id, name) VALUES (?, ?)", ("t2", "Outer"))
                with outer.transaction() as inner:
                    inner.execute("INSERT INTO trips (id, name) VALUES (?, ?)", ("t3", "Inner"))
                raise RuntimeError("abort outer")
        rows = self.db.query("SELECT id FROM trips WHERE id IN (?, ?)", ("t2", "t3"))
        self.assertEqual(rows, [])

    def test_usable_after_rollback(self):
        with self.assertRaises(ValueError):
            with self.db.transaction():
                raise ValueError("x")
        with self.db.transaction() as tx:
            tx.execute("INSERT INTO trips (id, name) VALUES (?, ?)", ("t4", "After"))
        self.assertIsNotNone(self.db.query_one("SELECT id FROM trips WHERE id = ?", ("t4",)))


# ===========================================================================
# 3. Database handle (lazy, once-only initialisation)
# ===========================================================================

class TestDatabaseInit(unittest.TestCase):
    def test_schema_initialised_once_under_concurrency(self):
        adapter = mock.MagicMock()
        adapter.dialect = SQLITE
        db = Database(adapter)

        threads = [threading.Thread(target=db.ensure_schema) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        db.query("SELECT 1")

        adapter.init_schema.assert_called_once()

    def test_failure_is_sticky(self):
        adapter = mock.MagicMock()
        adapter.dialect = SQLITE
        adapter.init_schema.side_effect = StorageFailure("disk full")
        db = Database(adapter)

        with self.assertRaises(StorageFailure):
            db.query("SELECT 1")
        with self.assertRaises(StorageFailure):
            db.execute("DELETE FROM trips")

        adapter.init_schema.assert_called_once()
        adapter.query.assert_not_called()
        adapter.execute.assert_not_called()

    def test_lazy_until_first_statement(self):
        adapter = mock.MagicMock()
        adapter.dialect = SQLITE
        db = Database(adapter)
        adapter.init_schema.assert_not_called()
        with db.transaction():
            pass
        adapter.init_schema.assert_called_once()


# ===========================================================================
# 4. Backend selection
# ===========================================================================

class TestCreateAdapter(unittest.TestCase):
    def test_sqlite_by_default(self):
        adapter = create_adapter(StorageConfig(database_path=Path("/tmp/longway-test.db")))
        self.assertIsInstance(adapter, SqliteAdapter)
        self.assertEqual(adapter.dialect, SQLITE)

    def test_postgres_when_url_set(self):
        adapter = create_adapter(StorageConfig(database_url="postgresql://u:p@localhost/db"))
        self.assertIsInstance(adapter, PostgresAdapter)
        self.assertEqual(adapter.dialect, POSTGRES)

    def test_sqlite_refused_on_readonly_fs(self):
        with self.assertRaises(ConfigurationError):
            create_adapter(StorageConfig(readonly_fs=True))

    def test_postgres_allowed_on_readonly_fs(self):
        adapter = create_adapter(
            StorageConfig(database_url="postgresql://u:p@localhost/db", readonly_fs=True)
        )
        self.assertIsInstance(adapter, PostgresAdapter)


if __name__ == "__main__":
    unittest.main()
