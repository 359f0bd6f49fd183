"""Repository for the ``stops`` table: CRUD plus ordering."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from longway.db.adapter import StorageAdapter
from longway.db.database import Database
from longway.db.trip_repo import touch_trip
from longway.models.stop import PATCHABLE_FIELDS, STOP_COLUMNS, Stop, quote_column
from longway.models.timestamps import utc_now

_INSERT_SQL = (
    f"INSERT INTO stops ({', '.join(quote_column(c) for c in STOP_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in STOP_COLUMNS)})"
)


class StopRepository:
    """Stop persistence. Every write also refreshes the parent trip's
    ``updated_at`` inside the same transaction."""

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(self, trip_id: str, fields: dict[str, Any]) -> Stop:
        """Insert a stop. Without an explicit ``order`` it goes to the end."""
        values = {k: v for k, v in fields.items() if k in PATCHABLE_FIELDS}
        now = utc_now()

        with self._db.transaction() as tx:
            order = values.pop("order", None)
            if order is None:
                order = self._next_order(tx, trip_id)
            stop = Stop(
                trip_id=trip_id,
                name=values["name"],
                type=values["type"],
                latitude=values["latitude"],
                longitude=values["longitude"],
                order=order,
            ).with_changes(values)
            self.insert(tx, stop)
            touch_trip(tx, trip_id, now)

        return stop

    @staticmethod
    def insert(conn: StorageAdapter, stop: Stop) -> None:
        conn.execute(_INSERT_SQL, stop.row_values())

    # -- Read ------------------------------------------------------------------

    def get_by_id(self, stop_id: str) -> Optional[Stop]:
        row = self._db.query_one("SELECT * FROM stops WHERE id = ?", (stop_id,))
        return Stop.from_row(row) if row else None

    def list_by_trip(self, trip_id: str) -> list[Stop]:
        rows = self._db.query(
            'SELECT * FROM stops WHERE trip_id = ? ORDER BY "order" ASC', (trip_id,)
        )
        return [Stop.from_row(r) for r in rows]

    def next_order(self, trip_id: str) -> int:
        return self._next_order(self._db, trip_id)

    @staticmethod
    def _next_order(conn: Database | StorageAdapter, trip_id: str) -> int:
        row = conn.query_one(
            'SELECT MAX("order") AS max_order FROM stops WHERE trip_id = ?', (trip_id,)
        )
        max_order = row["max_order"] if row else None
        return 0 if max_order is None else int(max_order) + 1

    # -- Update ----------------------------------------------------------------

    def update(self, stop_id: str, fields: dict[str, Any]) -> Optional[Stop]:
        """Patch only the supplied fields; ``None`` values clear nullable columns."""
        stop = self.get_by_id(stop_id)
        if stop is None:
            return None

        changes = {k: v for k, v in fields.items() if k in PATCHABLE_FIELDS}
        if not changes:
            return stop

        updated = stop.with_changes(changes)
        set_parts = [f"{quote_column(k)} = ?" for k in changes]
        values: list[Any] = [updated.column_value(k) for k in changes]
        values.append(stop_id)
        now = utc_now()

        with self._db.transaction() as tx:
            tx.execute(f"UPDATE stops SET {', '.join(set_parts)} WHERE id = ?", tuple(values))
            touch_trip(tx, stop.trip_id, now)

        return updated

    def reorder(self, trip_id: str, stop_ids: Sequence[str]) -> int:
        """Set ``order`` to each id's index. Ids outside the trip are ignored.

        Returns the number of stops actually moved.
        """
        now = utc_now()
        moved = 0
        with self._db.transaction() as tx:
            for index, stop_id in enumerate(stop_ids):
                result = tx.execute(
                    'UPDATE stops SET "order" = ? WHERE id = ? AND trip_id = ?',
                    (index, stop_id, trip_id),
                )
                moved += result.rows_affected
            touch_trip(tx, trip_id, now)
        return moved

    # -- Delete ----------------------------------------------------------------

    def delete(self, stop_id: str) -> bool:
        stop = self.get_by_id(stop_id)
        if stop is None:
            return False

        now = utc_now()
        with self._db.transaction() as tx:
            deleted = tx.execute("DELETE FROM stops WHERE id = ?", (stop_id,)).rows_affected > 0
            if deleted:
                touch_trip(tx, stop.trip_id, now)
        return deleted
