"""Repository for the ``trips`` table."""

from __future__ import annotations

from typing import Any, Optional

from longway.db.adapter import StorageAdapter
from longway.db.database import Database
from longway.models.timestamps import utc_now
from longway.models.trip import Trip

_PATCHABLE = ("name", "description")


def touch_trip(conn: StorageAdapter, trip_id: str, now: str) -> None:
    """Refresh a trip's ``updated_at`` as part of a caller's transaction."""
    conn.execute("UPDATE trips SET updated_at = ? WHERE id = ?", (now, trip_id))


class TripRepository:
    """Single-Responsibility repository for trip persistence.

    Mutations return objects built from the values just written instead of
    re-reading them; every column they write is known to the caller.
    """

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(self, name: str, description: Optional[str] = None) -> Trip:
        now = utc_now()
        trip = Trip(name=name, description=description or None, created_at=now, updated_at=now)
        self.insert(self._db, trip)
        return trip

    @staticmethod
    def insert(conn: Database | StorageAdapter, trip: Trip) -> None:
        conn.execute(
            """INSERT INTO trips (id, name, description, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?)""",
            (trip.id, trip.name, trip.description, trip.created_at, trip.updated_at),
        )

    # -- Read ------------------------------------------------------------------

    def get_by_id(self, trip_id: str) -> Optional[Trip]:
        row = self._db.query_one("SELECT * FROM trips WHERE id = ?", (trip_id,))
        return Trip.from_row(row) if row else None

    def exists(self, trip_id: str) -> bool:
        return self._db.query_one("SELECT id FROM trips WHERE id = ?", (trip_id,)) is not None

    def list_all(self) -> list[Trip]:
        rows = self._db.query("SELECT * FROM trips ORDER BY updated_at DESC")
        return [Trip.from_row(r) for r in rows]

    # -- Update ----------------------------------------------------------------

    def update(self, trip_id: str, **fields: Any) -> Optional[Trip]:
        """Patch only the supplied fields. ``description=None`` clears it."""
        trip = self.get_by_id(trip_id)
        if trip is None:
            return None

        filtered = {k: v for k, v in fields.items() if k in _PATCHABLE}
        if not filtered:
            return trip

        now = utc_now()
        set_parts = [f"{k} = ?" for k in filtered]
        set_parts.append("updated_at = ?")
        values: list[Any] = list(filtered.values())
        values.extend([now, trip_id])

        self._db.execute(f"UPDATE trips SET {', '.join(set_parts)} WHERE id = ?", tuple(values))

        for key, value in filtered.items():
            setattr(trip, key, value)
        trip.updated_at = now
        return trip

    # -- Delete ----------------------------------------------------------------

    def delete(self, trip_id: str) -> bool:
        """Delete a trip; its stops and conversation go with it (cascade)."""
        result = self._db.execute("DELETE FROM trips WHERE id = ?", (trip_id,))
        return result.rows_affected > 0

    def delete_all(self) -> int:
        return self._db.execute("DELETE FROM trips").rows_affected
