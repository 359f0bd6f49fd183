"""Database schema DDL: the four tables shared by both backends.

Statements are kept one per list entry so that backends without a
multi-statement ``executescript`` can run them in sequence.
"""

from __future__ import annotations

SQLITE = "sqlite"
POSTGRES = "postgres"


def now_sql(dialect: str) -> str:
    """SQL expression for the current UTC time as an ISO-8601 string."""
    if dialect == POSTGRES:
        return """(to_char(now() AT TIME ZONE 'UTC', 'YYYY-MM-DD"T"HH24:MI:SS.MS"Z"'))"""
    return "(strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"


def _real(dialect: str) -> str:
    return "DOUBLE PRECISION" if dialect == POSTGRES else "REAL"


def schema_statements(dialect: str) -> list[str]:
    now = now_sql(dialect)
    real = _real(dialect)
    return [
        # ------------------------------------------------------------------
        # Trips
        # ------------------------------------------------------------------
        f"""CREATE TABLE IF NOT EXISTS trips (
            id          TEXT PRIMARY KEY,
            name        TEXT NOT NULL,
            description TEXT,
            created_at  TEXT NOT NULL DEFAULT {now},
            updated_at  TEXT NOT NULL DEFAULT {now}
        )""",
        # ------------------------------------------------------------------
        # Stops ("order" is a reserved word in both dialects)
        # ------------------------------------------------------------------
        f"""CREATE TABLE IF NOT EXISTS stops (
            id                  TEXT PRIMARY KEY,
            trip_id             TEXT NOT NULL REFERENCES trips(id) ON DELETE CASCADE,
            name                TEXT NOT NULL,
            type                TEXT NOT NULL
                                CHECK (type IN ('base_camp', 'waypoint', 'stop', 'transport')),
            description         TEXT,
            latitude            {real} NOT NULL,
            longitude           {real} NOT NULL,
            duration_value      INTEGER,
            duration_unit       TEXT CHECK (duration_unit IN ('hours', 'nights', 'days')),
            is_optional         INTEGER NOT NULL DEFAULT 0,
            tags                TEXT NOT NULL DEFAULT '[]',
            links               TEXT NOT NULL DEFAULT '[]',
            notes               TEXT,
            "order"             INTEGER NOT NULL,
            transport_type      TEXT CHECK (transport_type IN ('ferry', 'flight', 'train', 'bus')),
            departure_time      TEXT,
            arrival_time        TEXT,
            departure_location  TEXT,
            arrival_location    TEXT
        )""",
        # ------------------------------------------------------------------
        # Conversations (one per trip, messages stored as a JSON array)
        # ------------------------------------------------------------------
        f"""CREATE TABLE IF NOT EXISTS conversations (
            id          TEXT PRIMARY KEY,
            trip_id     TEXT NOT NULL REFERENCES trips(id) ON DELETE CASCADE,
            messages    TEXT NOT NULL DEFAULT '[]',
            created_at  TEXT NOT NULL DEFAULT {now},
            updated_at  TEXT NOT NULL DEFAULT {now}
        )""",
        # ------------------------------------------------------------------
        # Settings (key/value)
        # ------------------------------------------------------------------
        """CREATE TABLE IF NOT EXISTS settings (
            key     TEXT PRIMARY KEY,
            value   TEXT NOT NULL
        )""",
        "CREATE INDEX IF NOT EXISTS idx_stops_trip_id ON stops(trip_id)",
        'CREATE INDEX IF NOT EXISTS idx_stops_order ON stops(trip_id, "order")',
        "CREATE INDEX IF NOT EXISTS idx_conversations_trip_id ON conversations(trip_id)",
    ]
