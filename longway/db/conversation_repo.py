"""Repository for the ``conversations`` table (one row per trip)."""

from __future__ import annotations

from typing import Optional, Sequence

from longway.db.adapter import StorageAdapter
from longway.db.database import Database
from longway.models.conversation import Conversation, Message
from longway.models.timestamps import utc_now


class ConversationRepository:
    def __init__(self, db: Database):
        self._db = db

    def get(self, trip_id: str) -> Optional[Conversation]:
        row = self._db.query_one("SELECT * FROM conversations WHERE trip_id = ?", (trip_id,))
        return Conversation.from_row(row) if row else None

    def save(self, trip_id: str, messages: Sequence[Message]) -> Conversation:
        """Replace the stored history with *messages* (not an append)."""
        now = utc_now()
        existing = self.get(trip_id)
        if existing:
            existing.messages = list(messages)
            existing.updated_at = now
            self._db.execute(
                "UPDATE conversations SET messages = ?, updated_at = ? WHERE trip_id = ?",
                (existing.messages_json(), now, trip_id),
            )
            return existing

        conversation = Conversation(
            trip_id=trip_id, messages=list(messages), created_at=now, updated_at=now
        )
        self.insert(self._db, conversation)
        return conversation

    @staticmethod
    def insert(conn: Database | StorageAdapter, conversation: Conversation) -> None:
        conn.execute(
            """INSERT INTO conversations (id, trip_id, messages, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                conversation.id, conversation.trip_id, conversation.messages_json(),
                conversation.created_at, conversation.updated_at,
            ),
        )

    def clear(self, trip_id: str) -> bool:
        result = self._db.execute("DELETE FROM conversations WHERE trip_id = ?", (trip_id,))
        return result.rows_affected > 0
