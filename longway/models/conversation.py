"""Conversation domain model: the chat history attached to one trip."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from longway.models.timestamps import utc_now

logger = logging.getLogger(__name__)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    role: MessageRole
    content: str
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        return cls(
            role=MessageRole(data["role"]),
            content=data["content"],
            timestamp=data.get("timestamp", ""),
        )


@dataclass
class Conversation:
    trip_id: str
    messages: list[Message] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.updated_at:
            self.updated_at = self.created_at

    def messages_json(self) -> str:
        return json.dumps([m.to_dict() for m in self.messages])

    @staticmethod
    def parse_messages(raw: Optional[str]) -> list[Message]:
        if not raw:
            return []
        try:
            return [Message.from_dict(m) for m in json.loads(raw)]
        except (json.JSONDecodeError, TypeError, KeyError, ValueError):
            logger.error("Failed to parse conversation messages JSON")
            return []

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "trip_id": self.trip_id,
            "messages": [m.to_dict() for m in self.messages],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Conversation":
        return cls(
            id=row["id"],
            trip_id=row["trip_id"],
            messages=cls.parse_messages(row.get("messages")),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )
