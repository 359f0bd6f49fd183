"""Trip domain model: the top-level itinerary that owns stops."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from longway.models.timestamps import utc_now


@dataclass
class Trip:
    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.updated_at:
            self.updated_at = self.created_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Trip":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )
