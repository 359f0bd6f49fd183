"""Stop domain model: one location or transit leg in a trip's itinerary."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class StopType(str, Enum):
    BASE_CAMP = "base_camp"   # multi-night anchor
    WAYPOINT = "waypoint"     # single overnight
    STOP = "stop"             # hours-only visit
    TRANSPORT = "transport"   # transit segment


class DurationUnit(str, Enum):
    HOURS = "hours"
    NIGHTS = "nights"
    DAYS = "days"


class TransportType(str, Enum):
    FERRY = "ferry"
    FLIGHT = "flight"
    TRAIN = "train"
    BUS = "bus"


# Column order used by INSERT statements; "order" is quoted in SQL.
STOP_COLUMNS = (
    "id", "trip_id", "name", "type", "description", "latitude", "longitude",
    "duration_value", "duration_unit", "is_optional", "tags", "links", "notes",
    "order", "transport_type", "departure_time", "arrival_time",
    "departure_location", "arrival_location",
)

# Fields a caller may patch through ``StopRepository.update``.
PATCHABLE_FIELDS = frozenset(STOP_COLUMNS) - {"id", "trip_id"}


def quote_column(name: str) -> str:
    return f'"{name}"' if name == "order" else name


def _json_list(raw: Any) -> list[str]:
    if isinstance(raw, list):
        return raw
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Discarding malformed list column value: %r", raw)
        return []
    return value if isinstance(value, list) else []


def _coerce(data: dict[str, Any]) -> dict[str, Any]:
    out = dict(data)
    out["type"] = StopType(out["type"])
    if out.get("duration_unit") is not None:
        out["duration_unit"] = DurationUnit(out["duration_unit"])
    if out.get("transport_type") is not None:
        out["transport_type"] = TransportType(out["transport_type"])
    out["is_optional"] = bool(out.get("is_optional"))
    out["tags"] = list(out.get("tags") or [])
    out["links"] = list(out.get("links") or [])
    return out


@dataclass
class Stop:
    trip_id: str
    name: str
    type: StopType
    latitude: float
    longitude: float
    order: int = 0
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: Optional[str] = None
    duration_value: Optional[int] = None
    duration_unit: Optional[DurationUnit] = None
    is_optional: bool = False
    tags: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    notes: Optional[str] = None
    transport_type: Optional[TransportType] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    departure_location: Optional[str] = None
    arrival_location: Optional[str] = None

    @property
    def duration_text(self) -> Optional[str]:
        if not self.duration_value:
            return None
        unit = self.duration_unit.value if self.duration_unit else ""
        return f"{self.duration_value} {unit}".strip()

    def column_value(self, name: str) -> Any:
        """Value of *name* as it is written to the database."""
        value = getattr(self, name)
        if name == "is_optional":
            return 1 if value else 0
        if name in ("tags", "links"):
            return json.dumps(value)
        if isinstance(value, Enum):
            return value.value
        return value

    def row_values(self) -> tuple[Any, ...]:
        return tuple(self.column_value(c) for c in STOP_COLUMNS)

    def with_changes(self, changes: dict[str, Any]) -> "Stop":
        """Return a copy with *changes* applied, coercing enum and list fields."""
        data = {name: getattr(self, name) for name in STOP_COLUMNS}
        data.update(changes)
        return Stop(**_coerce(data))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "trip_id": self.trip_id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "duration_value": self.duration_value,
            "duration_unit": self.duration_unit.value if self.duration_unit else None,
            "is_optional": self.is_optional,
            "tags": list(self.tags),
            "links": list(self.links),
            "notes": self.notes,
            "order": self.order,
            "transport_type": self.transport_type.value if self.transport_type else None,
            "departure_time": self.departure_time,
            "arrival_time": self.arrival_time,
            "departure_location": self.departure_location,
            "arrival_location": self.arrival_location,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Stop":
        unit = row.get("duration_unit")
        transport = row.get("transport_type")
        return cls(
            id=row["id"],
            trip_id=row["trip_id"],
            name=row["name"],
            type=StopType(row["type"]),
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            order=int(row.get("order") or 0),
            description=row.get("description"),
            duration_value=row.get("duration_value"),
            duration_unit=DurationUnit(unit) if unit else None,
            is_optional=bool(row.get("is_optional")),
            tags=_json_list(row.get("tags")),
            links=_json_list(row.get("links")),
            notes=row.get("notes"),
            transport_type=TransportType(transport) if transport else None,
            departure_time=row.get("departure_time"),
            arrival_time=row.get("arrival_time"),
            departure_location=row.get("departure_location"),
            arrival_location=row.get("arrival_location"),
        )
