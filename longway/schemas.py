"""Request schemas and boundary validation.

Every piece of untrusted input (HTTP bodies, assistant tool arguments, import
documents) goes through :func:`validate` before a repository sees it.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional, Type, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from longway.errors import ValidationFailed
from longway.models.conversation import MessageRole
from longway.models.stop import DurationUnit, StopType, TransportType

MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000
MAX_NOTES_LENGTH = 10000
MAX_ARRAY_LENGTH = 100
MAX_TAG_LENGTH = 50
MAX_LINK_LENGTH = 500
MAX_CONTENT_LENGTH = 50000
MAX_MESSAGES = 1000

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_NAME_LENGTH)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=MAX_DESCRIPTION_LENGTH)]
Notes = Annotated[str, StringConstraints(max_length=MAX_NOTES_LENGTH)]
Location = Annotated[str, StringConstraints(max_length=MAX_NAME_LENGTH)]
Tag = Annotated[str, StringConstraints(max_length=MAX_TAG_LENGTH)]
Link = Annotated[str, StringConstraints(max_length=MAX_LINK_LENGTH)]
Latitude = Annotated[float, Field(strict=True, ge=-90, le=90, allow_inf_nan=False)]
Longitude = Annotated[float, Field(strict=True, ge=-180, le=180, allow_inf_nan=False)]
DurationValue = Annotated[int, Field(ge=0, le=365)]
Content = Annotated[str, StringConstraints(min_length=1, max_length=MAX_CONTENT_LENGTH)]
UUIDStr = Annotated[str, StringConstraints(pattern=UUID_PATTERN)]

S = TypeVar("S", bound=BaseModel)


class _Schema(BaseModel):
    model_config = ConfigDict(use_enum_values=True, extra="ignore")

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


# ---------------------------------------------------------------------------
# Trips
# ---------------------------------------------------------------------------

class TripCreate(_Schema):
    name: Name
    description: Optional[Description] = None


class TripUpdate(_Schema):
    name: Optional[Name] = None
    description: Optional[Description] = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("name cannot be null")
        return v


# ---------------------------------------------------------------------------
# Stops
# ---------------------------------------------------------------------------

class StopCreate(_Schema):
    name: Name
    type: StopType
    latitude: Latitude
    longitude: Longitude
    description: Optional[Description] = None
    duration_value: Optional[DurationValue] = None
    duration_unit: Optional[DurationUnit] = None
    is_optional: bool = Field(default=False, strict=True)
    tags: list[Tag] = Field(default_factory=list, max_length=MAX_ARRAY_LENGTH)
    links: list[Link] = Field(default_factory=list, max_length=MAX_ARRAY_LENGTH)
    notes: Optional[Notes] = None
    order: Optional[Annotated[int, Field(strict=True)]] = None
    transport_type: Optional[TransportType] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    departure_location: Optional[Location] = None
    arrival_location: Optional[Location] = None

    def insert_fields(self) -> dict[str, Any]:
        data = self.model_dump()
        if data["order"] is None:
            del data["order"]
        return data


# Stop columns that must never be set to null by a patch.
NON_NULLABLE_STOP_FIELDS = (
    "name", "type", "latitude", "longitude", "is_optional", "tags", "links", "order",
)


class StopUpdate(_Schema):
    name: Optional[Name] = None
    type: Optional[StopType] = None
    latitude: Optional[Latitude] = None
    longitude: Optional[Longitude] = None
    description: Optional[Description] = None
    duration_value: Optional[DurationValue] = None
    duration_unit: Optional[DurationUnit] = None
    is_optional: Optional[Annotated[bool, Field(strict=True)]] = None
    tags: Optional[Annotated[list[Tag], Field(max_length=MAX_ARRAY_LENGTH)]] = None
    links: Optional[Annotated[list[Link], Field(max_length=MAX_ARRAY_LENGTH)]] = None
    notes: Optional[Notes] = None
    order: Optional[Annotated[int, Field(strict=True)]] = None
    transport_type: Optional[TransportType] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    departure_location: Optional[Location] = None
    arrival_location: Optional[Location] = None

    @field_validator(*NON_NULLABLE_STOP_FIELDS, mode="before")
    @classmethod
    def _not_null(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ReorderRequest(_Schema):
    stopIds: list[UUIDStr] = Field(min_length=1)


def check_duration_pair(duration_value: Optional[int], duration_unit: Optional[str]) -> None:
    """``duration_value`` and ``duration_unit`` come together or not at all."""
    if (duration_value is None) != (duration_unit is None):
        raise ValidationFailed(
            "duration_value" if duration_value is None else "duration_unit",
            "duration_value and duration_unit must be provided together",
        )


# ---------------------------------------------------------------------------
# Conversations & chat
# ---------------------------------------------------------------------------

class MessageIn(_Schema):
    role: MessageRole
    content: Content
    timestamp: str


class ConversationSave(_Schema):
    messages: list[MessageIn] = Field(max_length=MAX_MESSAGES)


class ChatMessage(_Schema):
    role: MessageRole
    content: Content


class ChatRequest(_Schema):
    messages: list[ChatMessage] = Field(min_length=1, max_length=MAX_MESSAGES)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class SettingsSave(_Schema):
    apiKey: Optional[str] = None


# ---------------------------------------------------------------------------
# Export / import document
# ---------------------------------------------------------------------------

class ExportedStop(_Schema):
    id: str = Field(min_length=1)
    name: Name
    type: StopType
    latitude: Latitude
    longitude: Longitude
    description: Optional[Description] = None
    duration_value: Optional[DurationValue] = None
    duration_unit: Optional[DurationUnit] = None
    is_optional: bool = False
    tags: list[Tag] = Field(default_factory=list, max_length=MAX_ARRAY_LENGTH)
    links: list[Link] = Field(default_factory=list, max_length=MAX_ARRAY_LENGTH)
    notes: Optional[Notes] = None
    transport_type: Optional[TransportType] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    departure_location: Optional[Location] = None
    arrival_location: Optional[Location] = None

    @model_validator(mode="after")
    def _duration_pair(self) -> "ExportedStop":
        if (self.duration_value is None) != (self.duration_unit is None):
            raise ValueError("duration_value and duration_unit must be provided together")
        return self


class ExportedMessage(_Schema):
    role: MessageRole
    content: Content
    timestamp: str


class ExportedConversation(_Schema):
    messages: list[ExportedMessage] = Field(max_length=MAX_MESSAGES)


class ExportedTrip(_Schema):
    id: str = Field(min_length=1)
    name: Name
    description: Optional[Description] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    stops: list[ExportedStop]
    conversation: Optional[ExportedConversation] = None


class ExportDocument(_Schema):
    version: int
    exportedAt: str
    trips: list[ExportedTrip]


class ImportRequest(_Schema):
    data: ExportDocument
    mode: str = Field(default="merge", pattern="^(merge|replace)$")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc]
    return ".".join(parts) if parts else "body"


def validate(schema: Type[S], raw: Any) -> S:
    """Validate *raw* against *schema*; raise ``ValidationFailed`` on the first error."""
    if not isinstance(raw, dict):
        raise ValidationFailed("body", "Request body must be a JSON object")
    try:
        return schema.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        field = _field_name(tuple(first.get("loc", ())))
        message = first.get("msg", "Validation failed")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        raise ValidationFailed(field, f"{field}: {message}") from e
