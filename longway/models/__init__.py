"""Domain models for trips, stops and assistant conversations."""

from longway.models.trip import Trip
from longway.models.stop import Stop, StopType, DurationUnit, TransportType
from longway.models.conversation import Conversation, Message, MessageRole
from longway.models.timestamps import utc_now

__all__ = [
    "Trip",
    "Stop", "StopType", "DurationUnit", "TransportType",
    "Conversation", "Message", "MessageRole",
    "utc_now",
]
