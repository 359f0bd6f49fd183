"""Itinerary service: the validated boundary in front of the repositories.

HTTP handlers and assistant tools both go through this class, so input
validation, not-found checks and reorder strictness live in one place.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from longway.db.conversation_repo import ConversationRepository
from longway.db.database import Database
from longway.db.stop_repo import StopRepository
from longway.db.trip_repo import TripRepository
from longway.errors import NotFound, ValidationFailed
from longway.models.conversation import Conversation, Message, MessageRole
from longway.models.stop import Stop
from longway.models.trip import Trip
from longway.schemas import (
    ConversationSave,
    ReorderRequest,
    StopCreate,
    StopUpdate,
    TripCreate,
    TripUpdate,
    check_duration_pair,
    validate,
)

logger = logging.getLogger(__name__)


class ItineraryService:
    """Trip, stop and conversation operations on validated input."""

    def __init__(self, db: Database):
        self.trips = TripRepository(db)
        self.stops = StopRepository(db)
        self.conversations = ConversationRepository(db)

    # -- Trips -----------------------------------------------------------------

    def list_trips(self) -> list[Trip]:
        return self.trips.list_all()

    def get_trip(self, trip_id: str) -> Trip:
        trip = self.trips.get_by_id(trip_id)
        if trip is None:
            raise NotFound("Trip", trip_id)
        return trip

    def get_trip_with_stops(self, trip_id: str) -> tuple[Trip, list[Stop]]:
        trip = self.get_trip(trip_id)
        return trip, self.stops.list_by_trip(trip_id)

    def create_trip(self, raw: Any) -> Trip:
        data = validate(TripCreate, raw)
        trip = self.trips.create(data.name, data.description)
        logger.info("Created trip %s: %s", trip.id, trip.name)
        return trip

    def update_trip(self, trip_id: str, raw: Any) -> Trip:
        changes = validate(TripUpdate, raw).changes()
        trip = self.trips.update(trip_id, **changes)
        if trip is None:
            raise NotFound("Trip", trip_id)
        return trip

    def delete_trip(self, trip_id: str) -> None:
        if not self.trips.delete(trip_id):
            raise NotFound("Trip", trip_id)
        logger.info("Deleted trip %s", trip_id)

    # -- Stops -----------------------------------------------------------------

    def list_stops(self, trip_id: str) -> list[Stop]:
        self._require_trip(trip_id)
        return self.stops.list_by_trip(trip_id)

    def get_stop(self, stop_id: str, trip_id: Optional[str] = None) -> Stop:
        """Fetch a stop; with *trip_id*, a stop of another trip counts as absent."""
        stop = self.stops.get_by_id(stop_id)
        if stop is None or (trip_id is not None and stop.trip_id != trip_id):
            raise NotFound("Stop", stop_id)
        return stop

    def add_stop(self, trip_id: str, raw: Any) -> Stop:
        self._require_trip(trip_id)
        data = validate(StopCreate, raw)
        check_duration_pair(data.duration_value, data.duration_unit)
        stop = self.stops.create(trip_id, data.insert_fields())
        logger.info("Added stop %s to trip %s", stop.id, trip_id)
        return stop

    def update_stop(self, stop_id: str, raw: Any, trip_id: Optional[str] = None) -> Stop:
        changes = validate(StopUpdate, raw).changes()
        current = self.get_stop(stop_id, trip_id)
        merged = current.with_changes(changes)
        check_duration_pair(merged.duration_value, merged.duration_unit)

        stop = self.stops.update(stop_id, changes)
        if stop is None:
            raise NotFound("Stop", stop_id)
        return stop

    def delete_stop(self, stop_id: str, trip_id: Optional[str] = None) -> Stop:
        stop = self.get_stop(stop_id, trip_id)
        if not self.stops.delete(stop_id):
            raise NotFound("Stop", stop_id)
        logger.info("Deleted stop %s from trip %s", stop_id, stop.trip_id)
        return stop

    def reorder_stops(self, trip_id: str, raw: Any) -> list[Stop]:
        """Apply a new order given as a permutation of all the trip's stop ids."""
        self._require_trip(trip_id)
        stop_ids = validate(ReorderRequest, raw).stopIds

        valid_ids = {s.id for s in self.stops.list_by_trip(trip_id)}
        if any(sid not in valid_ids for sid in stop_ids):
            raise ValidationFailed("stopIds", "Some stop IDs do not belong to this trip")
        if len(set(stop_ids)) != len(stop_ids):
            raise ValidationFailed("stopIds", "Stop IDs must not repeat")
        if set(stop_ids) != valid_ids:
            raise ValidationFailed("stopIds", "Stop IDs must include every stop in this trip")

        self.stops.reorder(trip_id, stop_ids)
        return self.stops.list_by_trip(trip_id)

    # -- Conversation ----------------------------------------------------------

    def get_conversation(self, trip_id: str) -> Optional[Conversation]:
        self._require_trip(trip_id)
        return self.conversations.get(trip_id)

    def save_conversation(self, trip_id: str, raw: Any) -> Conversation:
        self._require_trip(trip_id)
        data = validate(ConversationSave, raw)
        messages = [
            Message(role=MessageRole(m.role), content=m.content, timestamp=m.timestamp)
            for m in data.messages
        ]
        return self.conversations.save(trip_id, messages)

    def clear_conversation(self, trip_id: str) -> None:
        self._require_trip(trip_id)
        self.conversations.clear(trip_id)

    # -- Helpers ---------------------------------------------------------------

    def _require_trip(self, trip_id: str) -> None:
        if not self.trips.exists(trip_id):
            raise NotFound("Trip", trip_id)
