"""Export every trip as one JSON document, and import such documents back."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from longway.db.conversation_repo import ConversationRepository
from longway.db.database import Database
from longway.db.stop_repo import StopRepository
from longway.db.trip_repo import TripRepository
from longway.models.conversation import Conversation, Message, MessageRole
from longway.models.stop import Stop
from longway.models.timestamps import utc_now
from longway.models.trip import Trip
from longway.schemas import ExportDocument, ExportedTrip, validate

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1
IMPORT_MODES = ("merge", "replace")


@dataclass(frozen=True)
class ImportResult:
    imported: int
    skipped: int

    @property
    def message(self) -> str:
        return (
            f"Imported {self.imported} trip(s), "
            f"skipped {self.skipped} existing trip(s)"
        )


def export_all(db: Database) -> dict[str, Any]:
    trips = TripRepository(db)
    stops = StopRepository(db)
    conversations = ConversationRepository(db)

    exported = []
    for trip in trips.list_all():
        entry = trip.to_dict()
        entry["stops"] = [s.to_dict() for s in stops.list_by_trip(trip.id)]
        conversation = conversations.get(trip.id)
        if conversation and conversation.messages:
            entry["conversation"] = {"messages": [m.to_dict() for m in conversation.messages]}
        exported.append(entry)

    return {"version": EXPORT_VERSION, "exportedAt": utc_now(), "trips": exported}


def import_data(db: Database, data: Any, mode: str = "merge") -> ImportResult:
    """Insert the trips of an export document.

    The whole document is validated, and every trip is checked for id
    collisions, before anything is written. A trip is skipped when its own id
    or any of its stop ids is already stored or claimed by an earlier trip in
    the document. Each remaining trip, with its stops and conversation, is
    inserted in its own transaction. In ``replace`` mode the caller is
    expected to have cleared the store beforehand.
    """
    if mode not in IMPORT_MODES:
        raise ValueError(f"Unknown import mode: {mode}")
    document = validate(ExportDocument, data)
    trips = TripRepository(db)
    stops = StopRepository(db)

    planned: list[ExportedTrip] = []
    trip_ids: set[str] = set()
    stop_ids: set[str] = set()
    skipped = 0
    for entry in document.trips:
        if entry.id in trip_ids or trips.exists(entry.id):
            skipped += 1
            continue
        ids = [s.id for s in entry.stops]
        if len(set(ids)) != len(ids) or any(
            sid in stop_ids or stops.get_by_id(sid) is not None for sid in ids
        ):
            logger.warning("Import: skipping trip %s, stop ids collide with existing stops", entry.id)
            skipped += 1
            continue
        planned.append(entry)
        trip_ids.add(entry.id)
        stop_ids.update(ids)

    for entry in planned:
        _insert_trip(db, entry)

    imported = len(planned)
    logger.info("Import (%s): %d imported, %d skipped", mode, imported, skipped)
    return ImportResult(imported=imported, skipped=skipped)


def _insert_trip(db: Database, entry: ExportedTrip) -> None:
    now = utc_now()
    trip = Trip(
        id=entry.id,
        name=entry.name,
        description=entry.description,
        created_at=entry.created_at or now,
        updated_at=entry.updated_at or now,
    )

    with db.transaction() as tx:
        TripRepository.insert(tx, trip)
        # Order is re-densified to the position in the document
        for index, s in enumerate(entry.stops):
            stop = Stop(
                id=s.id,
                trip_id=trip.id,
                name=s.name,
                type=s.type,
                latitude=s.latitude,
                longitude=s.longitude,
                order=index,
            ).with_changes({
                "description": s.description,
                "duration_value": s.duration_value,
                "duration_unit": s.duration_unit,
                "is_optional": s.is_optional,
                "tags": s.tags,
                "links": s.links,
                "notes": s.notes,
                "transport_type": s.transport_type,
                "departure_time": s.departure_time,
                "arrival_time": s.arrival_time,
                "departure_location": s.departure_location,
                "arrival_location": s.arrival_location,
            })
            StopRepository.insert(tx, stop)

        if entry.conversation and entry.conversation.messages:
            messages = [
                Message(role=MessageRole(m.role), content=m.content, timestamp=m.timestamp)
                for m in entry.conversation.messages
            ]
            ConversationRepository.insert(
                tx, Conversation(trip_id=trip.id, messages=messages, created_at=now, updated_at=now)
            )
