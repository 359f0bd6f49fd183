"""Itinerary tools exposed to the assistant.

The tool set is closed: ``ToolName`` lists every tool, ``parse_tool_call``
turns raw model output into one typed variant, and ``TripToolbox`` maps each
variant to a handler. Bad input never raises out of ``execute``; it becomes
the result string the model sees on its next turn.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from longway.errors import NotFound, ValidationFailed
from longway.models.stop import Stop
from longway.services.itinerary import ItineraryService

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    GET_TRIP_INFO = "get_trip_info"
    ADD_STOP = "add_stop"
    UPDATE_STOP = "update_stop"
    REMOVE_STOP = "remove_stop"
    REORDER_STOPS = "reorder_stops"


_STOP_TYPES = ["base_camp", "waypoint", "stop", "transport"]
_DURATION_UNITS = ["hours", "nights", "days"]
_TRANSPORT_TYPES = ["ferry", "flight", "train", "bus"]

TOOL_CATALOG: list[dict[str, Any]] = [
    {
        "name": ToolName.GET_TRIP_INFO.value,
        "description": (
            "Get information about the current trip including all stops. "
            "Use this to understand the current state of the trip."
        ),
        "input_schema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": ToolName.ADD_STOP.value,
        "description": "Add a new stop to the trip. Requires at minimum a name, type, and coordinates.",
        "input_schema": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": 'Name of the stop (e.g., "Bergen City Center")'},
                "type": {
                    "type": "string",
                    "enum": _STOP_TYPES,
                    "description": (
                        "Type of stop: base_camp (multi-night anchor), waypoint (overnight), "
                        "stop (hours only), transport (ferry/flight/train)"
                    ),
                },
                "latitude": {"type": "number", "description": "Latitude coordinate"},
                "longitude": {"type": "number", "description": "Longitude coordinate"},
                "description": {"type": "string", "description": "Short description of why this stop matters"},
                "duration_value": {"type": "number", "description": "Duration value (e.g., 2)"},
                "duration_unit": {"type": "string", "enum": _DURATION_UNITS, "description": "Duration unit"},
                "is_optional": {"type": "boolean", "description": "Whether this is an optional/serendipity stop"},
                "notes": {"type": "string", "description": "Additional notes about the stop"},
                "transport_type": {
                    "type": "string",
                    "enum": _TRANSPORT_TYPES,
                    "description": "For transport stops, the type of transport",
                },
                "departure_location": {"type": "string", "description": "For transport stops, the departure location"},
                "arrival_location": {"type": "string", "description": "For transport stops, the arrival location"},
                "departure_time": {"type": "string", "description": "For transport stops, the departure time (HH:MM)"},
                "arrival_time": {"type": "string", "description": "For transport stops, the arrival time (HH:MM)"},
            },
            "required": ["name", "type", "latitude", "longitude"],
        },
    },
    {
        "name": ToolName.UPDATE_STOP.value,
        "description": "Update an existing stop. Provide the stop ID and any fields to update.",
        "input_schema": {
            "type": "object",
            "properties": {
                "stop_id": {"type": "string", "description": "ID of the stop to update"},
                "name": {"type": "string", "description": "New name"},
                "type": {"type": "string", "enum": _STOP_TYPES},
                "description": {"type": "string", "description": "New description"},
                "latitude": {"type": "number"},
                "longitude": {"type": "number"},
                "duration_value": {"type": "number"},
                "duration_unit": {"type": "string", "enum": _DURATION_UNITS},
                "is_optional": {"type": "boolean"},
                "notes": {"type": "string"},
            },
            "required": ["stop_id"],
        },
    },
    {
        "name": ToolName.REMOVE_STOP.value,
        "description": "Remove a stop from the trip.",
        "input_schema": {
            "type": "object",
            "properties": {"stop_id": {"type": "string", "description": "ID of the stop to remove"}},
            "required": ["stop_id"],
        },
    },
    {
        "name": ToolName.REORDER_STOPS.value,
        "description": "Reorder the stops in the trip. Provide an array of stop IDs in the new order.",
        "input_schema": {
            "type": "object",
            "properties": {
                "stop_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Array of stop IDs in the new order",
                },
            },
            "required": ["stop_ids"],
        },
    },
]


# ---------------------------------------------------------------------------
# Typed tool calls
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GetTripInfo:
    name = ToolName.GET_TRIP_INFO


@dataclass(frozen=True)
class AddStop:
    fields: dict[str, Any]
    name = ToolName.ADD_STOP


@dataclass(frozen=True)
class UpdateStop:
    stop_id: str
    changes: dict[str, Any]
    name = ToolName.UPDATE_STOP


@dataclass(frozen=True)
class RemoveStop:
    stop_id: str
    name = ToolName.REMOVE_STOP


@dataclass(frozen=True)
class ReorderStops:
    stop_ids: list[str]
    name = ToolName.REORDER_STOPS


ToolCall = Union[GetTripInfo, AddStop, UpdateStop, RemoveStop, ReorderStops]


class UnknownTool(Exception):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


def _stop_id(tool_input: dict[str, Any]) -> str:
    stop_id = tool_input.get("stop_id")
    if not isinstance(stop_id, str) or not stop_id:
        raise ValidationFailed("stop_id", "stop_id is required")
    return stop_id


def parse_tool_call(name: str, tool_input: Any) -> ToolCall:
    """Turn a raw ``tool_use`` block into a typed call.

    Raises ``UnknownTool`` for names outside the catalog and
    ``ValidationFailed`` when the input is structurally wrong.
    """
    try:
        tool = ToolName(name)
    except ValueError:
        raise UnknownTool(name) from None
    if not isinstance(tool_input, dict):
        raise ValidationFailed("input", "Tool input must be an object")

    if tool is ToolName.GET_TRIP_INFO:
        return GetTripInfo()
    if tool is ToolName.ADD_STOP:
        return AddStop(fields=dict(tool_input))
    if tool is ToolName.UPDATE_STOP:
        changes = {k: v for k, v in tool_input.items() if k != "stop_id"}
        return UpdateStop(stop_id=_stop_id(tool_input), changes=changes)
    if tool is ToolName.REMOVE_STOP:
        return RemoveStop(stop_id=_stop_id(tool_input))

    stop_ids = tool_input.get("stop_ids")
    if not isinstance(stop_ids, list):
        raise ValidationFailed("stop_ids", "stop_ids must be an array")
    return ReorderStops(stop_ids=list(stop_ids))


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

@dataclass
class ToolOutcome:
    result: str
    # Fresh stop list when the tool changed the trip, else None
    stops: Optional[list[Stop]] = field(default=None)


def describe_stops(stops: list[Stop]) -> str:
    """JSON summary returned by ``get_trip_info``."""
    info = [
        {
            "id": s.id,
            "order": i + 1,
            "name": s.name,
            "type": s.type.value,
            "description": s.description,
            "coordinates": {"lat": s.latitude, "lng": s.longitude},
            "duration": s.duration_text,
            "is_optional": s.is_optional,
        }
        for i, s in enumerate(stops)
    ]
    return json.dumps({"stops": info, "total": len(info)})


class TripToolbox:
    """Runs tool calls against one trip."""

    def __init__(self, service: ItineraryService, trip_id: str):
        self.service = service
        self.trip_id = trip_id

        self._dispatch: dict[ToolName, Callable[[Any, list[Stop]], ToolOutcome]] = {
            ToolName.GET_TRIP_INFO: self._get_trip_info,
            ToolName.ADD_STOP:      self._add_stop,
            ToolName.UPDATE_STOP:   self._update_stop,
            ToolName.REMOVE_STOP:   self._remove_stop,
            ToolName.REORDER_STOPS: self._reorder_stops,
        }
        missing = set(ToolName) - set(self._dispatch)
        if missing:
            raise RuntimeError(f"No handler for tools: {sorted(t.value for t in missing)}")

    def execute(self, name: str, tool_input: Any, current_stops: list[Stop]) -> ToolOutcome:
        """Run one tool call. Only storage failures propagate."""
        try:
            call = parse_tool_call(name, tool_input)
            return self._dispatch[call.name](call, current_stops)
        except UnknownTool:
            logger.warning("Assistant requested unknown tool %r", name)
            return ToolOutcome(f"Unknown tool: {name}")
        except ValidationFailed as e:
            logger.info("Rejected %s input: %s", name, e.message)
            return ToolOutcome(f"Invalid input for {name}: {e.message}")
        except NotFound as e:
            return ToolOutcome(f"{e.entity} with ID {e.entity_id} not found")

    # -- Handlers --------------------------------------------------------------

    def _get_trip_info(self, call: GetTripInfo, current_stops: list[Stop]) -> ToolOutcome:
        return ToolOutcome(describe_stops(current_stops))

    def _add_stop(self, call: AddStop, current_stops: list[Stop]) -> ToolOutcome:
        stop = self.service.add_stop(self.trip_id, call.fields)
        stops = self.service.stops.list_by_trip(self.trip_id)
        return ToolOutcome(
            f'Added stop "{stop.name}" ({stop.type.value}) at position {len(stops)}', stops
        )

    def _update_stop(self, call: UpdateStop, current_stops: list[Stop]) -> ToolOutcome:
        stop = self.service.update_stop(call.stop_id, call.changes, trip_id=self.trip_id)
        stops = self.service.stops.list_by_trip(self.trip_id)
        return ToolOutcome(f'Updated stop "{stop.name}"', stops)

    def _remove_stop(self, call: RemoveStop, current_stops: list[Stop]) -> ToolOutcome:
        stop = self.service.delete_stop(call.stop_id, trip_id=self.trip_id)
        stops = self.service.stops.list_by_trip(self.trip_id)
        return ToolOutcome(f'Removed stop "{stop.name}"', stops)

    def _reorder_stops(self, call: ReorderStops, current_stops: list[Stop]) -> ToolOutcome:
        stops = self.service.reorder_stops(self.trip_id, {"stopIds": call.stop_ids})
        return ToolOutcome(f"Reordered {len(call.stop_ids)} stops", stops)
