"""The bounded tool-calling loop behind ``POST /api/trips/{id}/chat``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from longway.agent.client import AssistantClient
from longway.agent.tools import TOOL_CATALOG, TripToolbox
from longway.models.stop import Stop
from longway.schemas import ChatRequest, validate
from longway.services.itinerary import ItineraryService

logger = logging.getLogger(__name__)

# Upper bound on the working history; checked after every model round trip.
MAX_HISTORY_MESSAGES = 20


def build_system_prompt(trip_name: str, stops: list[Stop]) -> str:
    if stops:
        stops_description = "\n".join(
            f"{i + 1}. {s.name} ({s.type.value}{', optional' if s.is_optional else ''}): "
            f"{s.description or 'no description'}"
            for i, s in enumerate(stops)
        )
    else:
        stops_description = "No stops yet."

    return f"""You are a helpful trip planning assistant for the trip "{trip_name}". Your role is to help the user plan and organize their journey.

Current stops in the trip:
{stops_description}

You can:
- Add new stops to the trip (use the add_stop tool)
- Update existing stops (use the update_stop tool)
- Remove stops (use the remove_stop tool)
- Reorder stops (use the reorder_stops tool)
- Get current trip information (use the get_trip_info tool)

When adding stops, you'll need coordinates. If the user mentions a place without coordinates, use your knowledge to provide approximate coordinates for well-known locations, or ask the user to provide coordinates or a Google Maps link.

Be concise in your responses. When you make changes, briefly confirm what you did. Focus on being a helpful planning partner."""


@dataclass
class ChatResult:
    response: str
    tool_calls: list[tuple[str, str]] = field(default_factory=list)
    stops: list[Stop] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "response": self.response,
            "stops": [s.to_dict() for s in self.stops],
        }
        if self.tool_calls:
            data["toolCalls"] = [{"name": n, "result": r} for n, r in self.tool_calls]
        return data


class TripAssistant:
    """Drives one chat turn: model call, tool execution, repeat.

    Tool mutations are committed as they happen. An ``AssistantServiceError``
    from the client ends the turn without undoing them.
    """

    def __init__(
        self,
        service: ItineraryService,
        client: AssistantClient,
        max_history: int = MAX_HISTORY_MESSAGES,
    ):
        self.service = service
        self.client = client
        self.max_history = max_history

    def chat(self, trip_id: str, raw: Any) -> ChatResult:
        request = validate(ChatRequest, raw)
        trip = self.service.get_trip(trip_id)
        stops = self.service.stops.list_by_trip(trip_id)
        toolbox = TripToolbox(self.service, trip_id)

        history: list[dict[str, Any]] = [
            {"role": m.role, "content": m.content} for m in request.messages
        ]
        final_response = ""
        tool_calls: list[tuple[str, str]] = []

        while True:
            response = self.client.create_message(
                system=build_system_prompt(trip.name, stops),
                tools=TOOL_CATALOG,
                messages=history,
            )
            content = response.get("content") or []

            tool_results: list[dict[str, Any]] = []
            for block in content:
                block_type = block.get("type")
                if block_type == "text":
                    final_response = block.get("text", "")
                elif block_type == "tool_use":
                    name = block.get("name", "")
                    outcome = toolbox.execute(name, block.get("input") or {}, stops)
                    logger.info("Tool %s on trip %s: %s", name, trip_id, outcome.result[:120])
                    tool_calls.append((name, outcome.result))
                    if outcome.stops is not None:
                        stops = outcome.stops
                    tool_results.append({
                        "type": "tool_result",
                        "tool_use_id": block.get("id"),
                        "content": outcome.result,
                    })

            if not tool_results:
                break

            history.append({"role": "assistant", "content": content})
            history.append({"role": "user", "content": tool_results})

            if len(history) > self.max_history:
                logger.warning(
                    "Chat for trip %s hit the %d-message limit", trip_id, self.max_history
                )
                break

        return ChatResult(response=final_response, tool_calls=tool_calls, stops=stops)
