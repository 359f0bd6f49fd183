"""FastAPI web server for Longway."""
from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from longway.agent.assistant import TripAssistant
from longway.agent.client import AnthropicClient, AssistantClient
from longway.config import AppConfig, load_config
from longway.db.database import Database
from longway.db.trip_repo import TripRepository
from longway.errors import (
    AssistantServiceError,
    ConfigurationError,
    NotFound,
    StorageFailure,
    ValidationFailed,
)
from longway.log import configure_logging
from longway.schemas import ChatRequest, ImportRequest, validate
from longway.services.itinerary import ItineraryService
from longway.services.settings import SettingsService
from longway.services.transfer import export_all, import_data

logger = logging.getLogger("longway.server")

AssistantFactory = Callable[[str], AssistantClient]


async def _json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationFailed("body", "Request body must be valid JSON") from None


def _error(message: str, status: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def _validation_failed(request: Request, exc: ValidationFailed):
        return _error(exc.message, 400)

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound):
        return _error(exc.message, 404)

    @app.exception_handler(AssistantServiceError)
    async def _assistant_failed(request: Request, exc: AssistantServiceError):
        logger.error("Assistant error on %s: %s", request.url.path, exc.message)
        return _error(f"Anthropic API error: {exc.message}", exc.status or 502)

    @app.exception_handler(StorageFailure)
    async def _storage_failed(request: Request, exc: StorageFailure):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return _error("Internal storage error", 500)

    @app.exception_handler(ConfigurationError)
    async def _misconfigured(request: Request, exc: ConfigurationError):
        logger.error("Configuration error: %s", exc)
        return _error(str(exc), 500)


def create_app(
    config: Optional[AppConfig] = None,
    assistant_factory: Optional[AssistantFactory] = None,
) -> FastAPI:
    """Build the app. The one ``Database`` handle lives on ``app.state``."""
    config = config or load_config()
    configure_logging(config.server.log_level)
    db = Database.from_config(config.storage)

    if assistant_factory is None:
        def assistant_factory(api_key: str) -> AssistantClient:
            return AnthropicClient(api_key, config.assistant)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Server started - storage: %s", db.dialect)
        yield
        db.close()
        logger.info("Server shutting down")

    app = FastAPI(
        title="Longway API",
        description="Trip planning with an itinerary assistant",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db = db
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    itinerary = ItineraryService(db)
    settings = SettingsService(db)

    # -- Status ----------------------------------------------------------------

    @app.get("/api/status")
    async def get_status():
        """Get system status."""
        return {
            "status": "ok",
            "database": db.dialect,
            "assistant_configured": await run_in_threadpool(settings.get_api_key) is not None,
            "model": config.assistant.model,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # -- Trips -----------------------------------------------------------------

    @app.get("/api/trips")
    async def list_trips():
        trips = await run_in_threadpool(itinerary.list_trips)
        return [t.to_dict() for t in trips]

    @app.post("/api/trips", status_code=201)
    async def create_trip(request: Request):
        trip = await run_in_threadpool(itinerary.create_trip, await _json_body(request))
        return trip.to_dict()

    @app.get("/api/trips/{trip_id}")
    async def get_trip(trip_id: str):
        trip, stops = await run_in_threadpool(itinerary.get_trip_with_stops, trip_id)
        return {"trip": trip.to_dict(), "stops": [s.to_dict() for s in stops]}

    @app.put("/api/trips/{trip_id}")
    async def update_trip(trip_id: str, request: Request):
        trip = await run_in_threadpool(itinerary.update_trip, trip_id, await _json_body(request))
        return trip.to_dict()

    @app.delete("/api/trips/{trip_id}")
    async def delete_trip(trip_id: str):
        await run_in_threadpool(itinerary.delete_trip, trip_id)
        return {"success": True}

    # -- Stops -----------------------------------------------------------------

    @app.get("/api/trips/{trip_id}/stops")
    async def list_stops(trip_id: str):
        stops = await run_in_threadpool(itinerary.list_stops, trip_id)
        return [s.to_dict() for s in stops]

    @app.post("/api/trips/{trip_id}/stops", status_code=201)
    async def create_stop(trip_id: str, request: Request):
        stop = await run_in_threadpool(itinerary.add_stop, trip_id, await _json_body(request))
        return stop.to_dict()

    @app.patch("/api/trips/{trip_id}/stops")
    async def reorder_stops(trip_id: str, request: Request):
        stops = await run_in_threadpool(itinerary.reorder_stops, trip_id, await _json_body(request))
        return [s.to_dict() for s in stops]

    @app.get("/api/stops/{stop_id}")
    async def get_stop(stop_id: str):
        stop = await run_in_threadpool(itinerary.get_stop, stop_id)
        return stop.to_dict()

    @app.put("/api/stops/{stop_id}")
    async def update_stop(stop_id: str, request: Request):
        stop = await run_in_threadpool(itinerary.update_stop, stop_id, await _json_body(request))
        return stop.to_dict()

    @app.delete("/api/stops/{stop_id}")
    async def delete_stop(stop_id: str):
        await run_in_threadpool(itinerary.delete_stop, stop_id)
        return {"success": True}

    # -- Conversation & chat ---------------------------------------------------

    @app.get("/api/trips/{trip_id}/conversation")
    async def get_conversation(trip_id: str):
        conversation = await run_in_threadpool(itinerary.get_conversation, trip_id)
        messages = conversation.messages if conversation else []
        return {"messages": [m.to_dict() for m in messages]}

    @app.post("/api/trips/{trip_id}/conversation")
    async def save_conversation(trip_id: str, request: Request):
        await run_in_threadpool(itinerary.save_conversation, trip_id, await _json_body(request))
        return {"success": True}

    @app.delete("/api/trips/{trip_id}/conversation")
    async def clear_conversation(trip_id: str):
        await run_in_threadpool(itinerary.clear_conversation, trip_id)
        return {"success": True}

    @app.post("/api/trips/{trip_id}/chat")
    async def chat(trip_id: str, request: Request):
        body = await _json_body(request)
        validate(ChatRequest, body)

        api_key = await run_in_threadpool(settings.get_api_key)
        if not api_key:
            raise ValidationFailed(
                "apiKey", "Anthropic API key not configured. Please add it in Settings."
            )

        assistant = TripAssistant(itinerary, assistant_factory(api_key))
        result = await run_in_threadpool(assistant.chat, trip_id, body)
        return result.to_dict()

    # -- Settings --------------------------------------------------------------

    @app.get("/api/settings")
    async def get_settings():
        return await run_in_threadpool(settings.describe)

    @app.post("/api/settings")
    async def save_settings(request: Request):
        await run_in_threadpool(settings.save, await _json_body(request))
        return {"success": True}

    # -- Export / import -------------------------------------------------------

    @app.get("/api/export")
    async def export_data():
        data = await run_in_threadpool(export_all, db)
        filename = f"longway-export-{data['exportedAt'][:10]}.json"
        return JSONResponse(
            data, headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )

    @app.post("/api/import")
    async def import_trips(request: Request):
        payload = validate(ImportRequest, await _json_body(request))
        if payload.mode == "replace":
            removed = await run_in_threadpool(TripRepository(db).delete_all)
            logger.info("Replace import: removed %d existing trip(s)", removed)

        result = await run_in_threadpool(import_data, db, payload.data.model_dump(), payload.mode)
        return {
            "success": True,
            "imported": result.imported,
            "skipped": result.skipped,
            "message": result.message,
        }

    return app


app = create_app()
