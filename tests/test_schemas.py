"""Tests for boundary validation (longway.schemas)."""

from __future__ import annotations

import unittest
import uuid

from longway.errors import ValidationFailed
from longway.schemas import (
    ChatRequest,
    ConversationSave,
    ExportDocument,
    ReorderRequest,
    SettingsSave,
    StopCreate,
    StopUpdate,
    TripCreate,
    TripUpdate,
    check_duration_pair,
    validate,
)

from helpers import stop_fields


class TestTripSchemas(unittest.TestCase):
    def test_name_trimmed(self):
        data = validate(TripCreate, {"name": "  Lofoten  "})
        self.assertEqual(data.name, "Lofoten")
        self.assertIsNone(data.description)

    def test_blank_name_rejected(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(TripCreate, {"name": "   "})
        self.assertEqual(ctx.exception.field, "name")

    def test_missing_name_rejected(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(TripCreate, {"description": "x"})
        self.assertEqual(ctx.exception.field, "name")

    def test_name_length_limit(self):
        validate(TripCreate, {"name": "a" * 200})
        with self.assertRaises(ValidationFailed):
            validate(TripCreate, {"name": "a" * 201})

    def test_description_limit(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(TripCreate, {"name": "x", "description": "d" * 2001})
        self.assertEqual(ctx.exception.field, "description")

    def test_update_tracks_supplied_fields(self):
        self.assertEqual(validate(TripUpdate, {}).changes(), {})
        self.assertEqual(validate(TripUpdate, {"description": None}).changes(), {"description": None})

    def test_update_name_not_nullable(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(TripUpdate, {"name": None})
        self.assertEqual(ctx.exception.field, "name")

    def test_non_object_body(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(TripCreate, ["not", "an", "object"])
        self.assertEqual(ctx.exception.field, "body")


class TestStopSchemas(unittest.TestCase):
    def test_defaults(self):
        data = validate(StopCreate, stop_fields())
        fields = data.insert_fields()
        self.assertFalse(fields["is_optional"])
        self.assertEqual(fields["tags"], [])
        self.assertEqual(fields["type"], "stop")
        self.assertNotIn("order", fields)

    def test_coordinate_boundaries_accepted(self):
        for lat, lng in ((90, 180), (-90, -180), (90.0, -180.0), (0, 0)):
            validate(StopCreate, stop_fields(latitude=lat, longitude=lng))

    def test_latitude_out_of_range(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(StopCreate, stop_fields(latitude=90.0001))
        self.assertEqual(ctx.exception.field, "latitude")

    def test_longitude_out_of_range(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(StopCreate, stop_fields(longitude=-180.0001))
        self.assertEqual(ctx.exception.field, "longitude")

    def test_non_finite_coordinates(self):
        with self.assertRaises(ValidationFailed):
            validate(StopCreate, stop_fields(latitude=float("nan")))

    def test_string_coordinates_rejected(self):
        with self.assertRaises(ValidationFailed):
            validate(StopCreate, stop_fields(latitude="41.4"))

    def test_unknown_type_rejected(self):
        with self.assertRaises(ValidationFailed) as ctx:
            validate(StopCreate, stop_fields(type="campsite"))
        self.assertEqual(ctx.exception.field, "type")

    def test_array_limits(self):
        validate(StopCreate, stop_fields(tags=["t"] * 100))
        with self.assertRaises(ValidationFailed):
            validate(StopCreate, stop_fields(tags=["t"] * 101))
        with self.assertRaises(ValidationFailed) as ctx:
            validate(StopCreate, stop_fields(tags=["ok", "x" * 51]))
        self.assertTrue(ctx.exception.field.startswith("tags"))
        with self.assertRaises(ValidationFailed):
            validate(StopCreate, stop_fields(links=["l" * 501]))

    def test_duration_bounds(self):
        validate(StopCreate, stop_fields(duration_value=365, duration_unit="days"))
        with self.assertRaises(ValidationFailed):
            validate(StopCreate, stop_fields(duration_value=366, duration_unit="days"))
        with self.assertRaises(ValidationFailed):
            validate(StopCreate, stop_fields(duration_value=-1, duration_unit="days"))

    def test_duration_pair(self):
        check_duration_pair(None, None)
        check_duration_pair(0, "hours")
        with self.assertRaises(ValidationFailed):
            check_duration_pair(3, None)
        with self.assertRaises(ValidationFailed):
            check_duration_pair(None, "nights")

    def test_update_partial(self):
        changes = validate(StopUpdate, {"notes": None, "tags": ["a"]}).changes()
        self.assertEqual(changes, {"notes": None, "tags": ["a"]})

    def test_update_rejects_null_for_required_columns(self):
        for field in ("name", "type", "latitude", "longitude", "is_optional", "tags"):
            with self.assertRaises(ValidationFailed) as ctx:
                validate(StopUpdate, {field: None})
            self.assertEqual(ctx.exception.field, field)

    def test_update_coordinate_boundary(self):
        validate(StopUpdate, {"latitude": -90})
        with self.assertRaises(ValidationFailed):
            validate(StopUpdate, {"latitude": -90.5})


class TestMiscSchemas(unittest.TestCase):
    def test_reorder_requires_uuids(self):
        ids = [str(uuid.uuid4()) for _ in range(3)]
        self.assertEqual(validate(ReorderRequest, {"stopIds": ids}).stopIds, ids)
        with self.assertRaises(ValidationFailed):
            validate(ReorderRequest, {"stopIds": []})
        with self.assertRaises(ValidationFailed):
            validate(ReorderRequest, {"stopIds": ["not-a-uuid"]})

    def test_chat_request_limits(self):
        validate(ChatRequest, {"messages": [{"role": "user", "content": "hi"}]})
        with self.assertRaises(ValidationFailed):
            validate(ChatRequest, {"messages": []})
        with self.assertRaises(ValidationFailed):
            validate(ChatRequest, {"messages": [{"role": "system", "content": "hi"}]})
        with self.assertRaises(ValidationFailed):
            validate(ChatRequest, {"messages": [{"role": "user", "content": ""}]})

    def test_conversation_requires_timestamp(self):
        with self.assertRaises(ValidationFailed):
            validate(ConversationSave, {"messages": [{"role": "user", "content": "hi"}]})
        data = validate(ConversationSave, {"messages": []})
        self.assertEqual(data.messages, [])

    def test_conversation_message_cap(self):
        msg = {"role": "user", "content": "x", "timestamp": "t"}
        validate(ConversationSave, {"messages": [msg] * 1000})
        with self.assertRaises(ValidationFailed):
            validate(ConversationSave, {"messages": [msg] * 1001})

    def test_settings_key_optional(self):
        self.assertIsNone(validate(SettingsSave, {}).apiKey)

    def test_export_document(self):
        doc = {
            "version": 1,
            "exportedAt": "2030-01-01T00:00:00.000Z",
            "trips": [{"id": "t", "name": "n", "stops": [
                {"id": "s", "name": "s", "type": "stop", "latitude": 1, "longitude": 2},
            ]}],
        }
        parsed = validate(ExportDocument, doc)
        self.assertEqual(parsed.trips[0].stops[0].tags, [])
        del doc["trips"][0]["stops"]
        with self.assertRaises(ValidationFailed):
            validate(ExportDocument, doc)

    def test_export_document_applies_stop_limits(self):
        def doc_with(**stop):
            base = {"id": "s", "name": "Bergen", "type": "stop", "latitude": 60.0, "longitude": 5.0}
            return {"version": 1, "exportedAt": "x", "trips": [
                {"id": "t", "name": "Norway", "stops": [dict(base, **stop)]},
            ]}

        validate(ExportDocument, doc_with(latitude=90, longitude=-180))
        for bad in (
            {"name": ""},
            {"latitude": 500.0},
            {"longitude": -180.0001},
            {"tags": ["t"] * 101},
            {"duration_value": 2},
        ):
            with self.assertRaises(ValidationFailed):
                validate(ExportDocument, doc_with(**bad))

        with self.assertRaises(ValidationFailed) as ctx:
            validate(ExportDocument, {"version": 1, "exportedAt": "x", "trips": [
                {"id": "t", "name": " ", "stops": []},
            ]})
        self.assertEqual(ctx.exception.field, "trips.0.name")


if __name__ == "__main__":
    unittest.main()
