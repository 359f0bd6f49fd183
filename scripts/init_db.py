#!/usr/bin/env python3
"""Initialize the database and optionally seed it from a YAML or export file."""

from __future__ import annotations

import argparse
import json
from dataclasses import replace
from pathlib import Path

import yaml

from longway.config import get_storage_config
from longway.db.database import Database
from longway.errors import LongwayError
from longway.services.itinerary import ItineraryService
from longway.services.transfer import import_data


def main():
    parser = argparse.ArgumentParser(description="Initialize the database")
    parser.add_argument("--seed-trips", type=str, help="YAML file with trip definitions")
    parser.add_argument("--import-json", type=str, help="Export JSON file to import (merge mode)")
    parser.add_argument("--db-path", type=str, help="Override SQLite database path")
    args = parser.parse_args()

    config = get_storage_config()
    if args.db_path:
        config = replace(config, database_path=Path(args.db_path), database_url=None)

    db = Database.from_config(config)
    db.ensure_schema()
    where = config.database_path if config.backend == "sqlite" else "PostgreSQL"
    print(f"Database initialized at: {where}")

    if args.seed_trips:
        _seed_trips(db, Path(args.seed_trips))

    if args.import_json:
        _import_json(db, Path(args.import_json))

    db.close()
    print("Done.")


def _seed_trips(db: Database, path: Path):
    """YAML layout: ``trips: [{name, description?, stops: [{name, type, latitude, longitude, ...}]}]``."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    service = ItineraryService(db)
    for t in data.get("trips", []):
        try:
            trip = service.create_trip({"name": t.get("name"), "description": t.get("description")})
            for s in t.get("stops", []):
                service.add_stop(trip.id, s)
            print(f"  Created trip: {trip.name} ({len(t.get('stops', []))} stops)")
        except LongwayError as e:
            print(f"  Skipping {t.get('name', '?')}: {e}")


def _import_json(db: Database, path: Path):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    result = import_data(db, data, "merge")
    print(f"  {result.message}")


if __name__ == "__main__":
    main()
