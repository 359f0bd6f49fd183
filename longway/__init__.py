"""Longway: self-hosted trip planning backend with an itinerary assistant."""

__version__ = "0.1.0"
