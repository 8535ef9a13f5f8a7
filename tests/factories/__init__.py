"""Test factories for Chauffeur domain models."""

from tests.factories.itinerary import (
    ProposedLocationFactory,
    TripFactory,
    UpdateFactory,
    WaypointFactory,
)

__all__ = [
    "ProposedLocationFactory",
    "TripFactory",
    "UpdateFactory",
    "WaypointFactory",
]
