"""Itinerary domain models.

Waypoint and Trip are the canonical, immutable itinerary; ExtractedUpdate
and ProposedLocation are the partial proposal coming back from the
extraction step.
"""

from chauffeur.itinerary.models import (
    ExtractedUpdate,
    FlightDirection,
    ProposedLocation,
    Trip,
    Waypoint,
    new_waypoint_id,
)

__all__ = [
    "ExtractedUpdate",
    "FlightDirection",
    "ProposedLocation",
    "Trip",
    "Waypoint",
    "new_waypoint_id",
]
