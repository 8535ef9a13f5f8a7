"""Chauffeur trip itinerary reconciliation.

Merges free-form itinerary updates (already turned into structured
proposals by an upstream extractor) into a canonical trip, and keeps
waypoint coordinates consistent with their addresses.
"""

__version__ = "0.1.0"
