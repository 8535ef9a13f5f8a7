"""Geocoding collaborator boundary and coordinate consistency.

Providers resolve address text to coordinates; the validator detects
waypoints whose address and coordinates disagree; the repairer re-queries
those waypoints concurrently and keeps the original on any failure.
"""

from chauffeur.geocoding.base import (
    GeocodeRequest,
    GeocodeResult,
    GeocodingAuthenticationError,
    GeocodingError,
    GeocodingProvider,
    GeocodingRateLimitError,
    GeocodingUnavailableError,
)
from chauffeur.geocoding.consistency import (
    CoordinateValidator,
    RepairDiagnosis,
    RepairReason,
    equirectangular_km,
    is_non_specific_location,
)
from chauffeur.geocoding.factory import create_geocoding_provider
from chauffeur.geocoding.google import GoogleGeocodingProvider
from chauffeur.geocoding.mock import MockGeocodingProvider
from chauffeur.geocoding.regions import facility_class_of, find_facility, is_airport, resolve_region
from chauffeur.geocoding.repair import CoordinateRepairer, RepairOutcome, RepairStatus

__all__ = [
    "CoordinateRepairer",
    "CoordinateValidator",
    "GeocodeRequest",
    "GeocodeResult",
    "GeocodingAuthenticationError",
    "GeocodingError",
    "GeocodingProvider",
    "GeocodingRateLimitError",
    "GeocodingUnavailableError",
    "GoogleGeocodingProvider",
    "MockGeocodingProvider",
    "RepairDiagnosis",
    "RepairOutcome",
    "RepairReason",
    "RepairStatus",
    "create_geocoding_provider",
    "equirectangular_km",
    "facility_class_of",
    "find_facility",
    "is_airport",
    "is_non_specific_location",
    "resolve_region",
]
