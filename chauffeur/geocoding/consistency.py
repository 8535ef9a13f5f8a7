"""Coordinate consistency checks.

A waypoint is inconsistent when its address text and its lat/lng do not
describe the same place: missing coordinates, a truncated city-only
geocode, or a named facility whose coordinates sit somewhere else.
"""

import math
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from chauffeur.config.models import FacilityConfig, GeocodingConfig, RegionConfig
from chauffeur.geocoding.base import GeocodeRequest
from chauffeur.geocoding.regions import facility_class_of, find_facility
from chauffeur.itinerary.models import Waypoint
from chauffeur.itinerary.text import contains_either, normalize_text

EARTH_RADIUS_KM = 6371.0

_STREET_DETAIL = re.compile(
    r"\b\d+[a-z]?\s*,?\s*(?:rue|avenue|boulevard|bd|street|st|ave|road|rd|lane|ln|drive|dr"
    r"|way|close|plaza|place|pl|square|sq|row|court|ct|terrace|gardens|park|crescent"
    r"|circle|walk|mews|gate|quay|wharf|bridge|passage|grove|green|hill|calle|carrer"
    r"|avenida|via|viale|strada|straße|strasse|straat|weg|gasse)\b",
    re.IGNORECASE,
)
_COUNTRY_SUFFIX = (
    r"(?:uk|usa|us|united\s+kingdom|united\s+states|france|deutschland|germany"
    r"|singapore|japan|switzerland)"
)


class RepairReason(str, Enum):
    """Why a waypoint's coordinates are not trusted."""

    ZERO_COORDINATES = "zero_coordinates"
    INCOMPLETE_ADDRESS = "incomplete_address"
    CITY_CENTER_MISMATCH = "city_center_mismatch"
    FACILITY_DISTANCE_MISMATCH = "facility_distance_mismatch"
    STALE_COORDINATES = "stale_coordinates"


class RepairDiagnosis(BaseModel):
    """Result of a failed consistency check."""

    model_config = ConfigDict(frozen=True)

    reason: RepairReason = Field(..., description="Failed check")
    facility: FacilityConfig | None = Field(default=None, description="Facility the address names")
    distance_km: float | None = Field(default=None, description="Distance from the facility")
    detail: str = Field(default="", description="Human-readable explanation")

    @property
    def class_specific(self) -> bool:
        return self.reason in (
            RepairReason.CITY_CENTER_MISMATCH,
            RepairReason.FACILITY_DISTANCE_MISMATCH,
        )


def equirectangular_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Approximate great-circle distance in kilometres.

    Accurate to well under a percent at the distances that matter here
    (a few tens of kilometres).
    """
    mean_lat = math.radians((lat1 + lat2) / 2)
    x = math.radians(lng2 - lng1) * math.cos(mean_lat)
    y = math.radians(lat2 - lat1)
    return EARTH_RADIUS_KM * math.hypot(x, y)


def is_non_specific_location(
    text: str | None,
    destination: str | None,
    region: RegionConfig | None = None,
) -> bool:
    """Check whether an address is only a city, or a place plus city.

    A lookup service always returns coordinates for such text (the city
    centre), so it cannot be trusted as a stop address. Text with a
    postcode or a numbered street is specific.
    """
    location = normalize_text(text)
    city = normalize_text(destination)
    if not location or not city:
        return False
    if location == city:
        return True

    escaped = re.escape(city)
    if re.fullmatch(rf"{escaped}(?:\s*,\s*|\s+)?{_COUNTRY_SUFFIX}?", location):
        return True
    if not re.search(rf"(?<!\w){escaped}(?!\w)", location):
        return False

    if region is not None and region.postcode_pattern:
        if re.search(region.postcode_pattern, text or "", re.IGNORECASE):
            return False
    if _STREET_DETAIL.search(location):
        return False
    return True


class CoordinateValidator:
    """Detects address/coordinate drift on waypoints."""

    def __init__(self, config: GeocodingConfig) -> None:
        """Initialize the validator.

        Args:
            config: Geocoding configuration (address length threshold)
        """
        self._min_address_length = config.min_address_length

    def diagnose(self, waypoint: Waypoint, region: RegionConfig) -> RepairDiagnosis | None:
        """Run the checks in order and return the first failure.

        Order: zero coordinates, named-facility distance, facility class
        inside the city-centre box, then truncated address text.
        """
        if not waypoint.has_coordinates:
            return RepairDiagnosis(
                reason=RepairReason.ZERO_COORDINATES,
                detail="coordinates are (0, 0)",
            )

        mismatch = self.class_mismatch(waypoint, region)
        if mismatch is not None:
            return mismatch

        address = waypoint.geocoded_address.strip()
        if len(address) < self._min_address_length or "," not in address:
            return RepairDiagnosis(
                reason=RepairReason.INCOMPLETE_ADDRESS,
                detail=f"address {address!r} looks truncated",
            )
        return None

    def class_mismatch(self, waypoint: Waypoint, region: RegionConfig) -> RepairDiagnosis | None:
        """Check the class-specific rules only."""
        text = f"{waypoint.full_address} {waypoint.formatted_address}"
        facility = find_facility(text, region)
        if facility is not None:
            distance = equirectangular_km(waypoint.lat, waypoint.lng, facility.lat, facility.lng)
            if distance > facility.max_distance_km:
                return RepairDiagnosis(
                    reason=RepairReason.FACILITY_DISTANCE_MISMATCH,
                    facility=facility,
                    distance_km=round(distance, 2),
                    detail=(
                        f"{facility.name} named but coordinates are {distance:.1f} km away "
                        f"(limit {facility.max_distance_km:g} km)"
                    ),
                )
            return None

        facility_class = facility_class_of(text, region)
        if (
            facility_class is not None
            and region.city_center is not None
            and region.city_center.contains(waypoint.lat, waypoint.lng)
        ):
            return RepairDiagnosis(
                reason=RepairReason.CITY_CENTER_MISMATCH,
                detail=f"{facility_class} address but coordinates are in the {region.key} city centre",
            )
        return None

    def needs_repair(self, waypoint: Waypoint, region: RegionConfig) -> bool:
        """Check whether a waypoint fails any consistency check."""
        return self.diagnose(waypoint, region) is not None

    def still_fails(
        self,
        candidate: Waypoint,
        diagnosis: RepairDiagnosis,
        region: RegionConfig,
    ) -> bool:
        """Check whether a repaired waypoint still fails the check that triggered it."""
        if not candidate.has_coordinates:
            return True
        if diagnosis.class_specific:
            return self.class_mismatch(candidate, region) is not None
        return False

    def build_query(
        self,
        waypoint: Waypoint,
        diagnosis: RepairDiagnosis,
        region: RegionConfig,
    ) -> GeocodeRequest | None:
        """Build a disambiguated lookup for a waypoint.

        For a class-specific mismatch the facility's canonical name is
        appended when the address does not already contain it. Returns None
        when there is no text to look up.
        """
        base = (waypoint.full_address or waypoint.formatted_address or waypoint.name).strip()
        query = base
        if diagnosis.facility is not None and not contains_either(diagnosis.facility.name, base):
            query = f"{base}, {diagnosis.facility.name}" if base else diagnosis.facility.name
        if not query:
            return None
        return GeocodeRequest(
            query=query,
            region_bias=region.region_bias,
            region_code=region.region_code,
        )
