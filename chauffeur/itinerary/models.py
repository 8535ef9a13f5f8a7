"""Itinerary models: the canonical trip and the extracted update proposal.

All models serialise in camelCase (the extraction collaborator speaks
JSON) and accept either camelCase or snake_case on input.
"""

from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from chauffeur.itinerary.text import is_blank, normalize_time


def new_waypoint_id() -> str:
    """Mint a fresh, opaque waypoint id."""
    return f"wp_{uuid4().hex[:12]}"


def _coerce_coordinate(value: Any) -> Any:
    if value is None or value == "":
        return 0.0
    return value


class WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FrozenWireModel(WireModel):
    """Immutable camelCase model; replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Enums
# =============================================================================


class FlightDirection(str, Enum):
    """Whether a flight lands at or leaves from a waypoint."""

    ARRIVAL = "arrival"
    DEPARTURE = "departure"


# =============================================================================
# Canonical itinerary
# =============================================================================


class Waypoint(FrozenWireModel):
    """One stop of a trip.

    Index 0 of a trip is the pickup and the last index is the dropoff.
    """

    id: str = Field(default_factory=new_waypoint_id, description="Stable, opaque id")
    name: str = Field(default="", description="Display name")
    full_address: str = Field(default="", description="Address as entered or extracted")
    formatted_address: str = Field(default="", description="Address as geocoded")
    lat: float = Field(default=0.0, ge=-90.0, le=90.0)
    lng: float = Field(default=0.0, ge=-180.0, le=180.0)
    time: str | None = Field(default=None, description="HH:MM")
    purpose: str = Field(default="", description="Why the stop exists")
    flight_number: str | None = Field(default=None, description="e.g. BA123")
    flight_direction: FlightDirection | None = Field(default=None)

    @field_validator("lat", "lng", mode="before")
    @classmethod
    def default_missing_coordinate(cls, value: Any) -> Any:
        return _coerce_coordinate(value)

    @field_validator("name", "full_address", "formatted_address", "purpose", mode="before")
    @classmethod
    def default_missing_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def address(self) -> str:
        """The address a person entered, falling back to the geocoded one."""
        return self.full_address or self.formatted_address

    @property
    def geocoded_address(self) -> str:
        """The address the coordinates belong to."""
        return self.formatted_address or self.full_address

    @property
    def has_coordinates(self) -> bool:
        return not (self.lat == 0 and self.lng == 0)


class Trip(FrozenWireModel):
    """Canonical trip: trip-level fields plus ordered waypoints."""

    date: str | None = Field(default=None, description="YYYY-MM-DD")
    lead_passenger_name: str | None = Field(default=None)
    vehicle_info: str | None = Field(default=None)
    passenger_count: int | None = Field(default=None, ge=0)
    trip_destination: str | None = Field(default=None, description="City or region")
    notes: str = Field(default="", description="Driver notes, one bullet per line")
    waypoints: tuple[Waypoint, ...] = Field(default_factory=tuple)

    @field_validator("notes", mode="before")
    @classmethod
    def default_missing_notes(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def pickup(self) -> Waypoint | None:
        return self.waypoints[0] if self.waypoints else None

    @property
    def dropoff(self) -> Waypoint | None:
        return self.waypoints[-1] if self.waypoints else None


# =============================================================================
# Extracted update proposal
# =============================================================================


class ProposedLocation(WireModel):
    """One location entry of an extracted update.

    Every field is optional: the extractor may mention only a time, or only
    an anchor, for a given stop.
    """

    model_config = ConfigDict(frozen=True)

    location: str = Field(default="", description="Free-text place")
    formatted_address: str | None = Field(default=None)
    lat: float | None = Field(default=None)
    lng: float | None = Field(default=None)
    time: str | None = Field(default=None)
    purpose: str | None = Field(default=None)
    insert_after: str | None = Field(default=None, description="Anchor keyword")
    insert_before: str | None = Field(default=None, description="Anchor keyword")
    location_index: int | None = Field(
        default=None,
        description="Explicit index into the current waypoints",
    )
    verified: bool | None = Field(default=None)
    place_id: str | None = Field(default=None)
    flight_number: str | None = Field(default=None)
    flight_direction: FlightDirection | None = Field(default=None)

    @field_validator("location", mode="before")
    @classmethod
    def default_missing_location(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("time", mode="before")
    @classmethod
    def normalize_proposed_time(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_time(value)
        return value

    @field_validator("flight_direction", mode="before")
    @classmethod
    def lowercase_direction(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @property
    def address(self) -> str:
        """Best address text the entry carries."""
        return (self.formatted_address or "").strip() or self.location.strip()

    @property
    def text(self) -> str:
        """All free text of the entry, for keyword gates."""
        return " ".join(part for part in (self.location, self.purpose or "") if part).strip()

    @property
    def has_coordinates(self) -> bool:
        if self.lat is None or self.lng is None:
            return False
        return not (self.lat == 0 and self.lng == 0)

    @property
    def anchor(self) -> str | None:
        return self.insert_after or self.insert_before


class ExtractedUpdate(WireModel):
    """Partial update proposal from the extraction collaborator.

    A missing or null field means "not mentioned", never "cleared".
    """

    model_config = ConfigDict(frozen=True)

    date: str | None = Field(default=None)
    lead_passenger_name: str | None = Field(default=None)
    passenger_names: list[str] = Field(default_factory=list)
    vehicle_info: str | None = Field(default=None)
    passenger_count: int | None = Field(default=None)
    trip_destination: str | None = Field(default=None)
    driver_notes: str | None = Field(default=None)
    locations: list[ProposedLocation] = Field(default_factory=list)
    removed_locations: list[str] = Field(default_factory=list)

    @field_validator("passenger_names", "locations", "removed_locations", mode="before")
    @classmethod
    def default_missing_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("removed_locations", "passenger_names", mode="after")
    @classmethod
    def drop_blank_entries(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if not is_blank(item)]

    @field_validator("driver_notes", mode="before")
    @classmethod
    def join_driver_notes(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            lines = [str(item).strip() for item in value if not is_blank(item)]
            return "\n".join(lines) or None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("passenger_count", mode="before")
    @classmethod
    def coerce_passenger_count(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return None
        try:
            count = int(value)
        except (TypeError, ValueError):
            return None
        return count if count > 0 else None

    @field_validator("date", "lead_passenger_name", "vehicle_info", "trip_destination", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return None if is_blank(value) else value

    @property
    def lead_passenger(self) -> str | None:
        """Lead passenger, falling back to the joined passenger names."""
        if self.lead_passenger_name:
            return self.lead_passenger_name
        if self.passenger_names:
            return ", ".join(self.passenger_names)
        return None

    @property
    def is_empty(self) -> bool:
        """True when the update mentions nothing at all."""
        return (
            self.date is None
            and self.lead_passenger is None
            and self.vehicle_info is None
            and self.passenger_count is None
            and self.trip_destination is None
            and self.driver_notes is None
            and not self.locations
            and not self.removed_locations
        )
