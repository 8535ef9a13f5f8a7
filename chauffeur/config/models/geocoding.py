"""Geocoding collaborator and coordinate repair configuration.

The region table (city-centre boxes, facility reference points) is data,
not code: defaults ship in ``chauffeur/geocoding/regions.toml`` and any
``[[geocoding.regions]]`` entries in config/*.toml replace them.
"""

import tomllib
from importlib import resources
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, model_validator

GeocodingProviderType = Literal["google", "mock"]
FacilityClass = Literal["airport", "station", "port", "venue"]


class BoundingBox(BaseModel):
    """Latitude/longitude rectangle."""

    min_lat: float = Field(..., ge=-90.0, le=90.0)
    max_lat: float = Field(..., ge=-90.0, le=90.0)
    min_lng: float = Field(..., ge=-180.0, le=180.0)
    max_lng: float = Field(..., ge=-180.0, le=180.0)

    @model_validator(mode="after")
    def check_bounds(self) -> "BoundingBox":
        if self.min_lat > self.max_lat or self.min_lng > self.max_lng:
            raise ValueError("bounding box minimums must not exceed maximums")
        return self

    def contains(self, lat: float, lng: float) -> bool:
        """Check whether a point falls inside the box (edges included)."""
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


class FacilityConfig(BaseModel):
    """A named facility with a known reference point."""

    name: str = Field(..., description="Canonical name used for disambiguated lookups")
    keywords: list[str] = Field(default_factory=list, description="Lowercase address tokens")
    facility_class: FacilityClass = Field(default="airport", description="Facility class")
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    max_distance_km: float = Field(
        default=5.0,
        gt=0,
        description="Coordinates further than this from the reference point are a mismatch",
    )


class RegionConfig(BaseModel):
    """Per-region geocoding context."""

    key: str = Field(..., description="Region identifier")
    names: list[str] = Field(default_factory=list, description="Destination names mapping here")
    region_bias: str = Field(..., description="Locale appended to lookups, e.g. 'London, UK'")
    region_code: str = Field(default="", description="ccTLD region hint for the lookup service")
    city_center: BoundingBox | None = Field(
        default=None,
        description="Box a vague, city-only geocode tends to land in",
    )
    postcode_pattern: str | None = Field(
        default=None,
        description="Regex for a postcode in this region",
    )
    facilities: list[FacilityConfig] = Field(default_factory=list)


def load_default_regions() -> list[RegionConfig]:
    """Load the bundled region table."""
    source = resources.files("chauffeur").joinpath("geocoding/regions.toml")
    data = tomllib.loads(source.read_text(encoding="utf-8"))
    return [RegionConfig.model_validate(region) for region in data.get("regions", [])]


class GeocodingConfig(BaseModel):
    """Geocoding provider and repair configuration."""

    provider: GeocodingProviderType = Field(default="mock", description="Provider type")
    api_key: SecretStr | None = Field(default=None, description="API key (prefer env var)")
    base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/geocode/json",
        description="Geocoding endpoint",
    )
    timeout_ms: int = Field(default=5000, gt=0, description="Per-lookup timeout in ms")
    max_parallel: int = Field(default=8, gt=0, description="Concurrent lookups per pass")
    default_region: str = Field(
        default="london",
        description="Region used when the trip destination is unknown",
    )
    min_address_length: int = Field(
        default=20,
        ge=0,
        description="Shorter address strings are treated as truncated geocodes",
    )
    regions: list[RegionConfig] = Field(default_factory=load_default_regions)
