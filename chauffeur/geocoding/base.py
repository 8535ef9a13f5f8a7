"""Geocoding collaborator boundary: request/result models, errors, interface.

The lookup service is external. Providers translate its failures into
the error types below; coordinate repair treats every one of them as
"repair skipped".
"""

from abc import ABC, abstractmethod

from pydantic import Field

from chauffeur.exceptions import ChauffeurError, ErrorCode
from chauffeur.itinerary.models import FrozenWireModel


class GeocodeRequest(FrozenWireModel):
    """A free-text address lookup."""

    query: str = Field(..., min_length=1, description="Address query")
    region_bias: str = Field(default="", description="Locale hint, e.g. 'London, UK'")
    region_code: str = Field(default="", description="ccTLD region code, e.g. 'uk'")


class GeocodeResult(FrozenWireModel):
    """Outcome of a lookup.

    ``verified=False`` means the service found nothing usable; the other
    fields are then meaningless.
    """

    verified: bool = Field(default=False)
    formatted_address: str = Field(default="")
    lat: float = Field(default=0.0)
    lng: float = Field(default=0.0)
    place_id: str | None = Field(default=None)

    @classmethod
    def unverified(cls) -> "GeocodeResult":
        return cls(verified=False)

    @property
    def usable(self) -> bool:
        """Verified, with an address and real coordinates."""
        return (
            self.verified
            and bool(self.formatted_address.strip())
            and not (self.lat == 0 and self.lng == 0)
        )


# =============================================================================
# Error Types
# =============================================================================


class GeocodingError(ChauffeurError):
    """Base exception for geocoding provider errors."""

    error_code = ErrorCode.GEOCODING_FAILED


class GeocodingAuthenticationError(GeocodingError):
    """Invalid or missing API key."""

    error_code = ErrorCode.GEOCODING_AUTH


class GeocodingRateLimitError(GeocodingError):
    """Quota or rate limit exceeded."""

    error_code = ErrorCode.GEOCODING_RATE_LIMITED


class GeocodingUnavailableError(GeocodingError):
    """Service unreachable or returned an unexpected response."""

    pass


# =============================================================================
# Provider Interface
# =============================================================================


class GeocodingProvider(ABC):
    """Abstract interface for geocoding lookups."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name (used as a metrics label)."""
        pass

    @abstractmethod
    async def geocode(self, request: GeocodeRequest) -> GeocodeResult:
        """Resolve an address query.

        Args:
            request: Query plus region hints

        Returns:
            GeocodeResult, unverified when nothing matched

        Raises:
            GeocodingError: On authentication, quota or transport failures
        """
        pass

    async def close(self) -> None:
        """Release any underlying resources."""
        return None
