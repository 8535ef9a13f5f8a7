"""Google Geocoding API provider."""

from typing import Any

import httpx

from chauffeur.geocoding.base import (
    GeocodeRequest,
    GeocodeResult,
    GeocodingAuthenticationError,
    GeocodingProvider,
    GeocodingRateLimitError,
    GeocodingUnavailableError,
)
from chauffeur.itinerary.text import contains_either
from chauffeur.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://maps.googleapis.com/maps/api/geocode/json"


class GoogleGeocodingProvider(GeocodingProvider):
    """Geocoding through the Google Geocoding JSON API.

    Attributes:
        base_url: Endpoint for geocode requests
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the provider.

        Args:
            api_key: Google Maps API key
            base_url: Endpoint for geocode requests
            timeout: Request timeout in seconds
            client: Pre-built HTTP client (tests pass one with a mock transport)
        """
        self.base_url = base_url
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "google"

    async def __aenter__(self) -> "GoogleGeocodingProvider":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    def _params(self, request: GeocodeRequest) -> dict[str, str]:
        address = request.query
        if request.region_bias and not contains_either(request.region_bias, address):
            address = f"{address}, {request.region_bias}"
        params = {"address": address, "key": self._api_key}
        if request.region_code:
            params["region"] = request.region_code
        return params

    async def geocode(self, request: GeocodeRequest) -> GeocodeResult:
        """Resolve an address query through the API."""
        try:
            response = await self._client.get(self.base_url, params=self._params(request))
        except httpx.HTTPError as exc:
            raise GeocodingUnavailableError(f"geocoding request failed: {exc}") from exc

        if response.status_code == 429:
            raise GeocodingRateLimitError("geocoding rate limit exceeded")
        if response.status_code >= 400:
            raise GeocodingUnavailableError(
                f"geocoding service returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise GeocodingUnavailableError("geocoding service returned invalid JSON") from exc

        return self._parse(payload)

    def _parse(self, payload: dict[str, Any]) -> GeocodeResult:
        status = payload.get("status", "")
        message = payload.get("error_message", status)

        if status == "ZERO_RESULTS":
            return GeocodeResult.unverified()
        if status == "REQUEST_DENIED":
            raise GeocodingAuthenticationError(f"geocoding request denied: {message}")
        if status == "OVER_QUERY_LIMIT":
            raise GeocodingRateLimitError(f"geocoding quota exceeded: {message}")
        if status != "OK":
            raise GeocodingUnavailableError(f"geocoding failed with status {status}: {message}")

        results = payload.get("results") or []
        if not results:
            return GeocodeResult.unverified()

        best = results[0]
        location = best.get("geometry", {}).get("location", {})
        try:
            lat = float(location["lat"])
            lng = float(location["lng"])
        except (KeyError, TypeError, ValueError):
            logger.warning("geocode_result_missing_location", place_id=best.get("place_id"))
            return GeocodeResult.unverified()

        return GeocodeResult(
            verified=True,
            formatted_address=best.get("formatted_address", ""),
            lat=lat,
            lng=lng,
            place_id=best.get("place_id"),
        )
