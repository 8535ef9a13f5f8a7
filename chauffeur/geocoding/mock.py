"""Mock geocoding provider for testing."""

import asyncio
from typing import Any

from chauffeur.geocoding.base import (
    GeocodeRequest,
    GeocodeResult,
    GeocodingProvider,
    GeocodingUnavailableError,
)


class MockGeocodingProvider(GeocodingProvider):
    """Mock geocoding provider for testing.

    Returns canned results keyed by a case-insensitive substring of the
    query, without making network calls.
    """

    def __init__(
        self,
        responses: dict[str, GeocodeResult] | None = None,
        default: GeocodeResult | None = None,
        delay_seconds: float = 0.0,
        failures: dict[str, Exception] | None = None,
    ):
        """Initialize mock provider.

        Args:
            responses: Map of query substring -> result
            default: Result when no substring matches (unverified if None)
            delay_seconds: Artificial latency per lookup
            failures: Map of query substring -> exception to raise
        """
        self._responses = {key.lower(): value for key, value in (responses or {}).items()}
        self._default = default or GeocodeResult.unverified()
        self._delay_seconds = delay_seconds
        self._failures = {key.lower(): value for key, value in (failures or {}).items()}
        self._call_history: list[dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    @property
    def call_history(self) -> list[dict[str, Any]]:
        """Return history of calls for testing assertions."""
        return self._call_history

    def clear_history(self) -> None:
        """Clear call history."""
        self._call_history.clear()

    def set_response(self, trigger: str, result: GeocodeResult) -> None:
        """Set the result for queries containing ``trigger``."""
        self._responses[trigger.lower()] = result

    def set_failure(self, trigger: str, error: Exception | None = None) -> None:
        """Make queries containing ``trigger`` raise."""
        self._failures[trigger.lower()] = error or GeocodingUnavailableError("mock failure")

    async def geocode(self, request: GeocodeRequest) -> GeocodeResult:
        """Return the canned result for the request."""
        self._call_history.append({
            "query": request.query,
            "region_bias": request.region_bias,
            "region_code": request.region_code,
        })

        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)

        query = request.query.lower()
        for trigger, error in self._failures.items():
            if trigger in query:
                raise error

        # Longest trigger wins so "heathrow terminal 5" beats "heathrow"
        for trigger in sorted(self._responses, key=len, reverse=True):
            if trigger in query:
                return self._responses[trigger]
        return self._default
