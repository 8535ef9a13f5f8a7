"""Provider construction from configuration."""

from chauffeur.config.models import GeocodingConfig
from chauffeur.geocoding.base import GeocodingAuthenticationError, GeocodingProvider
from chauffeur.geocoding.google import GoogleGeocodingProvider
from chauffeur.geocoding.mock import MockGeocodingProvider


def create_geocoding_provider(config: GeocodingConfig) -> GeocodingProvider:
    """Create the configured geocoding provider.

    Raises:
        GeocodingAuthenticationError: If the Google provider has no API key
        ValueError: If the provider type is unknown
    """
    if config.provider == "mock":
        return MockGeocodingProvider()
    if config.provider == "google":
        if config.api_key is None or not config.api_key.get_secret_value():
            raise GeocodingAuthenticationError(
                "geocoding.api_key is required for the google provider"
            )
        return GoogleGeocodingProvider(
            api_key=config.api_key.get_secret_value(),
            base_url=config.base_url,
            timeout=config.timeout_ms / 1000,
        )
    raise ValueError(f"Unknown geocoding provider: {config.provider}")
