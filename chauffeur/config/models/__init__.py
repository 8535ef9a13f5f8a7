"""Configuration model exports.

This module exports all configuration models for easy access:

    from chauffeur.config.models import GeocodingConfig, ReconciliationConfig
"""

from chauffeur.config.models.geocoding import (
    BoundingBox,
    FacilityConfig,
    GeocodingConfig,
    RegionConfig,
    load_default_regions,
)
from chauffeur.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)
from chauffeur.config.models.reconciliation import ReconciliationConfig

__all__ = [
    "BoundingBox",
    "FacilityConfig",
    "GeocodingConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "ReconciliationConfig",
    "RegionConfig",
    "load_default_regions",
]
