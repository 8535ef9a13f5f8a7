"""Unit tests for configuration Pydantic models."""

import pytest
from pydantic import ValidationError

from chauffeur.config.models import (
    BoundingBox,
    FacilityConfig,
    GeocodingConfig,
    LoggingConfig,
    MetricsConfig,
    ReconciliationConfig,
    RegionConfig,
    load_default_regions,
)


class TestReconciliationConfig:
    """Tests for ReconciliationConfig model."""

    def test_defaults(self) -> None:
        """Default values are correct."""
        config = ReconciliationConfig()
        assert config.min_waypoints == 2
        assert config.default_noon_time == "12:00"
        assert config.min_removal_keyword_length == 3
        assert config.reject_past_dates is True
        assert config.parse_anchor_from_purpose is True
        assert config.repair_unchanged_waypoints is False

    def test_min_waypoints_floor(self) -> None:
        """A trip always needs a pickup and a dropoff."""
        with pytest.raises(ValidationError):
            ReconciliationConfig(min_waypoints=1)


class TestBoundingBox:
    """Tests for BoundingBox model."""

    def test_contains_includes_edges(self) -> None:
        """Points on the edge are inside."""
        box = BoundingBox(min_lat=51.0, max_lat=52.0, min_lng=-1.0, max_lng=0.0)
        assert box.contains(51.5, -0.5)
        assert box.contains(52.0, 0.0)
        assert not box.contains(52.1, -0.5)

    def test_inverted_box_rejected(self) -> None:
        """Minimums above maximums are invalid."""
        with pytest.raises(ValidationError):
            BoundingBox(min_lat=52.0, max_lat=51.0, min_lng=-1.0, max_lng=0.0)

    def test_latitude_range(self) -> None:
        """Latitude must be a real latitude."""
        with pytest.raises(ValidationError):
            BoundingBox(min_lat=-91.0, max_lat=0.0, min_lng=0.0, max_lng=1.0)


class TestFacilityConfig:
    """Tests for FacilityConfig model."""

    def test_defaults(self) -> None:
        """Facilities default to airports with a 5 km tolerance."""
        facility = FacilityConfig(name="Gatwick Airport", lat=51.1537, lng=-0.1821)
        assert facility.facility_class == "airport"
        assert facility.max_distance_km == 5.0
        assert facility.keywords == []

    def test_unknown_class_rejected(self) -> None:
        """Facility class is a closed set."""
        with pytest.raises(ValidationError):
            FacilityConfig(name="X", lat=0.0, lng=0.0, facility_class="heliport")


class TestRegionTable:
    """Tests for the bundled region table."""

    def test_bundled_regions_load(self) -> None:
        """The packaged regions.toml parses into RegionConfig objects."""
        regions = load_default_regions()
        keys = {region.key for region in regions}
        assert {"london", "paris", "new_york"} <= keys

    def test_london_has_heathrow(self) -> None:
        """London carries a Heathrow reference point."""
        london = next(r for r in load_default_regions() if r.key == "london")
        heathrow = next(f for f in london.facilities if "heathrow" in f.keywords)
        assert heathrow.facility_class == "airport"
        assert heathrow.lat == pytest.approx(51.47, abs=0.01)
        assert london.city_center is not None

    def test_regions_can_be_replaced(self) -> None:
        """Configured regions replace the bundled table."""
        config = GeocodingConfig(
            regions=[RegionConfig(key="oslo", names=["Oslo"], region_bias="Oslo, Norway")]
        )
        assert [r.key for r in config.regions] == ["oslo"]


class TestGeocodingConfig:
    """Tests for GeocodingConfig model."""

    def test_defaults(self) -> None:
        """Default values are correct."""
        config = GeocodingConfig()
        assert config.provider == "mock"
        assert config.api_key is None
        assert config.timeout_ms == 5000
        assert config.min_address_length == 20

    def test_unknown_provider_rejected(self) -> None:
        """Provider must be a known type."""
        with pytest.raises(ValidationError):
            GeocodingConfig(provider="bing")

    def test_timeout_must_be_positive(self) -> None:
        """timeout_ms must be > 0."""
        with pytest.raises(ValidationError):
            GeocodingConfig(timeout_ms=0)


class TestObservabilityConfig:
    """Tests for logging and metrics config."""

    def test_log_format_validated(self) -> None:
        """Only json and console formats are accepted."""
        with pytest.raises(ValidationError):
            LoggingConfig(format="xml")

    def test_metrics_port_range(self) -> None:
        """Port must be a valid TCP port."""
        with pytest.raises(ValidationError):
            MetricsConfig(port=70000)
