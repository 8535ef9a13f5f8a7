"""Unit tests for field merge resolution."""

import pytest

from chauffeur.config.models import ReconciliationConfig
from chauffeur.itinerary.models import ExtractedUpdate, ProposedLocation
from chauffeur.reconciliation.field_resolver import (
    FieldMergeResolver,
    resolve_field,
    same_value,
)
from tests.factories import TripFactory, WaypointFactory

CLARIDGES = "Claridge's, Brook St, London W1K 4HR, UK"


@pytest.fixture
def resolver(reconciliation_config: ReconciliationConfig) -> FieldMergeResolver:
    """Resolver with the default policy."""
    return FieldMergeResolver(reconciliation_config)


class TestResolveField:
    """Tests for resolve_field and same_value."""

    def test_not_mentioned_keeps_current(self) -> None:
        """None and blank strings never clear a value."""
        assert resolve_field("Mercedes S-Class", None).value == "Mercedes S-Class"
        assert resolve_field("Mercedes S-Class", "  ").changed is False

    def test_identical_is_not_a_change(self) -> None:
        """Case and spacing differences are not changes."""
        assert same_value("Mercedes  S-Class", "mercedes s-class")
        assert resolve_field("Mercedes S-Class", "MERCEDES S-CLASS").changed is False

    def test_new_value(self) -> None:
        """A different value replaces the current one."""
        resolution = resolve_field("Mercedes S-Class", "Range Rover")
        assert (resolution.value, resolution.changed) == ("Range Rover", True)

    def test_numbers(self) -> None:
        """Non-string values compare by equality."""
        assert resolve_field(2, 2).changed is False
        assert resolve_field(2, 3).changed is True


class TestTripFields:
    """Tests for resolve_trip_fields."""

    def test_each_field_independent(self, resolver: FieldMergeResolver) -> None:
        """Only mentioned, different fields change."""
        trip = TripFactory.create()
        update = ExtractedUpdate(vehicle_info="Range Rover", passenger_count=2, passenger_names=["Bob Jones"])

        resolution = resolver.resolve_trip_fields(trip, update)

        assert resolution.vehicle_info.changed
        assert resolution.passenger_count.changed is False
        assert resolution.lead_passenger_name.value == "Bob Jones"
        assert resolution.date.value == trip.date
        assert resolution.date.changed is False


class TestResolveTime:
    """Tests for resolve_time."""

    def test_default_noon_ignored(self, resolver: FieldMergeResolver) -> None:
        """A proposed noon does not replace an existing time."""
        assert resolver.resolve_time("08:00", "12:00").changed is False
        assert resolver.resolve_time("08:00", "12pm").changed is False

    def test_noon_fills_missing_time(self, resolver: FieldMergeResolver) -> None:
        """Noon is a real value when there was no time."""
        resolution = resolver.resolve_time(None, "12:00")
        assert (resolution.value, resolution.changed) == ("12:00", True)

    def test_noon_allowed_when_configured(self) -> None:
        """Noon can be honoured by configuration."""
        resolver = FieldMergeResolver(ReconciliationConfig(ignore_default_noon_time=False))
        assert resolver.resolve_time("08:00", "12:00").changed is True

    def test_normalised_comparison(self, resolver: FieldMergeResolver) -> None:
        """Equal times in different spellings are not changes."""
        assert resolver.resolve_time("07:00", "7am").changed is False
        assert resolver.resolve_time("07:00", "7:30").value == "07:30"


class TestResolvePurpose:
    """Tests for resolve_purpose."""

    def test_restated_purpose(self, resolver: FieldMergeResolver) -> None:
        """A purpose contained in the current one is not a change."""
        assert resolver.resolve_purpose("Pickup from residence", "pickup").changed is False

    def test_new_purpose(self, resolver: FieldMergeResolver) -> None:
        """A different purpose replaces the current one."""
        assert resolver.resolve_purpose("Visit", " Lunch ").value == "Lunch"


class TestResolveAddress:
    """Tests for resolve_address."""

    def test_slot_reference_is_not_an_address(self, resolver: FieldMergeResolver) -> None:
        """"pickup location" names no new address."""
        result = resolver.resolve_address(
            WaypointFactory.pickup(), ProposedLocation(location="Pickup location")
        )
        assert result.changed is False

    def test_restated_address(self, resolver: FieldMergeResolver) -> None:
        """Text contained in the current name or address is not a change."""
        result = resolver.resolve_address(WaypointFactory.pickup(), ProposedLocation(location="the savoy"))
        assert result.changed is False

    def test_new_address(self, resolver: FieldMergeResolver) -> None:
        """Different address text is a change."""
        result = resolver.resolve_address(WaypointFactory.pickup(), ProposedLocation(location=CLARIDGES))
        assert (result.value, result.changed) == (CLARIDGES, True)


class TestMergeWaypoint:
    """Tests for merge_waypoint."""

    def test_no_change_returns_same_object(self, resolver: FieldMergeResolver) -> None:
        """An entry that restates the waypoint leaves it untouched."""
        current = WaypointFactory.pickup()
        merge = resolver.merge_waypoint(current, ProposedLocation(location="The Savoy", time="8am"))
        assert merge.waypoint is current
        assert not merge.changes.any_changed

    def test_time_only(self, resolver: FieldMergeResolver) -> None:
        """Only the changed field moves; the id stays."""
        current = WaypointFactory.pickup()
        merge = resolver.merge_waypoint(current, ProposedLocation(time="07:15"))

        assert merge.waypoint.time == "07:15"
        assert merge.waypoint.id == current.id
        assert merge.waypoint.full_address == current.full_address
        assert merge.changes.time_changed and not merge.changes.address_changed

    def test_address_with_coordinates(self, resolver: FieldMergeResolver) -> None:
        """Proposal coordinates come along with a new address."""
        merge = resolver.merge_waypoint(
            WaypointFactory.pickup(),
            ProposedLocation(location=CLARIDGES, lat=51.5126, lng=-0.1477),
        )
        assert merge.waypoint.full_address == CLARIDGES
        assert (merge.waypoint.lat, merge.waypoint.lng) == (51.5126, -0.1477)
        assert merge.coordinates_from_proposal is True
        assert merge.waypoint.name == "The Savoy"

    def test_address_without_coordinates(self, resolver: FieldMergeResolver) -> None:
        """A new address without coordinates keeps the old ones for repair to replace."""
        current = WaypointFactory.pickup()
        merge = resolver.merge_waypoint(current, ProposedLocation(location=CLARIDGES))
        assert merge.coordinates_from_proposal is False
        assert merge.waypoint.lat == current.lat

    def test_name_rebuilt_when_address_and_purpose_change(
        self, resolver: FieldMergeResolver
    ) -> None:
        """A stop that changes both place and purpose gets a new display name."""
        merge = resolver.merge_waypoint(
            WaypointFactory.museum(),
            ProposedLocation(location=CLARIDGES, purpose="Tea"),
        )
        assert merge.waypoint.name == f"Tea, {CLARIDGES}"
