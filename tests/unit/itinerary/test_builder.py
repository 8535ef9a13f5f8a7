"""Unit tests for initial trip creation."""

import pytest

from chauffeur.config.models import RegionConfig
from chauffeur.exceptions import ErrorCode, ReconciliationValidationError
from chauffeur.itinerary.builder import create_trip_from_extraction, waypoint_from_proposal
from chauffeur.itinerary.models import ExtractedUpdate, FlightDirection, ProposedLocation

HEATHROW = "Heathrow Airport Terminal 5, Longford, Hounslow TW6 2GA, UK"
SAVOY = "The Savoy, Strand, London WC2R 0EZ, UK"


@pytest.fixture
def first_extraction() -> ExtractedUpdate:
    """Initial booking: Heathrow arrival to a hotel."""
    return ExtractedUpdate(
        date="2026-11-03",
        lead_passenger_name="Anna Smith",
        vehicle_info="Mercedes S-Class",
        passenger_count=2,
        trip_destination="London",
        driver_notes="Arriving on BA117 at Heathrow. Meet in arrivals hall.",
        locations=[
            ProposedLocation(location=HEATHROW, time="7:45", purpose="Pickup", lat=51.4723, lng=-0.4880),
            ProposedLocation(location=SAVOY, purpose="Dropoff"),
        ],
    )


class TestWaypointFromProposal:
    """Tests for waypoint_from_proposal."""

    def test_fields(self) -> None:
        """Purpose names the stop; location is the entered address."""
        waypoint = waypoint_from_proposal(
            ProposedLocation(location=SAVOY, purpose="Dinner", time="19:00", lat=51.5104, lng=-0.1204)
        )
        assert waypoint.name == "Dinner"
        assert waypoint.full_address == SAVOY
        assert waypoint.formatted_address == SAVOY
        assert (waypoint.lat, waypoint.lng) == (51.5104, -0.1204)
        assert waypoint.time == "19:00"
        assert waypoint.id.startswith("wp_")

    def test_zero_coordinates_stay_zero(self) -> None:
        """Missing coordinates are left for repair."""
        waypoint = waypoint_from_proposal(ProposedLocation(location=SAVOY))
        assert waypoint.has_coordinates is False
        assert waypoint.name == SAVOY


class TestCreateTripFromExtraction:
    """Tests for create_trip_from_extraction."""

    def test_creates_trip(self, first_extraction: ExtractedUpdate, london: RegionConfig) -> None:
        """Trip-level fields and waypoints come from the extraction."""
        trip = create_trip_from_extraction(first_extraction, region=london)

        assert trip.date == "2026-11-03"
        assert trip.lead_passenger_name == "Anna Smith"
        assert trip.notes.startswith("Arriving on BA117")
        assert [w.full_address for w in trip.waypoints] == [HEATHROW, SAVOY]
        assert trip.waypoints[0].time == "07:45"
        assert len({w.id for w in trip.waypoints}) == 2

    def test_attaches_flight_to_airport_pickup(
        self, first_extraction: ExtractedUpdate, london: RegionConfig
    ) -> None:
        """The arrival flight goes on the airport pickup only."""
        trip = create_trip_from_extraction(first_extraction, region=london)

        pickup, dropoff = trip.waypoints
        assert pickup.flight_number == "BA117"
        assert pickup.flight_direction == FlightDirection.ARRIVAL
        assert dropoff.flight_number is None

    def test_annotation_can_be_disabled(
        self, first_extraction: ExtractedUpdate, london: RegionConfig
    ) -> None:
        """No flights are attached when annotation is off."""
        trip = create_trip_from_extraction(first_extraction, region=london, annotate=False)
        assert all(w.flight_number is None for w in trip.waypoints)

    def test_too_few_locations(self) -> None:
        """A single usable location cannot make a trip."""
        update = ExtractedUpdate(
            locations=[ProposedLocation(location=SAVOY), ProposedLocation(location="  ")]
        )
        with pytest.raises(ReconciliationValidationError) as exc_info:
            create_trip_from_extraction(update)

        assert exc_info.value.waypoint_count == 1
        assert exc_info.value.error_code == ErrorCode.TOO_FEW_WAYPOINTS

    def test_passenger_names_fallback(self, london: RegionConfig) -> None:
        """Passenger names stand in for the lead passenger."""
        update = ExtractedUpdate(
            passenger_names=["Bob Jones"],
            locations=[ProposedLocation(location=SAVOY), ProposedLocation(location=HEATHROW)],
        )
        trip = create_trip_from_extraction(update, region=london)
        assert trip.lead_passenger_name == "Bob Jones"
        assert trip.notes == ""
