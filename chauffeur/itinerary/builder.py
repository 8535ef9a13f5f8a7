"""Initial trip creation from a first extraction."""

from chauffeur.config import get_settings
from chauffeur.config.models import RegionConfig
from chauffeur.exceptions import ReconciliationValidationError
from chauffeur.extraction.flights import annotate_flights
from chauffeur.geocoding.regions import resolve_region
from chauffeur.itinerary.models import ExtractedUpdate, ProposedLocation, Trip, Waypoint
from chauffeur.observability.logging import get_logger

logger = get_logger(__name__)

MIN_INITIAL_WAYPOINTS = 2


def waypoint_from_proposal(proposed: ProposedLocation) -> Waypoint:
    """Build a brand-new waypoint (fresh id) from an extracted location."""
    address = proposed.address
    return Waypoint(
        name=(proposed.purpose or "").strip() or proposed.location.strip() or address,
        full_address=proposed.location.strip() or address,
        formatted_address=address,
        lat=proposed.lat if proposed.has_coordinates else 0.0,
        lng=proposed.lng if proposed.has_coordinates else 0.0,
        time=proposed.time,
        purpose=(proposed.purpose or "").strip(),
        flight_number=proposed.flight_number,
        flight_direction=proposed.flight_direction,
    )


def create_trip_from_extraction(
    update: ExtractedUpdate,
    *,
    region: RegionConfig | None = None,
    annotate: bool = True,
) -> Trip:
    """Create the first canonical trip from an initial extraction.

    Args:
        update: Extraction of the original booking text
        region: Region for flight/airport detection (resolved from the
            trip destination when omitted)
        annotate: Attach flight numbers found in the driver notes

    Returns:
        New Trip with fresh waypoint ids

    Raises:
        ReconciliationValidationError: If fewer than two locations were
            extracted
    """
    proposals = [location for location in update.locations if location.address]
    if len(proposals) < MIN_INITIAL_WAYPOINTS:
        raise ReconciliationValidationError(
            f"a trip needs at least {MIN_INITIAL_WAYPOINTS} locations, "
            f"extraction produced {len(proposals)}",
            waypoint_count=len(proposals),
        )

    waypoints = [waypoint_from_proposal(proposed) for proposed in proposals]
    notes = update.driver_notes or ""
    if annotate and notes:
        if region is None:
            region = resolve_region(update.trip_destination, get_settings().geocoding)
        waypoints = annotate_flights(waypoints, notes, region)

    trip = Trip(
        date=update.date,
        lead_passenger_name=update.lead_passenger,
        vehicle_info=update.vehicle_info,
        passenger_count=update.passenger_count,
        trip_destination=update.trip_destination,
        notes=notes,
        waypoints=tuple(waypoints),
    )
    logger.info(
        "trip_created",
        waypoint_count=len(trip.waypoints),
        flights=sum(1 for waypoint in trip.waypoints if waypoint.flight_number),
    )
    return trip
