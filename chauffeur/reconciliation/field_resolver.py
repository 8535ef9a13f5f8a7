"""Field merge resolution: "not mentioned" always preserves current data.

An explicit proposed value only counts as a change when it differs
textually from the current one. Waypoint fields add a few rules on top:
address text that merely restates the current address or only names an
endpoint slot is not a new address, and a proposed noon time is treated
as the extractor's default when a time already exists.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from chauffeur.config.models import ReconciliationConfig
from chauffeur.itinerary.models import ExtractedUpdate, ProposedLocation, Trip, Waypoint
from chauffeur.itinerary.text import contains_either, is_blank, normalize_text, normalize_time
from chauffeur.reconciliation.keywords import is_slot_reference_only
from chauffeur.reconciliation.models import WaypointChanges

T = TypeVar("T")


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """Resolved field value and whether it differs from the current one."""

    value: T
    changed: bool


def same_value(current: object, proposed: object) -> bool:
    """Textual identity: strings compare casefolded with collapsed whitespace."""
    if isinstance(current, str) and isinstance(proposed, str):
        return normalize_text(current) == normalize_text(proposed)
    return current == proposed


def resolve_field(current: T, proposed: T | None) -> Resolution[T]:
    """Resolve one field.

    None (or a blank string) means "not mentioned" and keeps the current
    value; an identical value is not a change.
    """
    if proposed is None or is_blank(proposed):
        return Resolution(value=current, changed=False)
    if same_value(current, proposed):
        return Resolution(value=current, changed=False)
    return Resolution(value=proposed, changed=True)


@dataclass(frozen=True)
class TripFieldResolution:
    """Trip-level scalar resolutions of one pass."""

    date: Resolution[str | None]
    lead_passenger_name: Resolution[str | None]
    vehicle_info: Resolution[str | None]
    passenger_count: Resolution[int | None]
    trip_destination: Resolution[str | None]


@dataclass(frozen=True)
class WaypointMerge:
    """Merged waypoint plus the field flags that produced it."""

    waypoint: Waypoint
    changes: WaypointChanges
    coordinates_from_proposal: bool


class FieldMergeResolver:
    """Applies the preserve-unless-explicit policy to trips and waypoints."""

    def __init__(self, config: ReconciliationConfig) -> None:
        self._config = config

    def resolve_trip_fields(self, current: Trip, update: ExtractedUpdate) -> TripFieldResolution:
        """Resolve every trip-level scalar independently."""
        return TripFieldResolution(
            date=resolve_field(current.date, update.date),
            lead_passenger_name=resolve_field(current.lead_passenger_name, update.lead_passenger),
            vehicle_info=resolve_field(current.vehicle_info, update.vehicle_info),
            passenger_count=resolve_field(current.passenger_count, update.passenger_count),
            trip_destination=resolve_field(current.trip_destination, update.trip_destination),
        )

    def resolve_time(self, current: str | None, proposed: str | None) -> Resolution[str | None]:
        """Resolve a waypoint time (HH:MM).

        A proposed default noon is ignored when a different time already
        exists, if configured.
        """
        proposed_time = normalize_time(proposed)
        if proposed_time is None:
            return Resolution(value=current, changed=False)
        if normalize_time(current) == proposed_time:
            return Resolution(value=current, changed=False)
        if (
            self._config.ignore_default_noon_time
            and proposed_time == normalize_time(self._config.default_noon_time)
            and not is_blank(current)
        ):
            return Resolution(value=current, changed=False)
        return Resolution(value=proposed_time, changed=True)

    def resolve_purpose(self, current: str, proposed: str | None) -> Resolution[str]:
        """Resolve a waypoint purpose.

        A proposed purpose already contained in the current one ("Pickup"
        against "Pickup from residence") restates it and is not a change.
        """
        if proposed is None or is_blank(proposed):
            return Resolution(value=current, changed=False)
        if normalize_text(proposed) in normalize_text(current):
            return Resolution(value=current, changed=False)
        return Resolution(value=proposed.strip(), changed=True)

    def resolve_address(self, current: Waypoint, proposed: ProposedLocation) -> Resolution[str]:
        """Resolve a waypoint address.

        Not mentioned when the entry has no address text or only names an
        endpoint slot ("pickup location"); unchanged when the text is
        contained in (or contains) the current name or addresses.
        """
        address = proposed.address
        if not address:
            return Resolution(value=current.address, changed=False)
        if not proposed.formatted_address and is_slot_reference_only(proposed.location):
            return Resolution(value=current.address, changed=False)
        for known in (current.name, current.full_address, current.formatted_address):
            if contains_either(known, address):
                return Resolution(value=current.address, changed=False)
        if proposed.location and any(
            contains_either(known, proposed.location)
            for known in (current.name, current.full_address, current.formatted_address)
        ):
            return Resolution(value=current.address, changed=False)
        return Resolution(value=address, changed=True)

    def merge_waypoint(self, current: Waypoint, proposed: ProposedLocation) -> WaypointMerge:
        """Merge one update entry into a matched waypoint.

        The id is always kept. Coordinates come from the proposal only when
        the address changed and the proposal carries non-zero coordinates.
        """
        address = self.resolve_address(current, proposed)
        time = self.resolve_time(current.time, proposed.time)
        purpose = self.resolve_purpose(current.purpose, proposed.purpose)
        changes = WaypointChanges(
            address_changed=address.changed,
            time_changed=time.changed,
            purpose_changed=purpose.changed,
        )
        if not changes.any_changed:
            return WaypointMerge(waypoint=current, changes=changes, coordinates_from_proposal=False)

        update: dict[str, object] = {}
        coordinates_from_proposal = False
        if address.changed:
            formatted = (proposed.formatted_address or "").strip() or address.value
            update["full_address"] = proposed.location.strip() or address.value
            update["formatted_address"] = formatted
            if proposed.has_coordinates:
                update["lat"] = proposed.lat
                update["lng"] = proposed.lng
                coordinates_from_proposal = True
        if time.changed:
            update["time"] = time.value
        if purpose.changed:
            update["purpose"] = purpose.value
        if address.changed and purpose.changed:
            update["name"] = f"{purpose.value}, {update['formatted_address']}"

        return WaypointMerge(
            waypoint=current.model_copy(update=update),
            changes=changes,
            coordinates_from_proposal=coordinates_from_proposal,
        )
