"""Unit tests for the decision guard."""

from chauffeur.itinerary.models import Waypoint
from chauffeur.reconciliation.guard import DecisionGuard
from chauffeur.reconciliation.models import (
    MatchConfidence,
    ModifiedDecision,
    ReasoningLog,
    UnchangedDecision,
    WaypointAction,
    WaypointChanges,
)
from tests.factories import WaypointFactory


def modified(final: Waypoint, changes: WaypointChanges, repaired: bool = False) -> ModifiedDecision:
    return ModifiedDecision(
        current_index=1,
        extracted_index=0,
        confidence=MatchConfidence.HIGH,
        changes=changes,
        final_location=final,
        coordinates_repaired=repaired,
    )


class TestCheckUnchanged:
    """Tests for DecisionGuard.check_unchanged."""

    def test_identity_passes(self) -> None:
        """An untouched waypoint passes through."""
        current = WaypointFactory.museum()
        decision = UnchangedDecision(current_index=1, final_location=current)
        assert DecisionGuard().check_unchanged(decision, current, ReasoningLog()) is decision

    def test_drift_restored(self) -> None:
        """Fields that drifted on an unchanged waypoint are restored."""
        current = WaypointFactory.museum()
        drifted = current.model_copy(update={"time": "12:00", "purpose": "Lunch"})
        log = ReasoningLog()

        checked = DecisionGuard().check_unchanged(
            UnchangedDecision(current_index=1, final_location=drifted), current, log
        )

        assert checked.final_location is current
        assert log.warnings

    def test_repair_may_move_coordinates(self) -> None:
        """A repaired unchanged waypoint keeps its new coordinates only."""
        current = WaypointFactory.dropoff(lat=51.5074, lng=-0.1278)
        repaired = current.model_copy(
            update={"lat": 51.47, "lng": -0.4543, "formatted_address": "Heathrow, UK", "time": "09:00"}
        )

        checked = DecisionGuard().check_unchanged(
            UnchangedDecision(current_index=3, final_location=repaired, coordinates_repaired=True),
            current,
            ReasoningLog(),
        )

        assert (checked.final_location.lat, checked.final_location.lng) == (51.47, -0.4543)
        assert checked.final_location.formatted_address == "Heathrow, UK"
        assert checked.final_location.time == current.time


class TestCheckModified:
    """Tests for DecisionGuard.check_modified."""

    def test_consistent_decision_passes(self) -> None:
        """Flags that match the values are left alone."""
        current = WaypointFactory.museum()
        final = current.model_copy(update={"time": "15:00"})
        decision = modified(final, WaypointChanges(time_changed=True))
        assert DecisionGuard().check_modified(decision, current, ReasoningLog()) is decision

    def test_spurious_flag_cleared(self) -> None:
        """A flag whose value did not change is cleared."""
        current = WaypointFactory.museum()
        final = current.model_copy(update={"time": "15:00"})
        decision = modified(final, WaypointChanges(time_changed=True, purpose_changed=True))

        checked = DecisionGuard().check_modified(decision, current, ReasoningLog())

        assert isinstance(checked, ModifiedDecision)
        assert checked.changes == WaypointChanges(time_changed=True)

    def test_unflagged_drift_restored(self) -> None:
        """A field that moved without a flag is put back, id included."""
        current = WaypointFactory.museum()
        final = current.model_copy(update={"time": "15:00", "purpose": "Tour", "id": "wp_other"})
        decision = modified(final, WaypointChanges(time_changed=True))

        checked = DecisionGuard().check_modified(decision, current, ReasoningLog())

        assert checked.final_location.purpose == current.purpose
        assert checked.final_location.id == current.id
        assert checked.final_location.time == "15:00"

    def test_no_real_change_downgraded(self) -> None:
        """A modified decision with nothing left becomes unchanged."""
        current = WaypointFactory.museum()
        decision = modified(current.model_copy(), WaypointChanges(address_changed=True))

        checked = DecisionGuard().check_modified(decision, current, ReasoningLog())

        assert isinstance(checked, UnchangedDecision)
        assert checked.action == WaypointAction.UNCHANGED
        assert checked.final_location is current

    def test_blank_value_is_not_a_change(self) -> None:
        """A flag pointing at an empty value is cleared and the value restored."""
        current = WaypointFactory.museum(time="10:00")
        decision = modified(current.model_copy(update={"time": None}), WaypointChanges(time_changed=True))

        checked = DecisionGuard().check_modified(decision, current, ReasoningLog())

        assert isinstance(checked, UnchangedDecision)
        assert checked.final_location.time == "10:00"
