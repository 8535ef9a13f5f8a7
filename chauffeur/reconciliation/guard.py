"""Post-processing guard over assembled decisions.

Re-checks that every field reported unchanged really kept its current
value and that every field reported changed really has a new, non-empty
value. Spurious flags are corrected rather than propagated.
"""

from chauffeur.itinerary.models import Waypoint
from chauffeur.itinerary.text import is_blank
from chauffeur.reconciliation.field_resolver import same_value
from chauffeur.reconciliation.models import (
    ModifiedDecision,
    ReasoningLog,
    UnchangedDecision,
    WaypointChanges,
)

STEP = "guard"

_ADDRESS_FIELDS = ("full_address", "formatted_address", "lat", "lng")
_REPAIRABLE_FIELDS = frozenset({"formatted_address", "lat", "lng"})


class DecisionGuard:
    """Corrects decisions whose flags disagree with their values."""

    def check_unchanged(
        self,
        decision: UnchangedDecision,
        current: Waypoint,
        log: ReasoningLog,
    ) -> UnchangedDecision:
        """Restore any drift on a waypoint reported unchanged.

        Only a coordinate repair may alter an unchanged waypoint, and only
        its coordinates and formatted address.
        """
        final = decision.final_location
        if final == current:
            return decision

        allowed = _REPAIRABLE_FIELDS if decision.coordinates_repaired else frozenset()
        restore = {
            name: getattr(current, name)
            for name in Waypoint.model_fields
            if name not in allowed and getattr(final, name) != getattr(current, name)
        }
        if not restore:
            return decision

        log.warn(
            STEP,
            f"waypoint {decision.current_index} was reported unchanged but "
            f"{', '.join(sorted(restore))} differed; restored",
            current_index=decision.current_index,
        )
        restored = final.model_copy(update=restore)
        if restored == current:
            restored = current
        return decision.model_copy(update={"final_location": restored})

    def check_modified(
        self,
        decision: ModifiedDecision,
        current: Waypoint,
        log: ReasoningLog,
    ) -> ModifiedDecision | UnchangedDecision:
        """Reconcile a modified decision's flags with its values.

        A decision left with no change at all is downgraded to unchanged
        and echoes the current waypoint.
        """
        final = decision.final_location
        changes = decision.changes
        restore: dict[str, object] = {}
        corrected: list[str] = []

        # Flags reported changed must carry a new, non-empty value
        address_changed = changes.address_changed and not (
            is_blank(final.full_address) and is_blank(final.formatted_address)
        ) and not (
            same_value(final.full_address, current.full_address)
            and same_value(final.formatted_address, current.formatted_address)
        )
        time_changed = changes.time_changed and not is_blank(final.time) and not same_value(
            final.time, current.time
        )
        purpose_changed = changes.purpose_changed and not is_blank(final.purpose) and not (
            same_value(final.purpose, current.purpose)
        )
        for name, before, after in (
            ("address", changes.address_changed, address_changed),
            ("time", changes.time_changed, time_changed),
            ("purpose", changes.purpose_changed, purpose_changed),
        ):
            if before and not after:
                corrected.append(name)

        # Fields reported unchanged must hold their current value
        repaired = decision.coordinates_repaired
        if not address_changed:
            for name in _ADDRESS_FIELDS:
                if repaired and name in _REPAIRABLE_FIELDS:
                    continue
                if getattr(final, name) != getattr(current, name):
                    restore[name] = getattr(current, name)
        if not time_changed and final.time != current.time:
            restore["time"] = current.time
        if not purpose_changed and final.purpose != current.purpose:
            restore["purpose"] = current.purpose
        if not (address_changed and purpose_changed) and final.name != current.name:
            restore["name"] = current.name
        if final.id != current.id:
            restore["id"] = current.id

        if corrected:
            log.info(
                STEP,
                f"waypoint {decision.current_index}: spurious change flag(s) "
                f"{', '.join(corrected)} cleared",
                current_index=decision.current_index,
                extracted_index=decision.extracted_index,
            )
        if restore:
            log.warn(
                STEP,
                f"waypoint {decision.current_index}: unflagged field(s) "
                f"{', '.join(sorted(restore))} had drifted; restored",
                current_index=decision.current_index,
                extracted_index=decision.extracted_index,
            )

        new_changes = WaypointChanges(
            address_changed=address_changed,
            time_changed=time_changed,
            purpose_changed=purpose_changed,
        )
        new_final = final.model_copy(update=restore) if restore else final

        if not new_changes.any_changed:
            if new_final == current:
                new_final = current
            return UnchangedDecision(
                current_index=decision.current_index,
                final_location=new_final,
                coordinates_repaired=repaired and new_final != current,
            )
        if not corrected and not restore:
            return decision
        return decision.model_copy(update={"changes": new_changes, "final_location": new_final})
