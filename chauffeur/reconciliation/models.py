"""Reconciliation result models.

Each waypoint decision is a tagged union on ``action`` so a decision can
never carry fields its action contradicts (a removed waypoint has no
final location; an added one has no current index).
"""

from datetime import date
from enum import Enum
from typing import Annotated, Literal

from pydantic import Field

from chauffeur.geocoding.repair import RepairOutcome
from chauffeur.itinerary.models import ExtractedUpdate, FrozenWireModel, Trip, Waypoint, WireModel
from chauffeur.observability.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Enums
# =============================================================================


class WaypointAction(str, Enum):
    """What reconciliation did to a waypoint."""

    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    ADDED = "added"
    REMOVED = "removed"


class MatchConfidence(str, Enum):
    """How sure the matcher is that an entry refers to a waypoint."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Placement(str, Enum):
    """How an added waypoint's position was chosen."""

    ANCHOR = "anchor"
    APPEND = "append"


class ReasoningLevel(str, Enum):
    """Severity of a reasoning note."""

    INFO = "info"
    WARNING = "warning"


# =============================================================================
# Waypoint decisions
# =============================================================================


class WaypointChanges(FrozenWireModel):
    """Field-level change flags of a waypoint decision."""

    address_changed: bool = Field(default=False)
    time_changed: bool = Field(default=False)
    purpose_changed: bool = Field(default=False)

    @property
    def any_changed(self) -> bool:
        return self.address_changed or self.time_changed or self.purpose_changed


NO_CHANGES = WaypointChanges()


class UnchangedDecision(FrozenWireModel):
    """Current waypoint echoed into the output."""

    action: Literal[WaypointAction.UNCHANGED] = WaypointAction.UNCHANGED
    current_index: int = Field(..., ge=0)
    changes: WaypointChanges = Field(default=NO_CHANGES)
    final_location: Waypoint = Field(...)
    coordinates_repaired: bool = Field(default=False)


class ModifiedDecision(FrozenWireModel):
    """Current waypoint updated in place; keeps its id."""

    action: Literal[WaypointAction.MODIFIED] = WaypointAction.MODIFIED
    current_index: int = Field(..., ge=0)
    extracted_index: int = Field(..., ge=0)
    confidence: MatchConfidence = Field(...)
    changes: WaypointChanges = Field(...)
    final_location: Waypoint = Field(...)
    coordinates_repaired: bool = Field(default=False)


class AddedDecision(FrozenWireModel):
    """New waypoint with a freshly minted id."""

    action: Literal[WaypointAction.ADDED] = WaypointAction.ADDED
    extracted_index: int = Field(..., ge=0)
    placement: Placement = Field(...)
    anchor: str | None = Field(default=None, description="Anchor keyword that placed it")
    changes: WaypointChanges = Field(...)
    final_location: Waypoint = Field(...)
    coordinates_repaired: bool = Field(default=False)


class RemovedDecision(FrozenWireModel):
    """Current waypoint dropped by a removal keyword."""

    action: Literal[WaypointAction.REMOVED] = WaypointAction.REMOVED
    current_index: int = Field(..., ge=0)
    keyword: str = Field(..., description="Removal keyword that matched")
    removed_location: Waypoint = Field(...)
    changes: WaypointChanges = Field(default=NO_CHANGES)
    final_location: None = None


WaypointDecision = Annotated[
    UnchangedDecision | ModifiedDecision | AddedDecision | RemovedDecision,
    Field(discriminator="action"),
]


# =============================================================================
# Reasoning
# =============================================================================


class ReasoningNote(FrozenWireModel):
    """One recorded decision of a reconciliation pass."""

    step: str = Field(..., description="Pipeline step, e.g. 'match' or 'repair'")
    level: ReasoningLevel = Field(default=ReasoningLevel.INFO)
    message: str = Field(...)
    current_index: int | None = Field(default=None)
    extracted_index: int | None = Field(default=None)


class ReasoningLog:
    """Collects reasoning notes for a pass and mirrors them to the logger."""

    def __init__(self) -> None:
        self._notes: list[ReasoningNote] = []

    @property
    def notes(self) -> list[ReasoningNote]:
        return list(self._notes)

    @property
    def warnings(self) -> list[str]:
        return [note.message for note in self._notes if note.level == ReasoningLevel.WARNING]

    def info(
        self,
        step: str,
        message: str,
        *,
        current_index: int | None = None,
        extracted_index: int | None = None,
    ) -> None:
        self._add(step, ReasoningLevel.INFO, message, current_index, extracted_index)

    def warn(
        self,
        step: str,
        message: str,
        *,
        current_index: int | None = None,
        extracted_index: int | None = None,
    ) -> None:
        self._add(step, ReasoningLevel.WARNING, message, current_index, extracted_index)

    def _add(
        self,
        step: str,
        level: ReasoningLevel,
        message: str,
        current_index: int | None,
        extracted_index: int | None,
    ) -> None:
        self._notes.append(
            ReasoningNote(
                step=step,
                level=level,
                message=message,
                current_index=current_index,
                extracted_index=extracted_index,
            )
        )
        log = logger.warning if level == ReasoningLevel.WARNING else logger.debug
        log(
            "reconciliation_note",
            step=step,
            message=message,
            current_index=current_index,
            extracted_index=extracted_index,
        )


# =============================================================================
# Pass input and output
# =============================================================================


class ComparisonResult(FrozenWireModel):
    """Output of one reconciliation pass.

    ``locations`` lists one decision per current waypoint (in current order)
    followed by one per added waypoint (in output order).
    """

    trip: Trip = Field(..., description="New canonical trip")
    locations: list[WaypointDecision] = Field(default_factory=list)

    trip_date_changed: bool = Field(default=False)
    trip_date_new: str | None = Field(default=None)
    passenger_info_changed: bool = Field(default=False)
    passenger_info_new: str | None = Field(default=None)
    vehicle_info_changed: bool = Field(default=False)
    vehicle_info_new: str | None = Field(default=None)
    passenger_count_changed: bool = Field(default=False)
    passenger_count_new: int | None = Field(default=None)
    trip_destination_changed: bool = Field(default=False)
    trip_destination_new: str | None = Field(default=None)
    notes_changed: bool = Field(default=False)
    merged_notes: str = Field(default="")

    repairs: list[RepairOutcome] = Field(default_factory=list)
    reasoning: list[ReasoningNote] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def decisions(self, action: WaypointAction) -> list[WaypointDecision]:
        return [decision for decision in self.locations if decision.action == action]

    @property
    def has_changes(self) -> bool:
        """True when the pass changed anything at all."""
        return (
            any(decision.action != WaypointAction.UNCHANGED for decision in self.locations)
            or any(decision.coordinates_repaired for decision in self.locations
                   if not isinstance(decision, RemovedDecision))
            or self.trip_date_changed
            or self.passenger_info_changed
            or self.vehicle_info_changed
            or self.passenger_count_changed
            or self.trip_destination_changed
            or self.notes_changed
        )


class ReconciliationRequest(WireModel):
    """Reconciliation input: current trip plus the update proposal."""

    current: Trip = Field(...)
    update: ExtractedUpdate = Field(default_factory=ExtractedUpdate)
    raw_text: str | None = Field(default=None, description="Update text the proposal came from")
    today: date | None = Field(default=None, description="Reference date for past-date checks")
