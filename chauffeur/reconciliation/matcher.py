"""Location matching: pair update entries with current waypoints.

Per entry, in priority order:

1. Explicit ``insertAfter``/``insertBefore`` anchors route to insertion.
2. ``locationIndex`` names a waypoint directly.
3. Text containment against name, purpose and address (exact match is
   high confidence, containment medium).
4. An entry whose text only designates the pickup or dropoff slot
   ("Drop off", purpose "Pickup") targets that endpoint.

Removal keywords are resolved first and take precedence over any match.
The pickup and dropoff are only ever matched when the entry carries a
keyword of their class, and a keyword alone never outranks a waypoint the
entry names. Ambiguous matches are ignored, never guessed.
"""

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chauffeur.config.models import ReconciliationConfig
from chauffeur.itinerary.models import ExtractedUpdate, ProposedLocation, Waypoint
from chauffeur.itinerary.text import contains_either, normalize_text
from chauffeur.reconciliation.keywords import (
    AnchorDirection,
    EndpointSlot,
    endpoint_slots,
    is_slot_reference_only,
    mentions_slot,
    parse_anchor,
    strip_anchor_phrase,
)
from chauffeur.reconciliation.models import MatchConfidence, ReasoningLog
from chauffeur.reconciliation.removal import RemovalDetector

STEP = "match"

# Containment on shorter strings ("A", "Hq") matches almost anything
MIN_CONTAINMENT_LENGTH = 3

_CONFIDENCE_RANK = {MatchConfidence.HIGH: 2, MatchConfidence.MEDIUM: 1, MatchConfidence.LOW: 0}


class AssignmentKind(str, Enum):
    """Where an update entry goes."""

    MODIFY = "modify"
    INSERT = "insert"
    APPEND = "append"
    IGNORE = "ignore"


class EntryAssignment(BaseModel):
    """Routing decision for one update entry."""

    model_config = ConfigDict(frozen=True)

    extracted_index: int = Field(..., ge=0)
    kind: AssignmentKind = Field(...)
    current_index: int | None = Field(default=None, description="Target for MODIFY")
    confidence: MatchConfidence | None = Field(default=None)
    strategy: str = Field(default="", description="Rule that produced the assignment")
    anchor: str | None = Field(default=None, description="Anchor keyword for INSERT")
    direction: AnchorDirection | None = Field(default=None)

    @model_validator(mode="after")
    def check_modify_target(self) -> "EntryAssignment":
        if self.kind == AssignmentKind.MODIFY and self.current_index is None:
            raise ValueError("a MODIFY assignment needs a current_index")
        return self

    @property
    def target_index(self) -> int:
        """Current index a MODIFY assignment edits."""
        if self.kind != AssignmentKind.MODIFY or self.current_index is None:
            raise ValueError(f"{self.kind.value} assignment has no target waypoint")
        return self.current_index


class MatchPlan(BaseModel):
    """Matcher output for one pass."""

    model_config = ConfigDict(frozen=True)

    assignments: list[EntryAssignment] = Field(default_factory=list)
    removals: dict[int, str] = Field(
        default_factory=dict,
        description="Current index -> removal keyword",
    )

    def of_kind(self, *kinds: AssignmentKind) -> list[EntryAssignment]:
        return [assignment for assignment in self.assignments if assignment.kind in kinds]


def _slot_of(index: int, count: int) -> EndpointSlot | None:
    if index == 0:
        return EndpointSlot.PICKUP
    if index == count - 1:
        return EndpointSlot.DROPOFF
    return None


def designated_slots(entry: ProposedLocation) -> set[EndpointSlot]:
    """Endpoint slots an entry designates without naming any place.

    "Drop off" or a bare "Pickup" purpose designates a slot; a purpose such
    as "pick up the takeaway order" uses the keyword as a verb and does not.
    """
    slots: set[EndpointSlot] = set()
    for text in (entry.location, strip_anchor_phrase(entry.purpose)):
        if normalize_text(text) and is_slot_reference_only(text):
            slots |= endpoint_slots(text)
    return slots


def text_confidence(entry: ProposedLocation, waypoint: Waypoint) -> MatchConfidence | None:
    """Score how well an entry's text names a waypoint.

    Exact (casefolded) equality of location or purpose with the waypoint's
    name, purpose or address is HIGH; containment in either direction is
    MEDIUM. Empty strings never match. An "after X" phrase in the purpose
    names the anchor, not the stop, and is ignored.
    """
    known = [
        value
        for value in (
            waypoint.name,
            waypoint.purpose,
            waypoint.full_address,
            waypoint.formatted_address,
        )
        if normalize_text(value)
    ]
    location = normalize_text(entry.location)
    purpose = strip_anchor_phrase(entry.purpose)

    def contained(text: str, values: list[str]) -> bool:
        if len(text) < MIN_CONTAINMENT_LENGTH:
            return False
        return any(
            contains_either(text, value)
            for value in values
            if len(normalize_text(value)) >= MIN_CONTAINMENT_LENGTH
        )

    if location and not is_slot_reference_only(location):
        if any(location == normalize_text(value) for value in known):
            return MatchConfidence.HIGH
        if contained(location, known):
            return MatchConfidence.MEDIUM
    if purpose and not is_slot_reference_only(purpose):
        own = [value for value in (waypoint.name, waypoint.purpose) if normalize_text(value)]
        if any(purpose == normalize_text(value) for value in own):
            return MatchConfidence.HIGH
        if contained(purpose, own):
            return MatchConfidence.MEDIUM
    return None


class LocationMatcher:
    """Routes each update entry to modify, insert, append or ignore."""

    def __init__(
        self,
        config: ReconciliationConfig,
        removal_detector: RemovalDetector | None = None,
    ) -> None:
        self._config = config
        self._removal = removal_detector or RemovalDetector(config.min_removal_keyword_length)

    def match(
        self,
        current: Sequence[Waypoint],
        update: ExtractedUpdate,
        log: ReasoningLog | None = None,
    ) -> MatchPlan:
        """Build the match plan for an update against the current waypoints."""
        log = log or ReasoningLog()
        removals = self._removal.detect(update.removed_locations, current, log)
        assignments = [
            self._assign(index, entry, current, removals, log)
            for index, entry in enumerate(update.locations)
        ]
        return MatchPlan(assignments=assignments, removals=removals)

    def _assign(
        self,
        extracted_index: int,
        entry: ProposedLocation,
        current: Sequence[Waypoint],
        removals: dict[int, str],
        log: ReasoningLog,
    ) -> EntryAssignment:
        count = len(current)

        def modify(index: int, confidence: MatchConfidence, strategy: str) -> EntryAssignment:
            log.info(
                STEP,
                f"entry {extracted_index} matched waypoint {index} by {strategy} "
                f"({confidence.value} confidence)",
                current_index=index,
                extracted_index=extracted_index,
            )
            return EntryAssignment(
                extracted_index=extracted_index,
                kind=AssignmentKind.MODIFY,
                current_index=index,
                confidence=confidence,
                strategy=strategy,
            )

        def ignore(message: str, index: int | None = None, warn: bool = True) -> EntryAssignment:
            record = log.warn if warn else log.info
            record(STEP, message, current_index=index, extracted_index=extracted_index)
            return EntryAssignment(
                extracted_index=extracted_index,
                kind=AssignmentKind.IGNORE,
                current_index=index,
                strategy="ignored",
            )

        # Explicit anchors always mean a new waypoint
        if entry.anchor:
            direction = AnchorDirection.AFTER if entry.insert_after else AnchorDirection.BEFORE
            anchor = entry.anchor
            log.info(
                STEP,
                f"entry {extracted_index} is an insertion {direction.value} {anchor!r}",
                extracted_index=extracted_index,
            )
            return EntryAssignment(
                extracted_index=extracted_index,
                kind=AssignmentKind.INSERT,
                strategy="explicit_anchor",
                anchor=anchor,
                direction=direction,
            )

        gate_text = strip_anchor_phrase(entry.text)

        if entry.location_index is not None:
            index = entry.location_index
            if 0 <= index < count:
                slot = _slot_of(index, count)
                if index in removals:
                    return ignore(
                        f"entry {extracted_index} targets waypoint {index}, which is being removed",
                        index,
                    )
                if slot is not None and not mentions_slot(gate_text, slot):
                    return ignore(
                        f"entry {extracted_index} targets the {slot.value} by index without "
                        f"a {slot.value} keyword; {slot.value} left unchanged",
                        index,
                        warn=False,
                    )
                return modify(index, MatchConfidence.HIGH, "location_index")
            log.info(
                STEP,
                f"entry {extracted_index} has out-of-range locationIndex {index}",
                extracted_index=extracted_index,
            )

        slots = endpoint_slots(gate_text)

        candidates: dict[int, MatchConfidence] = {}
        gated: list[int] = []
        removed_hits: list[int] = []
        for index, waypoint in enumerate(current):
            confidence = text_confidence(entry, waypoint)
            if confidence is None:
                continue
            if index in removals:
                removed_hits.append(index)
                continue
            slot = _slot_of(index, count)
            if slot is not None and slot not in slots:
                gated.append(index)
                continue
            candidates[index] = confidence

        if candidates:
            best_rank = max(_CONFIDENCE_RANK[confidence] for confidence in candidates.values())
            best = [
                index
                for index, confidence in candidates.items()
                if _CONFIDENCE_RANK[confidence] == best_rank
            ]
            if len(best) > 1:
                return ignore(
                    f"entry {extracted_index} ({entry.location or entry.purpose!r}) is ambiguous "
                    f"between waypoints {best}; nothing changed"
                )
            index = best[0]
            return modify(index, candidates[index], "text")

        # Keyword routing only for entries whose text just designates a slot
        designated = designated_slots(entry)
        if len(designated) == 1 and count:
            slot = next(iter(designated))
            index = 0 if slot == EndpointSlot.PICKUP else count - 1
            if index in removals:
                return ignore(
                    f"entry {extracted_index} names the {slot.value}, which is being removed",
                    index,
                )
            return modify(index, MatchConfidence.HIGH, f"{slot.value}_keyword")

        if gated:
            slot_names = ", ".join(_slot_of(index, count).value for index in gated)  # type: ignore[union-attr]
            return ignore(
                f"entry {extracted_index} resembles the {slot_names} but carries no endpoint "
                f"keyword; left unchanged",
                gated[0],
                warn=False,
            )
        if removed_hits:
            return ignore(
                f"entry {extracted_index} refers to a waypoint being removed",
                removed_hits[0],
                warn=False,
            )

        # No existing waypoint: the entry is an addition
        if self._config.parse_anchor_from_purpose:
            parsed = parse_anchor(entry.purpose)
            if parsed is not None:
                direction, anchor = parsed
                log.info(
                    STEP,
                    f"entry {extracted_index} is an insertion {direction.value} {anchor!r} "
                    f"(from purpose)",
                    extracted_index=extracted_index,
                )
                return EntryAssignment(
                    extracted_index=extracted_index,
                    kind=AssignmentKind.INSERT,
                    strategy="purpose_anchor",
                    anchor=anchor,
                    direction=direction,
                )

        if not entry.address or (
            is_slot_reference_only(entry.location) and not entry.formatted_address
        ):
            return ignore(
                f"entry {extracted_index} matched no waypoint and names no place; ignored"
            )

        log.warn(
            STEP,
            f"entry {extracted_index} ({entry.address!r}) matched no waypoint; appending",
            extracted_index=extracted_index,
        )
        return EntryAssignment(
            extracted_index=extracted_index,
            kind=AssignmentKind.APPEND,
            strategy="unmatched",
        )
