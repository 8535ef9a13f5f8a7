"""Reconciliation orchestrator.

One pass: pre-checks on the proposal, trip-level field resolution, notes
merge, matching (removals first), per-waypoint merge, insertion,
assembly, bounded-parallel coordinate repair, then the post-processing
guard. Nothing is published until every repair has settled, so a
cancelled pass leaves no partial result behind.
"""

import asyncio
import time
from collections.abc import Mapping
from datetime import date
from typing import Any, TypeVar

from pydantic import ValidationError

from chauffeur.config import get_settings
from chauffeur.config.models import GeocodingConfig, ReconciliationConfig, RegionConfig
from chauffeur.exceptions import InvalidRequestError, ReconciliationValidationError
from chauffeur.extraction.preprocessing import (
    apply_unchanged_overrides,
    strip_email_metadata,
    validate_update_date,
)
from chauffeur.geocoding.base import GeocodingProvider
from chauffeur.geocoding.consistency import is_non_specific_location
from chauffeur.geocoding.factory import create_geocoding_provider
from chauffeur.geocoding.regions import resolve_region
from chauffeur.geocoding.repair import CoordinateRepairer, RepairOutcome
from chauffeur.itinerary.builder import waypoint_from_proposal
from chauffeur.itinerary.models import ExtractedUpdate, Trip, Waypoint
from chauffeur.observability.logging import get_logger
from chauffeur.observability.metrics import (
    RECONCILIATION_COUNT,
    RECONCILIATION_LATENCY,
    WAYPOINT_DECISIONS,
)
from chauffeur.reconciliation.field_resolver import (
    FieldMergeResolver,
    Resolution,
    TripFieldResolution,
)
from chauffeur.reconciliation.guard import DecisionGuard
from chauffeur.reconciliation.insertion import APPEND, InsertionPlanner
from chauffeur.reconciliation.matcher import AssignmentKind, LocationMatcher, MatchPlan
from chauffeur.reconciliation.models import (
    AddedDecision,
    ComparisonResult,
    MatchConfidence,
    ModifiedDecision,
    Placement,
    ReasoningLog,
    ReconciliationRequest,
    RemovedDecision,
    UnchangedDecision,
    WaypointChanges,
    WaypointDecision,
)
from chauffeur.reconciliation.notes import merge_notes
from chauffeur.reconciliation.removal import RemovalDetector

logger = get_logger(__name__)

# Working-list keys: ("current", current index) or ("added", extracted index)
CURRENT = "current"
ADDED = "added"


T = TypeVar("T")


def _new_value(resolution: Resolution[T]) -> T | None:
    return resolution.value if resolution.changed else None


def _merge_flags(first: WaypointChanges | None, second: WaypointChanges) -> WaypointChanges:
    if first is None:
        return second
    return WaypointChanges(
        address_changed=first.address_changed or second.address_changed,
        time_changed=first.time_changed or second.time_changed,
        purpose_changed=first.purpose_changed or second.purpose_changed,
    )


class ReconciliationEngine:
    """Merges an extracted update into the current trip.

    Stateless between passes: each call consumes one trip and one update
    and returns a new trip inside a ComparisonResult.
    """

    def __init__(
        self,
        provider: GeocodingProvider | None = None,
        config: ReconciliationConfig | None = None,
        geocoding: GeocodingConfig | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            provider: Geocoding collaborator (built from config when omitted)
            config: Reconciliation policy (from settings when omitted)
            geocoding: Geocoding configuration (from settings when omitted)
        """
        if config is None or geocoding is None:
            settings = get_settings()
            config = config or settings.reconciliation
            geocoding = geocoding or settings.geocoding

        self._config = config
        self._geocoding = geocoding
        self._provider = provider or create_geocoding_provider(geocoding)
        self._resolver = FieldMergeResolver(config)
        self._matcher = LocationMatcher(config, RemovalDetector(config.min_removal_keyword_length))
        self._planner = InsertionPlanner(config.append_before_dropoff)
        self._repairer = CoordinateRepairer.from_config(self._provider, geocoding)
        self._guard = DecisionGuard()

    async def close(self) -> None:
        """Release the geocoding provider."""
        await self._provider.close()

    async def reconcile_request(
        self,
        request: ReconciliationRequest | Mapping[str, Any],
    ) -> ComparisonResult:
        """Run a pass from a request object or its camelCase JSON form.

        Raises:
            InvalidRequestError: If a mapping does not describe a valid request
        """
        if not isinstance(request, ReconciliationRequest):
            try:
                request = ReconciliationRequest.model_validate(request)
            except ValidationError as exc:
                raise InvalidRequestError(
                    f"invalid reconciliation request: {exc.error_count()} error(s)"
                ) from exc
        return await self.reconcile(
            request.current,
            request.update,
            raw_text=request.raw_text,
            today=request.today,
        )

    async def reconcile(
        self,
        current: Trip,
        update: ExtractedUpdate,
        *,
        raw_text: str | None = None,
        today: date | None = None,
    ) -> ComparisonResult:
        """Run one reconciliation pass.

        Args:
            current: Current canonical trip (not modified)
            update: Extracted update proposal
            raw_text: Update text the proposal came from, if available
            today: Reference date for rejecting past trip dates

        Returns:
            ComparisonResult with the new canonical trip

        Raises:
            ReconciliationValidationError: If the merged trip would have fewer
                than the minimum number of waypoints
        """
        start_time = time.perf_counter()
        log = ReasoningLog()
        try:
            result = await self._run(current, update, raw_text, today, log)
        except ReconciliationValidationError as exc:
            RECONCILIATION_COUNT.labels(outcome="rejected").inc()
            logger.warning(
                "reconciliation_rejected",
                error_code=exc.error_code.value,
                waypoint_count=exc.waypoint_count,
            )
            raise
        except asyncio.CancelledError:
            RECONCILIATION_COUNT.labels(outcome="cancelled").inc()
            logger.info("reconciliation_cancelled")
            raise
        finally:
            RECONCILIATION_LATENCY.observe(time.perf_counter() - start_time)

        RECONCILIATION_COUNT.labels(outcome="changed" if result.has_changes else "unchanged").inc()
        for decision in result.locations:
            WAYPOINT_DECISIONS.labels(action=decision.action.value).inc()

        logger.info(
            "reconciliation_completed",
            waypoints_before=len(current.waypoints),
            waypoints_after=len(result.trip.waypoints),
            repairs=len(result.repairs),
            warnings=len(result.warnings),
            elapsed_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return result

    # -------------------------------------------------------------------------
    # Pass steps
    # -------------------------------------------------------------------------

    async def _run(
        self,
        current: Trip,
        update: ExtractedUpdate,
        raw_text: str | None,
        today: date | None,
        log: ReasoningLog,
    ) -> ComparisonResult:
        update = self._prepare_update(update, raw_text, today, log)

        trip_fields = self._resolver.resolve_trip_fields(current, update)
        merged_notes, notes_changed = merge_notes(current.notes, update.driver_notes)
        if notes_changed:
            log.info("notes", "new driver notes appended")

        waypoints = list(current.waypoints)
        plan = self._matcher.match(waypoints, update, log)
        merged, flags, matches, stale = self._apply_modifications(waypoints, update, plan, log)
        order, assembled, placements = self._assemble(waypoints, update, plan, merged, log)

        if len(assembled) < self._config.min_waypoints:
            raise ReconciliationValidationError(
                f"merged trip would have {len(assembled)} waypoint(s); "
                f"at least {self._config.min_waypoints} are required",
                waypoint_count=len(assembled),
            )

        region = resolve_region(trip_fields.trip_destination.value, self._geocoding)
        stale_positions = [
            position
            for position, (kind, index) in enumerate(order)
            if kind == CURRENT and index in stale
        ]
        # Waypoints the update did not touch are echoed as they are
        targets: list[int] | None = None
        if not self._config.repair_unchanged_waypoints:
            targets = [
                position
                for position, (kind, index) in enumerate(order)
                if kind == ADDED or (kind == CURRENT and index in merged)
            ]
        repaired, outcomes = await self._repairer.repair_all(
            assembled, region, stale_positions, targets
        )
        self._log_repairs(outcomes, log)
        repaired_positions = {outcome.index for outcome in outcomes if outcome.repaired}

        current_decisions: dict[int, WaypointDecision] = {
            index: RemovedDecision(
                current_index=index,
                keyword=keyword,
                removed_location=waypoints[index],
            )
            for index, keyword in plan.removals.items()
        }
        added_decisions: list[AddedDecision] = []
        final_waypoints: list[Waypoint] = []

        for position, (kind, index) in enumerate(order):
            waypoint = repaired[position]
            was_repaired = position in repaired_positions
            if kind == CURRENT:
                decision = self._current_decision(
                    index, waypoints[index], waypoint, was_repaired, flags, matches, log
                )
                current_decisions[index] = decision
            else:
                placement, anchor = placements[index]
                decision = AddedDecision(
                    extracted_index=index,
                    placement=placement,
                    anchor=anchor,
                    changes=WaypointChanges(
                        address_changed=True,
                        time_changed=waypoint.time is not None,
                        purpose_changed=bool(waypoint.purpose),
                    ),
                    final_location=waypoint,
                    coordinates_repaired=was_repaired,
                )
                added_decisions.append(decision)
            final_waypoints.append(decision.final_location)

        self._warn_non_specific(
            [*current_decisions.values(), *added_decisions],
            trip_fields.trip_destination.value,
            region,
            log,
        )

        trip = Trip(
            date=trip_fields.date.value,
            lead_passenger_name=trip_fields.lead_passenger_name.value,
            vehicle_info=trip_fields.vehicle_info.value,
            passenger_count=trip_fields.passenger_count.value,
            trip_destination=trip_fields.trip_destination.value,
            notes=merged_notes,
            waypoints=tuple(final_waypoints),
        )
        return self._build_result(
            trip,
            [current_decisions[index] for index in sorted(current_decisions)] + added_decisions,
            trip_fields,
            merged_notes,
            notes_changed,
            outcomes,
            log,
        )

    def _prepare_update(
        self,
        update: ExtractedUpdate,
        raw_text: str | None,
        today: date | None,
        log: ReasoningLog,
    ) -> ExtractedUpdate:
        if raw_text:
            update, applied = apply_unchanged_overrides(update, strip_email_metadata(raw_text))
            if applied:
                fields = ", ".join(sorted(field.value for field in applied))
                log.info("preprocess", f"update text says the rest is unchanged; ignoring {fields}")

        update, problem = validate_update_date(
            update,
            today or date.today(),
            reject_past=self._config.reject_past_dates,
        )
        if problem:
            log.warn("preprocess", f"{problem}; trip date left unchanged")
        return update

    def _apply_modifications(
        self,
        waypoints: list[Waypoint],
        update: ExtractedUpdate,
        plan: MatchPlan,
        log: ReasoningLog,
    ) -> tuple[
        dict[int, Waypoint],
        dict[int, WaypointChanges],
        dict[int, tuple[int, MatchConfidence]],
        set[int],
    ]:
        """Fold every MODIFY assignment into its waypoint, in entry order."""
        merged: dict[int, Waypoint] = {}
        flags: dict[int, WaypointChanges] = {}
        matches: dict[int, tuple[int, MatchConfidence]] = {}
        stale: set[int] = set()

        for assignment in plan.of_kind(AssignmentKind.MODIFY):
            index = assignment.target_index
            entry = update.locations[assignment.extracted_index]
            result = self._resolver.merge_waypoint(merged.get(index, waypoints[index]), entry)
            if not result.changes.any_changed:
                log.info(
                    "merge",
                    f"entry {assignment.extracted_index} restates waypoint {index}; no change",
                    current_index=index,
                    extracted_index=assignment.extracted_index,
                )
                continue

            merged[index] = result.waypoint
            flags[index] = _merge_flags(flags.get(index), result.changes)
            matches[index] = (
                assignment.extracted_index,
                assignment.confidence or MatchConfidence.MEDIUM,
            )
            if result.changes.address_changed:
                if result.coordinates_from_proposal:
                    stale.discard(index)
                else:
                    stale.add(index)

            changed = [
                name
                for name, flag in (
                    ("address", result.changes.address_changed),
                    ("time", result.changes.time_changed),
                    ("purpose", result.changes.purpose_changed),
                )
                if flag
            ]
            log.info(
                "merge",
                f"waypoint {index}: {', '.join(changed)} changed",
                current_index=index,
                extracted_index=assignment.extracted_index,
            )
        return merged, flags, matches, stale

    def _assemble(
        self,
        waypoints: list[Waypoint],
        update: ExtractedUpdate,
        plan: MatchPlan,
        merged: dict[int, Waypoint],
        log: ReasoningLog,
    ) -> tuple[list[tuple[str, int]], list[Waypoint], dict[int, tuple[Placement, str | None]]]:
        """Build the ordered output list: kept waypoints, then placed additions."""
        order: list[tuple[str, int]] = []
        assembled: list[Waypoint] = []
        for index, waypoint in enumerate(waypoints):
            if index in plan.removals:
                continue
            order.append((CURRENT, index))
            assembled.append(merged.get(index, waypoint))

        placements: dict[int, tuple[Placement, str | None]] = {}
        for assignment in plan.of_kind(AssignmentKind.INSERT, AssignmentKind.APPEND):
            entry = update.locations[assignment.extracted_index]
            new_waypoint = waypoint_from_proposal(entry)
            placement = Placement.APPEND
            anchor = assignment.anchor

            position: int | None = None
            if assignment.kind == AssignmentKind.INSERT and anchor and assignment.direction:
                planned = self._planner.plan_insertion(anchor, assignment.direction, assembled)
                if planned == APPEND:
                    log.warn(
                        "insert",
                        f"anchor {anchor!r} for entry {assignment.extracted_index} not found; "
                        f"appending instead",
                        extracted_index=assignment.extracted_index,
                    )
                else:
                    position = planned
                    placement = Placement.ANCHOR
            if position is None:
                position = self._planner.append_position(assembled)

            order.insert(position, (ADDED, assignment.extracted_index))
            assembled.insert(position, new_waypoint)
            placements[assignment.extracted_index] = (placement, anchor)
            log.info(
                "insert",
                f"added {new_waypoint.name or new_waypoint.address!r} at index {position}",
                extracted_index=assignment.extracted_index,
            )
        return order, assembled, placements

    def _current_decision(
        self,
        index: int,
        original: Waypoint,
        final: Waypoint,
        repaired: bool,
        flags: dict[int, WaypointChanges],
        matches: dict[int, tuple[int, MatchConfidence]],
        log: ReasoningLog,
    ) -> ModifiedDecision | UnchangedDecision:
        if index not in flags:
            return self._guard.check_unchanged(
                UnchangedDecision(
                    current_index=index,
                    final_location=final,
                    coordinates_repaired=repaired,
                ),
                original,
                log,
            )
        extracted_index, confidence = matches[index]
        return self._guard.check_modified(
            ModifiedDecision(
                current_index=index,
                extracted_index=extracted_index,
                confidence=confidence,
                changes=flags[index],
                final_location=final,
                coordinates_repaired=repaired,
            ),
            original,
            log,
        )

    @staticmethod
    def _log_repairs(outcomes: list[RepairOutcome], log: ReasoningLog) -> None:
        for outcome in outcomes:
            message = (
                f"waypoint at index {outcome.index} ({outcome.reason.value}): "
                f"{outcome.status.value}; {outcome.detail}"
            )
            if outcome.repaired:
                log.info("repair", message)
            else:
                log.warn("repair", message)

    @staticmethod
    def _warn_non_specific(
        decisions: list[WaypointDecision],
        destination: str | None,
        region: RegionConfig,
        log: ReasoningLog,
    ) -> None:
        for decision in decisions:
            if not isinstance(decision, (AddedDecision, ModifiedDecision)):
                continue
            if not decision.changes.address_changed:
                continue
            address = decision.final_location.address
            if is_non_specific_location(address, destination, region):
                log.warn(
                    "validate",
                    f"address {address!r} names only a place and city; "
                    f"the driver may need a street address",
                    current_index=getattr(decision, "current_index", None),
                    extracted_index=decision.extracted_index,
                )

    @staticmethod
    def _build_result(
        trip: Trip,
        decisions: list[WaypointDecision],
        trip_fields: TripFieldResolution,
        merged_notes: str,
        notes_changed: bool,
        outcomes: list[RepairOutcome],
        log: ReasoningLog,
    ) -> ComparisonResult:
        return ComparisonResult(
            trip=trip,
            locations=decisions,
            trip_date_changed=trip_fields.date.changed,
            trip_date_new=_new_value(trip_fields.date),
            passenger_info_changed=trip_fields.lead_passenger_name.changed,
            passenger_info_new=_new_value(trip_fields.lead_passenger_name),
            vehicle_info_changed=trip_fields.vehicle_info.changed,
            vehicle_info_new=_new_value(trip_fields.vehicle_info),
            passenger_count_changed=trip_fields.passenger_count.changed,
            passenger_count_new=_new_value(trip_fields.passenger_count),
            trip_destination_changed=trip_fields.trip_destination.changed,
            trip_destination_new=_new_value(trip_fields.trip_destination),
            notes_changed=notes_changed,
            merged_notes=merged_notes,
            repairs=outcomes,
            reasoning=log.notes,
            warnings=log.warnings,
        )
