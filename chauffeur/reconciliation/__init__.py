"""Itinerary reconciliation.

Merges a partial, possibly wrong update proposal into the current
canonical trip without destroying unmentioned data: removals first, then
endpoint-gated matching, field-level merge, anchored insertion, and
coordinate repair of the assembled result.
"""

from chauffeur.reconciliation.engine import ReconciliationEngine
from chauffeur.reconciliation.field_resolver import (
    FieldMergeResolver,
    Resolution,
    resolve_field,
)
from chauffeur.reconciliation.guard import DecisionGuard
from chauffeur.reconciliation.insertion import APPEND, InsertionPlanner
from chauffeur.reconciliation.keywords import (
    DROPOFF_KEYWORDS,
    PICKUP_KEYWORDS,
    AnchorDirection,
    EndpointSlot,
)
from chauffeur.reconciliation.matcher import (
    AssignmentKind,
    EntryAssignment,
    LocationMatcher,
    MatchPlan,
)
from chauffeur.reconciliation.models import (
    AddedDecision,
    ComparisonResult,
    MatchConfidence,
    ModifiedDecision,
    Placement,
    ReasoningLevel,
    ReasoningLog,
    ReasoningNote,
    ReconciliationRequest,
    RemovedDecision,
    UnchangedDecision,
    WaypointAction,
    WaypointChanges,
    WaypointDecision,
)
from chauffeur.reconciliation.notes import merge_notes
from chauffeur.reconciliation.removal import RemovalDetector

__all__ = [
    # Engine
    "ReconciliationEngine",
    # Components
    "DecisionGuard",
    "FieldMergeResolver",
    "InsertionPlanner",
    "LocationMatcher",
    "RemovalDetector",
    "merge_notes",
    "resolve_field",
    # Plan
    "APPEND",
    "AnchorDirection",
    "AssignmentKind",
    "EndpointSlot",
    "EntryAssignment",
    "MatchPlan",
    "PICKUP_KEYWORDS",
    "DROPOFF_KEYWORDS",
    "Resolution",
    # Results
    "AddedDecision",
    "ComparisonResult",
    "MatchConfidence",
    "ModifiedDecision",
    "Placement",
    "ReasoningLevel",
    "ReasoningLog",
    "ReasoningNote",
    "ReconciliationRequest",
    "RemovedDecision",
    "UnchangedDecision",
    "WaypointAction",
    "WaypointChanges",
    "WaypointDecision",
]
