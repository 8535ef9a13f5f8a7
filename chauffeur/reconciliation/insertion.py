"""Insertion planning: resolve anchor keywords to positions."""

from collections.abc import Callable, Sequence
from typing import Literal

from chauffeur.itinerary.models import Waypoint
from chauffeur.itinerary.text import contains_either, normalize_text, significant_words
from chauffeur.reconciliation.keywords import AnchorDirection

APPEND: Literal["append"] = "append"

AnchorStrategy = Callable[[str, Waypoint], bool]


def _exact(anchor: str, waypoint: Waypoint) -> bool:
    return anchor in (normalize_text(waypoint.name), normalize_text(waypoint.purpose))


def _anchor_in_fields(anchor: str, waypoint: Waypoint) -> bool:
    return any(
        anchor in normalize_text(value)
        for value in (waypoint.name, waypoint.purpose, waypoint.formatted_address)
    )


def _fields_in_anchor(anchor: str, waypoint: Waypoint) -> bool:
    return any(
        contains_either(value, anchor)
        for value in (waypoint.name, waypoint.purpose)
        if len(normalize_text(value)) >= 3
    )


def _all_words(anchor: str, waypoint: Waypoint) -> bool:
    words = significant_words(anchor)
    if not words:
        return False
    combined = normalize_text(
        f"{waypoint.name} {waypoint.purpose} {waypoint.full_address} {waypoint.formatted_address}"
    )
    return all(word in combined for word in words)


# Strongest first; the first strategy with any hit decides.
ANCHOR_STRATEGIES: tuple[tuple[str, AnchorStrategy], ...] = (
    ("exact", _exact),
    ("anchor_in_waypoint", _anchor_in_fields),
    ("waypoint_in_anchor", _fields_in_anchor),
    ("all_words", _all_words),
)


class InsertionPlanner:
    """Places new waypoints relative to anchors.

    Anchors resolve against the working list (kept waypoints plus earlier
    additions of the same pass), so several additions can chain.
    """

    def __init__(self, append_before_dropoff: bool = False) -> None:
        self._append_before_dropoff = append_before_dropoff

    def find_anchor(self, anchor: str, waypoints: Sequence[Waypoint]) -> int | None:
        """Return the index of the waypoint an anchor keyword names."""
        needle = normalize_text(anchor)
        if not needle:
            return None
        for _, strategy in ANCHOR_STRATEGIES:
            for index, waypoint in enumerate(waypoints):
                if strategy(needle, waypoint):
                    return index
        return None

    def plan_insertion(
        self,
        anchor: str,
        direction: AnchorDirection,
        waypoints: Sequence[Waypoint],
    ) -> int | Literal["append"]:
        """Resolve an anchor to the index the new waypoint should occupy.

        Returns:
            k + 1 for "after" and k for "before" when the anchor is waypoint
            k, or "append" when no waypoint matches
        """
        index = self.find_anchor(anchor, waypoints)
        if index is None:
            return APPEND
        return index + 1 if direction == AnchorDirection.AFTER else index

    def append_position(self, waypoints: Sequence[Waypoint]) -> int:
        """Index used for an append."""
        if self._append_before_dropoff and len(waypoints) >= 2:
            return len(waypoints) - 1
        return len(waypoints)

