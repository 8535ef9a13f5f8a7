"""Removal detection from free-text keywords."""

from collections.abc import Sequence

from chauffeur.itinerary.models import Waypoint
from chauffeur.itinerary.text import contains_either, normalize_text, significant_words
from chauffeur.reconciliation.keywords import EndpointSlot, mentions_slot
from chauffeur.reconciliation.models import ReasoningLog

STEP = "removal"


class RemovalDetector:
    """Matches removal keywords against current waypoints.

    A keyword removes a waypoint when, ignoring case, it is contained in or
    contains the waypoint's name, purpose or address, or when every word
    of a multi-word keyword appears somewhere in those fields. The pickup
    and dropoff are only removed by keywords that name their slot.
    """

    def __init__(self, min_keyword_length: int = 3) -> None:
        self._min_keyword_length = min_keyword_length

    def matches(self, keyword: str, waypoint: Waypoint) -> bool:
        """Check whether a keyword refers to a waypoint."""
        needle = normalize_text(keyword)
        if len(needle) < self._min_keyword_length:
            return False

        fields = [
            value
            for value in (
                waypoint.name,
                waypoint.purpose,
                waypoint.full_address,
                waypoint.formatted_address,
            )
            if len(normalize_text(value)) >= self._min_keyword_length
        ]
        if any(contains_either(needle, value) for value in fields):
            return True

        words = significant_words(needle, self._min_keyword_length)
        if len(words) > 1:
            combined = normalize_text(" ".join(fields))
            return all(word in combined for word in words)
        return False

    def detect(
        self,
        keywords: Sequence[str],
        current: Sequence[Waypoint],
        log: ReasoningLog | None = None,
    ) -> dict[int, str]:
        """Find the waypoints to remove.

        Returns:
            Map of current index -> keyword that removed it
        """
        log = log or ReasoningLog()
        removals: dict[int, str] = {}
        last = len(current) - 1

        for keyword in keywords:
            if len(normalize_text(keyword)) < self._min_keyword_length:
                log.warn(STEP, f"removal keyword {keyword!r} is too short to match safely")
                continue

            matched = False
            for index, waypoint in enumerate(current):
                if not self.matches(keyword, waypoint):
                    continue
                slot = self._protected_slot(index, last)
                if slot is not None and not mentions_slot(keyword, slot):
                    log.info(
                        STEP,
                        f"removal keyword {keyword!r} matched the {slot.value} "
                        f"but does not name the {slot.value}; kept",
                        current_index=index,
                    )
                    continue
                matched = True
                if index not in removals:
                    removals[index] = keyword
                    log.info(
                        STEP,
                        f"removing waypoint {index} ({waypoint.name or waypoint.address!r}) "
                        f"for keyword {keyword!r}",
                        current_index=index,
                    )

            if not matched:
                log.warn(STEP, f"removal keyword {keyword!r} matched no removable waypoint")

        return removals

    def detect_removals(self, keywords: Sequence[str], current: Sequence[Waypoint]) -> set[int]:
        """Return only the indices to remove."""
        return set(self.detect(keywords, current))

    @staticmethod
    def _protected_slot(index: int, last: int) -> EndpointSlot | None:
        if index == 0:
            return EndpointSlot.PICKUP
        if index == last:
            return EndpointSlot.DROPOFF
        return None
