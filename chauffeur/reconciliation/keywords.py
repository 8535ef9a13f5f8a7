"""Endpoint keyword gates and anchor phrases.

Arrival-class words always mean the pickup slot (index 0) and
departure-class words the dropoff slot (last index), even in phrases such
as "arrival location changed".
"""

import re
from enum import Enum

from chauffeur.itinerary.text import contains_phrase, normalize_text

PICKUP_KEYWORDS: tuple[str, ...] = (
    "pickup",
    "pick up",
    "arrival",
    "arrive",
    "arriving",
    "landing",
    "land",
    "arrived",
)

DROPOFF_KEYWORDS: tuple[str, ...] = (
    "drop off",
    "dropoff",
    "drop-off",
    "destination",
    "departure",
    "depart",
    "departing",
    "leaving",
    "leave",
    "departed",
)

# Words that say which slot is meant without naming a place
_SLOT_FILLER = frozenset({
    "the", "a", "an", "new", "location", "point", "address", "place", "spot",
    "changed", "change", "changes", "updated", "update", "moved", "move", "now",
    "is", "to", "at", "for", "of", "from", "time", "stop", "same",
})

_AFTER_PATTERN = re.compile(r"\b(?:after|following|post)\s+(?:the\s+)?(?P<anchor>[^,;.]+)")
_BEFORE_PATTERN = re.compile(r"\b(?:before|prior\s+to|pre)\s+(?:the\s+)?(?P<anchor>[^,;.]+)")


class EndpointSlot(str, Enum):
    """Protected endpoint of a trip."""

    PICKUP = "pickup"
    DROPOFF = "dropoff"


class AnchorDirection(str, Enum):
    """Side of the anchor a new waypoint goes on."""

    AFTER = "after"
    BEFORE = "before"


def _keywords_for(slot: EndpointSlot) -> tuple[str, ...]:
    return PICKUP_KEYWORDS if slot == EndpointSlot.PICKUP else DROPOFF_KEYWORDS


def mentions_slot(text: str | None, slot: EndpointSlot) -> bool:
    """Check whether text carries a keyword of the slot's class (whole words)."""
    return any(contains_phrase(text, keyword) for keyword in _keywords_for(slot))


def endpoint_slots(text: str | None) -> set[EndpointSlot]:
    """Return every endpoint slot the text names."""
    return {slot for slot in EndpointSlot if mentions_slot(text, slot)}


def is_slot_reference_only(text: str | None) -> bool:
    """Check whether text only names an endpoint slot, not a place.

    "Pickup location changed" names no address; "Pickup at The Savoy" does.
    """
    remaining = normalize_text(text)
    if not remaining:
        return True
    for keyword in sorted(PICKUP_KEYWORDS + DROPOFF_KEYWORDS, key=len, reverse=True):
        remaining = re.sub(rf"(?<!\w){re.escape(keyword)}(?!\w)", " ", remaining)
    words = [word for word in re.split(r"[\s,:;.!-]+", remaining) if word]
    return all(word in _SLOT_FILLER for word in words)


def parse_anchor(purpose: str | None) -> tuple[AnchorDirection, str] | None:
    """Derive an anchor from purpose text such as "after lunch".

    Returns:
        Tuple of (direction, anchor keyword), or None when the text names
        no anchor
    """
    text = normalize_text(purpose)
    if not text:
        return None
    for direction, pattern in (
        (AnchorDirection.AFTER, _AFTER_PATTERN),
        (AnchorDirection.BEFORE, _BEFORE_PATTERN),
    ):
        match = pattern.search(text)
        if match:
            anchor = match.group("anchor").strip()
            if anchor:
                return direction, anchor
    return None


def strip_anchor_phrase(text: str | None) -> str:
    """Remove an "after X"/"before X" phrase so X is not read as a slot keyword.

    "Lunch before departure" names no dropoff; it anchors on it.
    """
    remaining = normalize_text(text)
    for pattern in (_AFTER_PATTERN, _BEFORE_PATTERN):
        remaining = pattern.sub(" ", remaining)
    return remaining.strip()
