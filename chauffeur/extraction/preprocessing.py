"""Pre- and post-processing of update text around extraction."""

import re
from datetime import date
from enum import Enum

from chauffeur.itinerary.models import ExtractedUpdate
from chauffeur.observability.logging import get_logger

logger = get_logger(__name__)

_HEADER_PATTERNS = (
    re.compile(r"^From:\s*[^\n]+@[^\n]+$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^To:\s*[^\n]+@[^\n]+$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^Subject:[^\n]*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^Cc:[^\n]*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^Bcc:[^\n]*$", re.IGNORECASE | re.MULTILINE),
    re.compile(
        r"^Date:\s*\d{1,2}\s+[a-z]{3}\s+\d{4}\s+\d{2}:\d{2}\s*$",
        re.IGNORECASE | re.MULTILINE,
    ),
)
_INLINE_DATE = re.compile(
    r"^Date:\s*\d{1,2}\s+[a-z]{3}\s+\d{4}\s+\d{2}:\d{2}\s+",
    re.IGNORECASE | re.MULTILINE,
)
_BLANK_LINES = re.compile(r"^\s*[\r\n]+", re.MULTILINE)
_COMMAND_MARKER = re.compile(r"\s+(?:EXTRACT\s+TRIP|EXTRAER\s+VIAJE)\s*$", re.IGNORECASE)

_SAME_PHRASES = ("rest same", "same same", "everything else same", "rest unchanged")
_VEHICLE_WORDS = re.compile(r"\b(?:vehicle|car|van|mercedes|bmw|audi|s-class|v-class)\b")
_PASSENGER_WORDS = re.compile(r"\bpassengers?\b|\b(?:mr|ms|mrs|dr)\.")
_MONTHS = "jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec"
_DATE_WORDS = re.compile(
    rf"\b\d{{1,2}}(?:st|nd|rd|th)?\s*(?:{_MONTHS})|\b(?:{_MONTHS})[a-z]*\s*\d{{1,2}}\b"
    r"|\b\d{4}-\d{2}-\d{2}\b"
)


class UnchangedField(str, Enum):
    """Trip-level fields the sender declared unchanged."""

    VEHICLE = "vehicle"
    PASSENGERS = "passengers"
    DATE = "date"


def strip_email_metadata(text: str) -> str:
    """Remove e-mail headers and command markers from forwarded update text.

    A ``Date:`` header on its own line is dropped; one followed by message
    content on the same line only loses the timestamp.
    """
    cleaned = text
    for pattern in _HEADER_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = _BLANK_LINES.sub("", cleaned).strip()
    cleaned = _INLINE_DATE.sub("", cleaned)
    cleaned = _COMMAND_MARKER.sub("", cleaned)
    cleaned = cleaned.strip()

    removed = len(text) - len(cleaned)
    if removed > 0:
        logger.debug("email_metadata_stripped", removed_chars=removed)
    return cleaned


def detect_unchanged_fields(text: str) -> set[UnchangedField]:
    """Detect fields declared unchanged by "rest same" style language.

    A field only counts as unchanged when the text does not itself mention
    it; "rest same, new car is a V-Class" still changes the vehicle.
    """
    lowered = text.lower()
    if not any(phrase in lowered for phrase in _SAME_PHRASES):
        return set()

    unchanged: set[UnchangedField] = set()
    if not _VEHICLE_WORDS.search(lowered):
        unchanged.add(UnchangedField.VEHICLE)
    if not _PASSENGER_WORDS.search(lowered):
        unchanged.add(UnchangedField.PASSENGERS)
    if not _DATE_WORDS.search(lowered):
        unchanged.add(UnchangedField.DATE)
    return unchanged


def apply_unchanged_overrides(
    update: ExtractedUpdate,
    text: str,
) -> tuple[ExtractedUpdate, set[UnchangedField]]:
    """Null out proposal fields the raw text declared unchanged.

    Returns:
        Tuple of (corrected update, fields that were overridden)
    """
    unchanged = detect_unchanged_fields(text)
    overrides: dict[str, object] = {}
    applied: set[UnchangedField] = set()

    if UnchangedField.VEHICLE in unchanged and update.vehicle_info is not None:
        overrides["vehicle_info"] = None
        applied.add(UnchangedField.VEHICLE)
    if UnchangedField.PASSENGERS in unchanged and (
        update.lead_passenger is not None or update.passenger_count is not None
    ):
        overrides.update(lead_passenger_name=None, passenger_names=[], passenger_count=None)
        applied.add(UnchangedField.PASSENGERS)
    if UnchangedField.DATE in unchanged and update.date is not None:
        overrides["date"] = None
        applied.add(UnchangedField.DATE)

    if not overrides:
        return update, applied

    logger.info(
        "unchanged_fields_overridden",
        fields=sorted(field.value for field in applied),
    )
    return update.model_copy(update=overrides), applied


def validate_update_date(
    update: ExtractedUpdate,
    today: date,
    reject_past: bool = True,
) -> tuple[ExtractedUpdate, str | None]:
    """Drop a proposed trip date that cannot be right.

    Unparsable dates, and dates before ``today`` when ``reject_past`` is
    set, are treated as not mentioned.

    Returns:
        Tuple of (update, problem description or None when the date is kept)
    """
    if update.date is None:
        return update, None

    try:
        proposed = date.fromisoformat(update.date.strip())
    except ValueError:
        problem = f"proposed date {update.date!r} is not a YYYY-MM-DD date"
    else:
        if not reject_past or proposed >= today:
            return update, None
        problem = f"proposed date {proposed.isoformat()} is in the past"

    logger.warning("update_date_rejected", date=update.date, reason=problem)
    return update.model_copy(update={"date": None}), problem
