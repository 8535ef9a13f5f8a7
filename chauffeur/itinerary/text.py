"""Text normalisation shared by matching, removal and validation."""

import re

_WHITESPACE = re.compile(r"\s+")
_TIME_PATTERN = re.compile(
    r"^(?P<hour>\d{1,2})(?:[:.h](?P<minute>\d{1,2}))?\s*(?P<meridiem>am|pm|a\.m\.|p\.m\.)?$"
)


def normalize_text(value: str | None) -> str:
    """Casefold and collapse whitespace; None becomes an empty string."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value).strip().casefold()


def is_blank(value: object) -> bool:
    """True for None and for strings that are empty after stripping."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def contains_either(a: str | None, b: str | None) -> bool:
    """Substring containment in either direction, ignoring case.

    Empty strings never match; an empty needle would otherwise be
    contained in everything.
    """
    left = normalize_text(a)
    right = normalize_text(b)
    if not left or not right:
        return False
    return left in right or right in left


def contains_phrase(text: str | None, phrase: str) -> bool:
    """Whole-word (or whole-phrase) containment, ignoring case."""
    haystack = normalize_text(text)
    needle = normalize_text(phrase)
    if not haystack or not needle:
        return False
    return re.search(rf"(?<!\w){re.escape(needle)}(?!\w)", haystack) is not None


def significant_words(text: str | None, min_length: int = 3) -> list[str]:
    """Split into lowercase words, dropping short filler words."""
    return [
        word
        for word in re.split(r"[\s,]+", normalize_text(text))
        if len(word) >= min_length
    ]


def normalize_time(value: str | None) -> str | None:
    """Normalise a time string to HH:MM.

    Accepts "6", "6:30", "06.30", "6am", "6:30 pm" and "18h30". Values that
    do not look like a time are returned stripped so they still compare
    textually.
    """
    if value is None:
        return None
    text = value.strip().lower()
    if not text or text in {"null", "undefined", "n/a"}:
        return None

    match = _TIME_PATTERN.match(text)
    if not match:
        return value.strip()

    hour = int(match.group("hour"))
    minute = int(match.group("minute") or 0)
    meridiem = (match.group("meridiem") or "").replace(".", "")
    if meridiem == "pm" and hour < 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0

    if hour > 23 or minute > 59:
        return value.strip()
    return f"{hour:02d}:{minute:02d}"
