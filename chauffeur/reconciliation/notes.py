"""Driver notes merging."""

import re

from chauffeur.itinerary.text import normalize_text

_BULLET = re.compile(r"^\s*(?:[-*•·–]|\d+[.)])\s*")


def note_lines(notes: str | None) -> list[str]:
    """Split notes into lines without bullet markers, dropping blanks."""
    if not notes:
        return []
    lines = (_BULLET.sub("", line).strip() for line in notes.splitlines())
    return [line for line in lines if line]


def merge_notes(existing: str | None, new: str | None) -> tuple[str, bool]:
    """Append new note lines to the existing notes.

    Existing notes are kept verbatim and first; each new line not already
    present (ignoring case, spacing and bullet markers) is appended as a
    "- " bullet.

    Returns:
        Tuple of (merged notes, whether anything was appended)
    """
    current = existing or ""
    seen = {normalize_text(line) for line in note_lines(current)}

    appended: list[str] = []
    for line in note_lines(new):
        key = normalize_text(line)
        if key in seen:
            continue
        seen.add(key)
        appended.append(f"- {line}")

    if not appended:
        return current, False

    merged = "\n".join(appended)
    if current.strip():
        merged = f"{current.rstrip()}\n{merged}"
    return merged, True
