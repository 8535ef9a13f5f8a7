"""Helpers at the boundary with the extraction collaborator.

The natural-language extraction itself happens elsewhere; these helpers
clean the raw update text before it is sent and sanity-check the
proposal that comes back.
"""

from chauffeur.extraction.flights import (
    FlightNumber,
    annotate_flights,
    extract_flight_numbers,
    flights_by_facility,
)
from chauffeur.extraction.preprocessing import (
    UnchangedField,
    apply_unchanged_overrides,
    detect_unchanged_fields,
    strip_email_metadata,
    validate_update_date,
)

__all__ = [
    "FlightNumber",
    "UnchangedField",
    "annotate_flights",
    "apply_unchanged_overrides",
    "detect_unchanged_fields",
    "extract_flight_numbers",
    "flights_by_facility",
    "strip_email_metadata",
    "validate_update_date",
]
