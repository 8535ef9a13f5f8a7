"""Flight number extraction and assignment to airport waypoints."""

import re
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from chauffeur.config.models import RegionConfig
from chauffeur.geocoding.regions import CLASS_TOKENS, find_facility, is_airport
from chauffeur.itinerary.models import FlightDirection, Waypoint
from chauffeur.itinerary.text import contains_phrase, normalize_text

# IATA (BA, U2) or ICAO (BAW) airline designator, then 2-4 digits. A
# following inward code ("SW19 5AE") marks a UK postcode, not a flight.
_FLIGHT_PATTERN = re.compile(
    r"\b(?P<airline>[A-Z]{2,3}|[A-Z]\d|\d[A-Z])\s?-?\s?(?P<number>\d{2,4})\b(?!\s?\d[A-Z]{2}\b)"
)
_FLIGHT_PREFIXED = re.compile(
    r"\bflight\s+(?P<airline>[a-z]{2,3}|[a-z]\d|\d[a-z])\s?-?\s?(?P<number>\d{1,4})\b",
    re.IGNORECASE,
)
_SENTENCE_SPLIT = re.compile(r"[.!?\n]+")

_ARRIVAL_WORDS = (
    "arriving", "arrival", "arrives", "lands", "landing", "incoming", "inbound",
    "pick up", "pickup",
)
_DEPARTURE_WORDS = (
    "departing", "departure", "departs", "outbound", "outgoing", "leaving",
    "drop off", "dropoff", "drop-off",
)
# Proximity window (characters) for pairing a flight with an airport mention
_PROXIMITY_CHARS = 200


class FlightNumber(BaseModel):
    """A flight number found in free text."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Compact code, e.g. BA177")
    airline: str = Field(..., description="Airline designator")
    number: str = Field(..., description="Flight number digits")
    direction: FlightDirection | None = Field(default=None)
    position: int = Field(default=0, description="Offset of the match in the source text")


def _direction_of(text: str) -> FlightDirection | None:
    arrival = any(contains_phrase(text, word) for word in _ARRIVAL_WORDS)
    departure = any(contains_phrase(text, word) for word in _DEPARTURE_WORDS)
    if arrival and not departure:
        return FlightDirection.ARRIVAL
    if departure and not arrival:
        return FlightDirection.DEPARTURE
    return None


def extract_flight_numbers(text: str | None) -> list[FlightNumber]:
    """Find flight numbers in text, deduplicated, in order of appearance.

    Direction comes from the sentence the flight appears in and stays
    unset when the sentence says both or neither.
    """
    if not text:
        return []

    found: dict[str, FlightNumber] = {}
    for sentence_match in re.finditer(r"[^.!?\n]+", text):
        sentence = sentence_match.group(0)
        direction = _direction_of(sentence)
        for pattern in (_FLIGHT_PREFIXED, _FLIGHT_PATTERN):
            for match in pattern.finditer(sentence):
                airline = match.group("airline").upper()
                number = match.group("number")
                code = f"{airline}{number}"
                if code in found:
                    continue
                found[code] = FlightNumber(
                    code=code,
                    airline=airline,
                    number=number,
                    direction=direction,
                    position=sentence_match.start() + match.start(),
                )
    return sorted(found.values(), key=lambda flight: flight.position)


def flights_by_facility(notes: str | None, region: RegionConfig) -> dict[str, list[str]]:
    """Group flight codes by the airport mentioned in the same sentence.

    Sentences naming no known facility but mentioning an airport generically
    are grouped under "Airport".
    """
    result: dict[str, list[str]] = {}
    if not notes:
        return result

    for sentence in _SENTENCE_SPLIT.split(notes):
        facility = find_facility(sentence, region, "airport")
        if facility is not None:
            name = facility.name
        elif any(contains_phrase(sentence, token) for token in CLASS_TOKENS["airport"]):
            name = "Airport"
        else:
            continue
        for flight in extract_flight_numbers(sentence):
            codes = result.setdefault(name, [])
            if flight.code not in codes:
                codes.append(flight.code)
    return result


def _waypoint_direction(waypoint: Waypoint, index: int, count: int) -> FlightDirection | None:
    direction = _direction_of(f"{waypoint.name} {waypoint.purpose}")
    if direction is not None:
        return direction
    if index == 0:
        return FlightDirection.ARRIVAL
    if index == count - 1:
        return FlightDirection.DEPARTURE
    return None


def _closest_flight(
    waypoint: Waypoint,
    flights: Sequence[FlightNumber],
    notes: str,
    region: RegionConfig,
) -> FlightNumber | None:
    facility = find_facility(waypoint.address or waypoint.name, region, "airport")
    keywords = [facility.name, *facility.keywords] if facility else [waypoint.name]
    lowered = normalize_text(notes)
    positions = [lowered.find(normalize_text(keyword)) for keyword in keywords if keyword]
    positions = [position for position in positions if position >= 0]
    if not positions:
        return None

    best: FlightNumber | None = None
    best_distance = _PROXIMITY_CHARS
    for flight in flights:
        distance = min(abs(flight.position - position) for position in positions)
        if distance < best_distance:
            best, best_distance = flight, distance
    return best


def annotate_flights(
    waypoints: Sequence[Waypoint],
    notes: str | None,
    region: RegionConfig,
) -> list[Waypoint]:
    """Attach flight numbers from driver notes to airport waypoints.

    Waypoints that already carry a flight number are left alone. For the
    rest, in order: a flight in the waypoint's own purpose, a flight whose
    direction matches the waypoint's role, the only flight when there is a
    single airport stop, and finally the flight mentioned closest to the
    airport's name in the notes.
    """
    flights = extract_flight_numbers(notes)
    airport_indices = [
        index
        for index, waypoint in enumerate(waypoints)
        if is_airport(f"{waypoint.name} {waypoint.address}", region)
    ]

    result = list(waypoints)
    for index in airport_indices:
        waypoint = waypoints[index]
        if waypoint.flight_number:
            continue

        direction = _waypoint_direction(waypoint, index, len(waypoints))
        own = extract_flight_numbers(waypoint.purpose)
        chosen: FlightNumber | None = own[0] if own else None
        if chosen is None and direction is not None:
            chosen = next((f for f in flights if f.direction == direction), None)
        if chosen is None and len(flights) == 1 and len(airport_indices) == 1:
            chosen = flights[0]
        if chosen is None and flights and notes:
            chosen = _closest_flight(waypoint, flights, notes, region)
        if chosen is None:
            continue

        result[index] = waypoint.model_copy(
            update={
                "flight_number": chosen.code,
                "flight_direction": chosen.direction or direction,
            }
        )
    return result
