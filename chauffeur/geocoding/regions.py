"""Region lookup over the configured region table.

Regions carry the bias string sent with every lookup, the city-centre
box vague geocodes collapse into, and the named facilities whose
reference points anchor the consistency checks.
"""

from chauffeur.config.models import FacilityConfig, GeocodingConfig, RegionConfig
from chauffeur.config.models.geocoding import FacilityClass
from chauffeur.itinerary.text import contains_phrase, normalize_text

# Generic tokens that put an address in a facility class without naming
# a specific facility.
CLASS_TOKENS: dict[str, tuple[str, ...]] = {
    "airport": ("airport", "terminal", "arrivals", "departures", "aeroport", "aéroport"),
    "station": ("station", "railway station", "train station", "gare", "bahnhof"),
    "port": ("port", "harbour", "harbor", "cruise terminal", "ferry terminal"),
    "venue": ("stadium", "arena", "exhibition centre", "convention center"),
}


def resolve_region(destination: str | None, config: GeocodingConfig) -> RegionConfig:
    """Resolve a trip destination to its region.

    Falls back to the configured default region (and then to the first
    region in the table) when the destination is empty or unknown.

    Raises:
        ValueError: If the region table is empty
    """
    if not config.regions:
        raise ValueError("geocoding region table is empty")

    text = normalize_text(destination)
    if text:
        for region in config.regions:
            for name in region.names or [region.key]:
                if normalize_text(name) == text or contains_phrase(text, name):
                    return region

    for region in config.regions:
        if region.key == config.default_region:
            return region
    return config.regions[0]


def find_facility(
    text: str | None,
    region: RegionConfig,
    facility_class: FacilityClass | None = None,
) -> FacilityConfig | None:
    """Find the facility an address names, by whole-word keyword.

    When several facilities match, the one with the longest matching
    keyword wins ("london city airport" beats "london").
    """
    best: FacilityConfig | None = None
    best_length = 0
    for facility in region.facilities:
        if facility_class is not None and facility.facility_class != facility_class:
            continue
        for keyword in [facility.name, *facility.keywords]:
            if len(keyword) > best_length and contains_phrase(text, keyword):
                best = facility
                best_length = len(keyword)
    return best


def facility_class_of(text: str | None, region: RegionConfig) -> FacilityClass | None:
    """Classify an address by the facility class it mentions, if any."""
    facility = find_facility(text, region)
    if facility is not None:
        return facility.facility_class
    for facility_class, tokens in CLASS_TOKENS.items():
        if any(contains_phrase(text, token) for token in tokens):
            return facility_class  # type: ignore[return-value]
    return None


def is_airport(text: str | None, region: RegionConfig) -> bool:
    """Check whether an address refers to an airport."""
    return facility_class_of(text, region) == "airport"
