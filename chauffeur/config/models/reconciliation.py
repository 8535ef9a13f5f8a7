"""Reconciliation policy configuration."""

from pydantic import BaseModel, Field


class ReconciliationConfig(BaseModel):
    """Knobs for the itinerary merge pass.

    Defaults reproduce the conservative policy: unmentioned data is
    preserved and protected endpoints need keyword evidence.
    """

    min_waypoints: int = Field(
        default=2,
        ge=2,
        description="Refuse to publish a trip with fewer waypoints than this",
    )
    ignore_default_noon_time: bool = Field(
        default=True,
        description="Treat a proposed noon time as the extractor's default when a time exists",
    )
    default_noon_time: str = Field(
        default="12:00",
        description="Time value the extractor emits when no time was mentioned",
    )
    append_before_dropoff: bool = Field(
        default=False,
        description="Place unanchored additions before the dropoff instead of after it",
    )
    min_removal_keyword_length: int = Field(
        default=3,
        ge=1,
        description="Removal keywords shorter than this are ignored",
    )
    reject_past_dates: bool = Field(
        default=True,
        description="Treat a proposed trip date earlier than today as not mentioned",
    )
    parse_anchor_from_purpose: bool = Field(
        default=True,
        description="Derive insertAfter/insertBefore from 'after X'/'before X' in purpose",
    )
    repair_unchanged_waypoints: bool = Field(
        default=False,
        description="Also re-geocode inconsistent waypoints the update does not touch",
    )
