"""Unit tests for update text preprocessing and proposal checks."""

from datetime import date

from chauffeur.extraction.preprocessing import (
    UnchangedField,
    apply_unchanged_overrides,
    detect_unchanged_fields,
    strip_email_metadata,
    validate_update_date,
)
from chauffeur.itinerary.models import ExtractedUpdate

TODAY = date(2026, 10, 18)


class TestStripEmailMetadata:
    """Tests for strip_email_metadata."""

    def test_removes_headers_and_marker(self) -> None:
        """Forwarded headers and the command marker are dropped."""
        text = (
            "From: ops@agency.example\n"
            "To: dispatch@chauffeur.example\n"
            "Subject: Re: Smith booking\n"
            "Date: 3 Nov 2026 09:15\n"
            "\n"
            "Please add a stop at the Shard EXTRACT TRIP"
        )
        assert strip_email_metadata(text) == "Please add a stop at the Shard"

    def test_inline_date_keeps_content(self) -> None:
        """A Date: line with content after the timestamp keeps the content."""
        text = "Date: 3 Nov 2026 09:15 Change pickup to 7am"
        assert strip_email_metadata(text) == "Change pickup to 7am"

    def test_spanish_marker(self) -> None:
        """The Spanish command marker is removed too."""
        assert strip_email_metadata("Recogida a las 7 EXTRAER VIAJE") == "Recogida a las 7"

    def test_plain_text_untouched(self) -> None:
        """Text without metadata passes through."""
        text = "From the hotel, go to the museum"
        assert strip_email_metadata(text) == text


class TestDetectUnchangedFields:
    """Tests for detect_unchanged_fields."""

    def test_rest_same(self) -> None:
        """"rest same" declares every unmentioned field unchanged."""
        assert detect_unchanged_fields("Pickup now 7am, rest same") == {
            UnchangedField.VEHICLE,
            UnchangedField.PASSENGERS,
            UnchangedField.DATE,
        }

    def test_mentioned_field_still_changes(self) -> None:
        """A field the text talks about is not declared unchanged."""
        result = detect_unchanged_fields("Rest same, but the car is now a V-Class")
        assert UnchangedField.VEHICLE not in result
        assert UnchangedField.PASSENGERS in result

    def test_date_mention(self) -> None:
        """A date in the text keeps the date changeable."""
        result = detect_unchanged_fields("Moved to 5th Nov, everything else same")
        assert UnchangedField.DATE not in result

    def test_no_phrase(self) -> None:
        """Without a "same" phrase nothing is declared."""
        assert detect_unchanged_fields("Pickup now 7am") == set()


class TestApplyUnchangedOverrides:
    """Tests for apply_unchanged_overrides."""

    def test_nulls_hallucinated_fields(self) -> None:
        """Fields declared unchanged are dropped from the proposal."""
        update = ExtractedUpdate(
            vehicle_info="Range Rover",
            passenger_count=3,
            passenger_names=["Bob"],
            date="2026-11-04",
        )
        corrected, applied = apply_unchanged_overrides(update, "Pickup now 7am, rest same")

        assert corrected.vehicle_info is None
        assert corrected.passenger_count is None
        assert corrected.lead_passenger is None
        assert corrected.date is None
        assert applied == {
            UnchangedField.VEHICLE,
            UnchangedField.PASSENGERS,
            UnchangedField.DATE,
        }

    def test_nothing_to_override(self) -> None:
        """The same update object comes back when nothing applies."""
        update = ExtractedUpdate(vehicle_info="Range Rover")
        corrected, applied = apply_unchanged_overrides(update, "New car: Range Rover")
        assert corrected is update
        assert applied == set()


class TestValidateUpdateDate:
    """Tests for validate_update_date."""

    def test_future_date_kept(self) -> None:
        """A date from today on is kept."""
        update = ExtractedUpdate(date="2026-11-05")
        kept, problem = validate_update_date(update, TODAY)
        assert kept is update
        assert problem is None

    def test_today_kept(self) -> None:
        """Today itself is not in the past."""
        _, problem = validate_update_date(ExtractedUpdate(date="2026-10-18"), TODAY)
        assert problem is None

    def test_past_date_dropped(self) -> None:
        """A past date is treated as not mentioned."""
        checked, problem = validate_update_date(ExtractedUpdate(date="2026-10-01"), TODAY)
        assert checked.date is None
        assert problem is not None and "past" in problem

    def test_past_date_allowed_when_configured(self) -> None:
        """Past dates survive when rejection is off."""
        checked, problem = validate_update_date(
            ExtractedUpdate(date="2026-10-01"), TODAY, reject_past=False
        )
        assert checked.date == "2026-10-01"
        assert problem is None

    def test_unparsable_date_dropped(self) -> None:
        """Dates that are not YYYY-MM-DD are dropped."""
        checked, problem = validate_update_date(ExtractedUpdate(date="next Tuesday"), TODAY)
        assert checked.date is None
        assert problem is not None and "YYYY-MM-DD" in problem

    def test_no_date(self) -> None:
        """No date, no problem."""
        update = ExtractedUpdate()
        assert validate_update_date(update, TODAY) == (update, None)
