"""
Tests for session offering validation rules
"""

from datetime import date

import pytest

from katha.forms import SessionDraft
from katha.models import SessionOffering
from katha.validation import (
    validate,
    REQUIRED_FIELDS_MESSAGE,
    PRICE_MESSAGE,
    DURATION_MESSAGE,
    PAST_DATE_MESSAGE,
)

TODAY = date(2025, 1, 15)


def make_draft(**overrides) -> SessionDraft:
    values = {"title": "Discovery Call", "duration": "60", "price": "100"}
    values.update(overrides)
    return SessionDraft(**values)


class TestRequiredFields:
    """Tests for the required-fields rule"""

    @pytest.mark.parametrize("field", ["title", "duration", "price"])
    def test_missing_required_field_fails(self, field):
        """Test each required field blocks validation when blank"""
        result = validate(make_draft(**{field: ""}), today=TODAY)
        assert not result.valid
        assert result.first_error == REQUIRED_FIELDS_MESSAGE

    def test_whitespace_title_counts_as_missing(self):
        """Test a title of only spaces is treated as missing"""
        result = validate(make_draft(title="   "), today=TODAY)
        assert result.first_error == REQUIRED_FIELDS_MESSAGE

    def test_missing_fields_reported_before_invalid_price(self):
        """Test first-error-wins: missing title beats a bad price"""
        result = validate(make_draft(title="", price="105"), today=TODAY)
        assert result.first_error == REQUIRED_FIELDS_MESSAGE

    def test_mapping_with_missing_keys(self):
        """Test a mapping without the required keys fails"""
        result = validate({"description": "only a description"}, today=TODAY)
        assert result.first_error == REQUIRED_FIELDS_MESSAGE


class TestPriceRule:
    """Tests for the multiple-of-10 price rule"""

    @pytest.mark.parametrize("price", ["100", "10", "1000", 100, "100.0"])
    def test_valid_prices(self, price):
        assert validate(make_draft(price=price), today=TODAY).valid

    @pytest.mark.parametrize("price", ["105", "0", "-10", "abc", "99.5", 5])
    def test_invalid_prices(self, price):
        result = validate(make_draft(price=price), today=TODAY)
        assert not result.valid
        assert result.first_error == PRICE_MESSAGE

    def test_price_checked_before_duration(self):
        """Test an invalid price is reported even when duration is also invalid"""
        result = validate(make_draft(price="105", duration="45"), today=TODAY)
        assert result.first_error == PRICE_MESSAGE


class TestDurationRule:
    """Tests for the multiple-of-30 duration rule"""

    @pytest.mark.parametrize("duration", ["30", "60", "90", "120"])
    def test_valid_durations(self, duration):
        assert validate(make_draft(duration=duration), today=TODAY).valid

    @pytest.mark.parametrize("duration", ["45", "0", "-30", "sixty", "60.5"])
    def test_invalid_durations(self, duration):
        result = validate(make_draft(duration=duration), today=TODAY)
        assert not result.valid
        assert result.first_error == DURATION_MESSAGE


class TestPastDateRule:
    """Tests for the default-date rule"""

    def test_yesterday_fails(self):
        result = validate(make_draft(default_date="2025-01-14"), today=TODAY)
        assert not result.valid
        assert result.first_error == PAST_DATE_MESSAGE

    def test_today_passes(self):
        assert validate(make_draft(default_date="2025-01-15"), today=TODAY).valid

    def test_future_passes(self):
        assert validate(make_draft(default_date="2026-03-01"), today=TODAY).valid

    def test_absent_date_passes(self):
        assert validate(make_draft(default_date=""), today=TODAY).valid

    def test_defaults_to_real_today(self):
        """Test today is taken from the clock when not given"""
        assert not validate(make_draft(default_date="2000-01-01")).valid


class TestCandidateShapes:
    """Tests for the candidate types validate() accepts"""

    def test_wire_mapping(self):
        candidate = {"title": "Coaching", "duration": 60, "price": 150.0, "defaultDate": "2025-01-10"}
        result = validate(candidate, today=TODAY)
        assert result.first_error == PAST_DATE_MESSAGE

    def test_duration_minutes_alias(self):
        candidate = {"title": "Coaching", "durationMinutes": 45, "price": 150}
        assert validate(candidate, today=TODAY).first_error == DURATION_MESSAGE

    def test_session_offering(self):
        offering = SessionOffering(id="x", title="Coaching", duration_minutes=60, price=120)
        assert validate(offering, today=TODAY).valid

    def test_no_meeting_link_check(self):
        """Test meeting links are not validated"""
        assert validate(make_draft(meeting_link="not a url"), today=TODAY).valid

    def test_date_without_time_passes(self):
        """Test date and time are not required to be paired"""
        assert validate(make_draft(default_date="2025-02-01", default_time=""), today=TODAY).valid
