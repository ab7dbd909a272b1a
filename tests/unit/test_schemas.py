"""Unit tests for response schemas."""

import pytest

from booker_scenarios.errors import StepAssertionError
from booker_scenarios.schemas import (
    BOOKING_SCHEMA,
    CREATED_BOOKING_SCHEMA,
    NON_EMPTY_ARRAY_SCHEMA,
    schema_errors,
    validate_body,
)

VALID_BOOKING = {
    "firstname": "Sally",
    "lastname": "Brown",
    "totalprice": 111,
    "depositpaid": True,
    "bookingdates": {"checkin": "2025-01-01", "checkout": "2025-01-05"},
}


class TestSchemaErrors:
    """Tests for schema_errors."""

    def test_valid_booking(self):
        assert schema_errors(VALID_BOOKING, BOOKING_SCHEMA) == []

    def test_additional_needs_optional(self):
        """Bookings without additionalneeds are valid."""
        assert "additionalneeds" not in VALID_BOOKING
        assert schema_errors({**VALID_BOOKING, "additionalneeds": "Lunch"}, BOOKING_SCHEMA) == []

    def test_missing_field(self):
        booking = {k: v for k, v in VALID_BOOKING.items() if k != "lastname"}
        errors = schema_errors(booking, BOOKING_SCHEMA)
        assert len(errors) == 1
        assert "'lastname' is a required property" in errors[0]

    def test_nested_error_has_location(self):
        """Nested errors are prefixed with their path."""
        booking = {**VALID_BOOKING, "bookingdates": {"checkin": 20250101, "checkout": "x"}}
        errors = schema_errors(booking, BOOKING_SCHEMA)
        assert errors == ["bookingdates/checkin: 20250101 is not of type 'string'"]

    def test_price_must_be_integer(self):
        errors = schema_errors({**VALID_BOOKING, "totalprice": "111"}, BOOKING_SCHEMA)
        assert errors == ["totalprice: '111' is not of type 'integer'"]

    def test_created_booking(self):
        body = {"bookingid": 7, "booking": VALID_BOOKING}
        assert schema_errors(body, CREATED_BOOKING_SCHEMA) == []

    def test_empty_list_rejected(self):
        assert schema_errors([], NON_EMPTY_ARRAY_SCHEMA)
        assert schema_errors([{"bookingid": 1}], NON_EMPTY_ARRAY_SCHEMA) == []


class TestValidateBody:
    """Tests for validate_body."""

    def test_valid_body_passes(self):
        validate_body(VALID_BOOKING, BOOKING_SCHEMA, "Booking 1", 200)

    def test_invalid_body_raises(self):
        with pytest.raises(StepAssertionError, match="Booking 1 does not match schema") as exc_info:
            validate_body({"firstname": "Sally"}, BOOKING_SCHEMA, "Booking 1", 200)

        assert exc_info.value.status_code == 200
        assert len(exc_info.value.data["errors"]) == 4
