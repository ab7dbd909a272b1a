"""JSON schemas for booking service responses."""

from typing import Any

from jsonschema import Draft7Validator

from .errors import StepAssertionError

BOOKING_DATES_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "checkin": {"type": "string"},
        "checkout": {"type": "string"},
    },
    "required": ["checkin", "checkout"],
}

BOOKING_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "firstname": {"type": "string"},
        "lastname": {"type": "string"},
        "totalprice": {"type": "integer"},
        "depositpaid": {"type": "boolean"},
        "bookingdates": BOOKING_DATES_SCHEMA,
        "additionalneeds": {"type": "string"},
    },
    "required": ["firstname", "lastname", "totalprice", "depositpaid", "bookingdates"],
}

BOOKING_ID_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"bookingid": {"type": "integer"}},
    "required": ["bookingid"],
}

CREATED_BOOKING_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "bookingid": {"type": "integer"},
        "booking": BOOKING_SCHEMA,
    },
    "required": ["bookingid", "booking"],
}

# Search results come from a shared dataset, so only the shape is checked.
ARRAY_SCHEMA: dict[str, Any] = {"type": "array"}

NON_EMPTY_ARRAY_SCHEMA: dict[str, Any] = {"type": "array", "minItems": 1}


def schema_errors(instance: Any, schema: dict[str, Any]) -> list[str]:
    """Return human-readable validation errors, empty when valid."""
    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    messages = []
    for error in errors:
        location = "/".join(str(p) for p in error.path)
        messages.append(f"{location}: {error.message}" if location else error.message)
    return messages


def validate_body(
    instance: Any,
    schema: dict[str, Any],
    what: str,
    status_code: int | None = None,
) -> None:
    """Validate a response body against a schema.

    Raises:
        StepAssertionError: Listing every validation error
    """
    errors = schema_errors(instance, schema)
    if errors:
        raise StepAssertionError(
            message=f"{what} does not match schema: {'; '.join(errors)}",
            status_code=status_code,
            data={"errors": errors},
        )
