"""Request payloads for the booking scenario."""

from typing import Any

from faker import Faker

NEW_BOOKING_DATES = {"checkin": "2025-12-01", "checkout": "2025-12-10"}

UPDATED_BOOKING: dict[str, Any] = {
    "firstname": "João",
    "lastname": "Silva",
    "totalprice": 500,
    "depositpaid": False,
    "bookingdates": {"checkin": "2025-11-15", "checkout": "2025-11-20"},
    "additionalneeds": "Lunch",
}

PARTIAL_UPDATE: dict[str, Any] = {
    "firstname": "Maria",
    "additionalneeds": "Late checkout",
}

NAME_FILTER = {"firstname": "Maria"}
DEPOSIT_FILTER = {"depositpaid": False}


class BookingFactory:
    """Generate random booking payloads."""

    def __init__(self, seed: int | None = None, locale: str | None = None):
        self.faker = Faker(locale)
        if seed is not None:
            self.faker.seed_instance(seed)

    def new_booking(self) -> dict[str, Any]:
        """Random guest and price with fixed dates and needs."""
        return {
            "firstname": self.faker.first_name(),
            "lastname": self.faker.last_name(),
            "totalprice": self.faker.random_int(min=100, max=1000),
            "depositpaid": True,
            "bookingdates": dict(NEW_BOOKING_DATES),
            "additionalneeds": "Breakfast",
        }


def updated_booking() -> dict[str, Any]:
    """Full replacement payload for the PUT step."""
    return {**UPDATED_BOOKING, "bookingdates": dict(UPDATED_BOOKING["bookingdates"])}


def partial_update() -> dict[str, Any]:
    """Partial payload for the PATCH step."""
    return dict(PARTIAL_UPDATE)
