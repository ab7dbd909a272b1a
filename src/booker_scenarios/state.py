"""Session state threaded through the scenario steps."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .errors import PreconditionError


@dataclass
class SessionState:
    """Token and booking IDs established by earlier steps.

    ``active_booking_id`` comes from discovery, ``created_booking_id`` from a
    successful create. Once a booking was created, it is the working ID.
    """

    auth_token: str | None = None
    active_booking_id: int | None = None
    created_booking_id: int | None = None

    @property
    def working_id(self) -> int | None:
        """Booking ID targeted by read, update and delete steps."""
        if self.created_booking_id is not None:
            return self.created_booking_id
        return self.active_booking_id

    def promote_created(self, booking_id: int) -> None:
        """Record a newly created booking and make it the working ID."""
        self.created_booking_id = booking_id
        self.active_booking_id = booking_id

    def require_token(self) -> str:
        """Return the auth token or raise PreconditionError."""
        if not self.auth_token:
            raise PreconditionError(message="No auth token; the auth step did not succeed")
        return self.auth_token

    def require_working_id(self) -> int:
        """Return the working booking ID or raise PreconditionError."""
        booking_id = self.working_id
        if booking_id is None:
            raise PreconditionError(message="No booking ID to work with")
        return booking_id

    def snapshot(self) -> dict[str, Any]:
        """Copy of the state for reports (token masked)."""
        data = asdict(self)
        data["auth_token"] = "***" if self.auth_token else None
        data["working_id"] = self.working_id
        return data
