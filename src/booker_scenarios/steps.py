"""Scenario steps against the booking service.

Each step is a coroutine taking a ``StepContext`` and returning a
``StepResult``. Load-bearing steps raise ``BookerError`` subclasses on any
mismatch; the runner records those as failures. The read and create steps
degrade instead: tolerated statuses and transport failures are recorded and
the run continues with the state established so far.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from .client import BookerClient, response_json
from .errors import BookerClientError, PreconditionError, StepAssertionError
from .payloads import (
    DEPOSIT_FILTER,
    NAME_FILTER,
    BookingFactory,
    partial_update,
    updated_booking,
)
from .policy import (
    DEFAULT_TOLERATED_STATUSES,
    Disposition,
    StatusPolicy,
    StepOutcome,
    StepResult,
)
from .retry import RetryBudget, call_with_retry
from .schemas import (
    ARRAY_SCHEMA,
    BOOKING_ID_SCHEMA,
    BOOKING_SCHEMA,
    CREATED_BOOKING_SCHEMA,
    NON_EMPTY_ARRAY_SCHEMA,
    validate_body,
)
from .shared.auth import mask_token
from .shared.logging import get_logger
from .state import SessionState

logger = get_logger(__name__)


@dataclass
class StepContext:
    """Everything a step needs: client, session state and run settings."""

    client: BookerClient
    state: SessionState
    credentials: dict[str, str]
    tolerated: tuple[int, ...] = DEFAULT_TOLERATED_STATUSES
    budget: RetryBudget = field(default_factory=RetryBudget)
    factory: BookingFactory = field(default_factory=BookingFactory)

    def policy(self, *expected: int, degradable: bool = False) -> StatusPolicy:
        """Status policy for a step; degradable steps retry then tolerate."""
        if degradable:
            return StatusPolicy.build(expected, self.tolerated, retry_tolerated=True)
        return StatusPolicy.build(expected)


StepFunc = Callable[[StepContext], Awaitable[StepResult]]


@dataclass(frozen=True)
class Step:
    """A named step in the scenario plan."""

    name: str
    func: StepFunc
    description: str
    degradable: bool = False


# -----------------------------------------------------------------------------
# Assertion helpers
# -----------------------------------------------------------------------------


def expect_status(response: httpx.Response, policy: StatusPolicy, what: str) -> None:
    """Raise StepAssertionError unless the status passes the policy."""
    if policy.classify(response.status_code) is not Disposition.PASS:
        raise StepAssertionError(
            message=(
                f"{what}: expected HTTP {'/'.join(map(str, policy.expected))}, "
                f"got {response.status_code}"
            ),
            status_code=response.status_code,
            data={"body": response.text[:200]},
        )


def expect_fields(body: Any, expected: dict[str, Any], what: str, status_code: int) -> None:
    """Raise StepAssertionError unless ``body`` echoes every expected field."""
    if not isinstance(body, dict):
        raise StepAssertionError(
            message=f"{what}: expected a JSON object, got {type(body).__name__}",
            status_code=status_code,
        )
    mismatches = {
        key: body.get(key) for key, value in expected.items() if body.get(key) != value
    }
    if mismatches:
        raise StepAssertionError(
            message=f"{what}: fields not updated: {mismatches}",
            status_code=status_code,
            data={"expected": expected, "actual": mismatches},
        )


def _passed(name: str, response: httpx.Response, detail: str = "", attempts: int = 1) -> StepResult:
    return StepResult(
        name=name,
        outcome=StepOutcome.PASSED,
        status_code=response.status_code,
        attempts=attempts,
        detail=detail,
    )


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------


async def ping(ctx: StepContext) -> StepResult:
    response = await ctx.client.ping()
    expect_status(response, ctx.policy(201), "GET /ping")
    return _passed("ping", response, "service is up")


async def authenticate(ctx: StepContext) -> StepResult:
    """POST credentials and store the returned token."""
    response = await ctx.client.authenticate(**ctx.credentials)
    expect_status(response, ctx.policy(200), "POST /auth")

    body = response_json(response)
    token = body.get("token") if isinstance(body, dict) else None
    if not token:
        # Wrong credentials still answer 200, with {"reason": "Bad credentials"}
        reason = body.get("reason") if isinstance(body, dict) else None
        raise StepAssertionError(
            message=f"POST /auth returned no token ({reason or 'empty body'})",
            status_code=response.status_code,
        )

    ctx.state.auth_token = token
    return _passed("auth", response, f"token {mask_token(token)}")


async def discover_booking(ctx: StepContext) -> StepResult:
    """Pick the first existing booking as the working ID."""
    response = await ctx.client.list_bookings()
    expect_status(response, ctx.policy(200), "GET /booking")

    body = response_json(response)
    validate_body(body, NON_EMPTY_ARRAY_SCHEMA, "Booking list", response.status_code)
    validate_body(body[0], BOOKING_ID_SCHEMA, "First booking entry", response.status_code)

    booking_id = body[0]["bookingid"]
    ctx.state.active_booking_id = booking_id
    return _passed("discover", response, f"booking {booking_id} of {len(body)}")


async def read_booking(ctx: StepContext) -> StepResult:
    """Read the working booking, tolerating service instability."""
    booking_id = ctx.state.require_working_id()
    policy = ctx.policy(200, degradable=True)

    attempt = await call_with_retry(
        lambda: ctx.client.get_booking(booking_id), policy, ctx.budget, step="read"
    )
    if attempt.error is not None:
        return _degraded("read", attempt.error, attempt.attempts)

    response = attempt.response
    if policy.classify(response.status_code) is Disposition.TOLERATE:
        return _tolerated("read", response, attempt.attempts, f"booking {booking_id}")

    try:
        expect_status(response, policy, f"GET /booking/{booking_id}")
        body = response_json(response)
        validate_body(body, BOOKING_SCHEMA, f"Booking {booking_id}", response.status_code)
    except (StepAssertionError, BookerClientError) as e:
        return _degraded("read", e, attempt.attempts, status_code=response.status_code)

    return _passed(
        "read",
        response,
        f"booking {booking_id}: {body['firstname']} {body['lastname']}",
        attempts=attempt.attempts,
    )


async def create_booking(ctx: StepContext) -> StepResult:
    """Create a booking; on instability keep working with the discovered one."""
    payload = ctx.factory.new_booking()
    policy = ctx.policy(200, degradable=True)

    attempt = await call_with_retry(
        lambda: ctx.client.create_booking(payload), policy, ctx.budget, step="create"
    )
    response = attempt.response
    result: StepResult

    if attempt.error is not None:
        result = _degraded("create", attempt.error, attempt.attempts)
    elif policy.classify(response.status_code) is Disposition.TOLERATE:
        result = _tolerated("create", response, attempt.attempts, "keeping existing booking")
    else:
        try:
            expect_status(response, policy, "POST /booking")
            body = response_json(response)
            validate_body(body, BOOKING_ID_SCHEMA, "Created booking", response.status_code)
            # The booking exists server-side from here on, even if the echo is wrong
            ctx.state.promote_created(body["bookingid"])
            validate_body(body, CREATED_BOOKING_SCHEMA, "Created booking", response.status_code)
            expect_fields(
                body["booking"],
                {"firstname": payload["firstname"], "lastname": payload["lastname"]},
                "POST /booking",
                response.status_code,
            )
        except (StepAssertionError, BookerClientError) as e:
            result = _degraded("create", e, attempt.attempts, status_code=response.status_code)
        else:
            result = _passed(
                "create",
                response,
                f"created booking {body['bookingid']}",
                attempts=attempt.attempts,
            )

    # Whatever happened above, later steps need a booking to work on
    try:
        ctx.state.require_working_id()
    except PreconditionError as e:
        e.data["attempts"] = attempt.attempts
        raise
    return result


async def update_booking(ctx: StepContext) -> StepResult:
    """Replace every field of the working booking."""
    token = ctx.state.require_token()
    booking_id = ctx.state.require_working_id()
    payload = updated_booking()

    response = await ctx.client.update_booking(booking_id, payload, token)
    expect_status(response, ctx.policy(200), f"PUT /booking/{booking_id}")
    expect_fields(
        response_json(response),
        {"firstname": payload["firstname"], "lastname": payload["lastname"]},
        f"PUT /booking/{booking_id}",
        response.status_code,
    )
    return _passed("update", response, f"booking {booking_id}")


async def patch_booking(ctx: StepContext) -> StepResult:
    """Update a subset of fields of the working booking."""
    token = ctx.state.require_token()
    booking_id = ctx.state.require_working_id()
    fields = partial_update()

    response = await ctx.client.patch_booking(booking_id, fields, token)
    expect_status(response, ctx.policy(200), f"PATCH /booking/{booking_id}")
    expect_fields(
        response_json(response),
        {"firstname": fields["firstname"]},
        f"PATCH /booking/{booking_id}",
        response.status_code,
    )
    return _passed("patch", response, f"booking {booking_id}")


async def _search(ctx: StepContext, name: str, filters: dict[str, Any]) -> StepResult:
    response = await ctx.client.list_bookings(**filters)
    query = "&".join(f"{key}={value}" for key, value in filters.items())
    expect_status(response, ctx.policy(200), f"GET /booking?{query}")
    body = response_json(response)
    validate_body(body, ARRAY_SCHEMA, "Search result", response.status_code)
    return _passed(name, response, f"{len(body)} matches")


async def search_by_name(ctx: StepContext) -> StepResult:
    return await _search(ctx, "search_by_name", NAME_FILTER)


async def search_by_flag(ctx: StepContext) -> StepResult:
    return await _search(ctx, "search_by_flag", DEPOSIT_FILTER)


async def delete_booking(ctx: StepContext) -> StepResult:
    """Delete the created booking, or the discovered one if none was created."""
    token = ctx.state.require_token()
    booking_id = ctx.state.require_working_id()
    created = ctx.state.created_booking_id is not None

    response = await ctx.client.delete_booking(booking_id, token)
    expect_status(response, ctx.policy(201), f"DELETE /booking/{booking_id}")
    kind = "created" if created else "existing"
    return _passed("delete", response, f"deleted {kind} booking {booking_id}")


def _tolerated(name: str, response: httpx.Response, attempts: int, detail: str) -> StepResult:
    logger.warning(
        "step_tolerated", step=name, status_code=response.status_code, attempts=attempts
    )
    return StepResult(
        name=name,
        outcome=StepOutcome.TOLERATED,
        status_code=response.status_code,
        attempts=attempts,
        detail=f"HTTP {response.status_code} tolerated; {detail}",
    )


def _degraded(
    name: str,
    error: Exception,
    attempts: int,
    status_code: int | None = None,
) -> StepResult:
    logger.warning("step_degraded", step=name, error=str(error), attempts=attempts)
    return StepResult(
        name=name,
        outcome=StepOutcome.DEGRADED,
        status_code=status_code,
        attempts=attempts,
        detail=str(error),
    )


DEFAULT_STEPS: list[Step] = [
    Step("ping", ping, "Health check GET /ping"),
    Step("auth", authenticate, "Obtain a token from POST /auth"),
    Step("discover", discover_booking, "Pick an existing booking ID"),
    Step("read", read_booking, "Read the working booking", degradable=True),
    Step("create", create_booking, "Create a booking with generated data", degradable=True),
    Step("update", update_booking, "Full update with PUT"),
    Step("patch", patch_booking, "Partial update with PATCH"),
    Step("search_by_name", search_by_name, "Filter bookings by firstname"),
    Step("search_by_flag", search_by_flag, "Filter bookings by depositpaid"),
    Step("delete", delete_booking, "Delete the created or discovered booking"),
]

STEP_NAMES = [step.name for step in DEFAULT_STEPS]
