"""Shared test fixtures for booker-scenarios tests.

This module provides an in-process stand-in for the booking service:
- MockBooker: Simulates the restful-booker endpoints, including its instability
- FlakyTransport: httpx transport that injects connection failures
- booker_transport / booker_client: fixtures wiring the two into BookerClient
"""

import re
from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from booker_scenarios.client import BookerClient
from booker_scenarios.payloads import BookingFactory

MOCK_BASE_URL = "http://booker.test"
MOCK_TOKEN = "abc123def456"

# =============================================================================
# Mock booking service
# =============================================================================


def route_key(method: str, path: str) -> str:
    """Normalize a request to a route key such as 'GET /booking/{id}'."""
    template = re.sub(r"/\d+$", "/{id}", path)
    return f"{method.upper()} {template}"


def _seed_bookings() -> dict[int, dict[str, Any]]:
    return {
        1: {
            "firstname": "Sally",
            "lastname": "Brown",
            "totalprice": 111,
            "depositpaid": True,
            "bookingdates": {"checkin": "2025-01-01", "checkout": "2025-01-05"},
            "additionalneeds": "Breakfast",
        },
        2: {
            "firstname": "Jim",
            "lastname": "Wilson",
            "totalprice": 222,
            "depositpaid": False,
            "bookingdates": {"checkin": "2025-02-01", "checkout": "2025-02-03"},
        },
    }


@dataclass
class MockBookerState:
    """State for MockBooker to track requests and configure responses."""

    # Request tracking: (method, path, token cookie)
    requests: list[tuple[str, str, str | None]] = field(default_factory=list)

    bookings: dict[int, dict[str, Any]] = field(default_factory=_seed_bookings)
    next_id: int = 100

    username: str = "admin"
    password: str = "password123"
    token: str = MOCK_TOKEN

    # Behavior flags
    ping_status: int = 201
    unstable_status: int = 418
    # route key -> number of unstable responses before behaving (-1: always)
    unstable: dict[str, int] = field(default_factory=dict)
    # route key -> number of connection failures before behaving (-1: always)
    transport_failures: dict[str, int] = field(default_factory=dict)
    # fields replaced in the POST /booking echo (the stored booking is untouched)
    create_echo: dict[str, Any] = field(default_factory=dict)
    # raw body served with 200 by GET /booking/{id}
    read_body: str | None = None

    def calls(self, key: str) -> list[tuple[str, str, str | None]]:
        """Requests matching a route key."""
        return [r for r in self.requests if route_key(r[0], r[1]) == key]

    def consume(self, counters: dict[str, int], key: str) -> bool:
        """Decrement a failure counter; True if this request should fail."""
        remaining = counters.get(key, 0)
        if remaining == 0:
            return False
        if remaining > 0:
            counters[key] = remaining - 1
        return True


def create_mock_booker_app(state: MockBookerState) -> Any:
    """Create a FastAPI app that simulates the booking service endpoints."""
    from fastapi import FastAPI, Request, Response
    from fastapi.responses import JSONResponse, PlainTextResponse

    app = FastAPI()

    def track(request: Request) -> None:
        state.requests.append(
            (request.method, request.url.path, request.cookies.get("token"))
        )

    def unstable(request: Request) -> bool:
        return state.consume(state.unstable, route_key(request.method, request.url.path))

    def authorized(request: Request) -> bool:
        return request.cookies.get("token") == state.token

    @app.get("/ping")
    async def ping(request: Request) -> PlainTextResponse:
        track(request)
        return PlainTextResponse("Created", status_code=state.ping_status)

    @app.post("/auth")
    async def auth(request: Request) -> JSONResponse:
        track(request)
        body = await request.json()
        if body.get("username") == state.username and body.get("password") == state.password:
            return JSONResponse({"token": state.token})
        return JSONResponse({"reason": "Bad credentials"})

    @app.get("/booking")
    async def list_bookings(request: Request) -> JSONResponse:
        track(request)
        params = request.query_params
        ids = []
        for booking_id, booking in state.bookings.items():
            if "firstname" in params and booking["firstname"] != params["firstname"]:
                continue
            if "lastname" in params and booking["lastname"] != params["lastname"]:
                continue
            if "depositpaid" in params and str(booking["depositpaid"]).lower() != params[
                "depositpaid"
            ]:
                continue
            ids.append({"bookingid": booking_id})
        return JSONResponse(ids)

    @app.get("/booking/{booking_id}")
    async def get_booking(request: Request, booking_id: int) -> Response:
        track(request)
        if unstable(request):
            return PlainTextResponse("I'm a Teapot", status_code=state.unstable_status)
        if booking_id not in state.bookings:
            return PlainTextResponse("Not Found", status_code=404)
        if state.read_body is not None:
            return Response(state.read_body, media_type="application/json")
        return JSONResponse(state.bookings[booking_id])

    @app.post("/booking")
    async def create_booking(request: Request) -> Response:
        track(request)
        if unstable(request):
            return PlainTextResponse("I'm a Teapot", status_code=state.unstable_status)
        body = await request.json()
        booking_id = state.next_id
        state.next_id += 1
        state.bookings[booking_id] = body
        return JSONResponse({"bookingid": booking_id, "booking": {**body, **state.create_echo}})

    @app.put("/booking/{booking_id}")
    async def update_booking(request: Request, booking_id: int) -> Response:
        track(request)
        if not authorized(request):
            return PlainTextResponse("Forbidden", status_code=403)
        if booking_id not in state.bookings:
            return PlainTextResponse("Method Not Allowed", status_code=405)
        state.bookings[booking_id] = await request.json()
        return JSONResponse(state.bookings[booking_id])

    @app.patch("/booking/{booking_id}")
    async def patch_booking(request: Request, booking_id: int) -> Response:
        track(request)
        if not authorized(request):
            return PlainTextResponse("Forbidden", status_code=403)
        if booking_id not in state.bookings:
            return PlainTextResponse("Method Not Allowed", status_code=405)
        state.bookings[booking_id].update(await request.json())
        return JSONResponse(state.bookings[booking_id])

    @app.delete("/booking/{booking_id}")
    async def delete_booking(request: Request, booking_id: int) -> PlainTextResponse:
        track(request)
        if not authorized(request):
            return PlainTextResponse("Forbidden", status_code=403)
        if booking_id not in state.bookings:
            return PlainTextResponse("Method Not Allowed", status_code=405)
        del state.bookings[booking_id]
        return PlainTextResponse("Created", status_code=201)

    return app


class FlakyTransport(httpx.AsyncBaseTransport):
    """Wrap a transport and raise ConnectError for configured routes."""

    def __init__(self, inner: httpx.AsyncBaseTransport, state: MockBookerState):
        self.inner = inner
        self.state = state

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        key = route_key(request.method, request.url.path)
        if self.state.consume(self.state.transport_failures, key):
            self.state.requests.append((request.method, request.url.path, None))
            raise httpx.ConnectError("Connection refused", request=request)
        return await self.inner.handle_async_request(request)

    async def aclose(self) -> None:
        await self.inner.aclose()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def mock_booker_state() -> MockBookerState:
    """Fixture providing MockBooker state for configuration."""
    return MockBookerState()


@pytest.fixture
def booker_transport(mock_booker_state: MockBookerState) -> httpx.AsyncBaseTransport:
    """In-process transport to the mock booking service (no real network)."""
    app = create_mock_booker_app(mock_booker_state)
    return FlakyTransport(httpx.ASGITransport(app=app), mock_booker_state)


@pytest.fixture
async def booker_client(
    booker_transport: httpx.AsyncBaseTransport,
) -> AsyncGenerator[BookerClient, None]:
    """Open BookerClient connected to the mock booking service."""
    async with BookerClient(MOCK_BASE_URL, transport=booker_transport) as client:
        yield client


@pytest.fixture
def booking_factory() -> BookingFactory:
    """Seeded payload factory for reproducible bookings."""
    return BookingFactory(seed=1234)
