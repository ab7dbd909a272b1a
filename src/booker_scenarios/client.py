"""HTTP client for the restful-booker REST API.

This module provides the async HTTP client the scenario steps drive. It returns
raw ``httpx.Response`` objects: deciding whether a status is acceptable is the
job of the step policy, not the client.
"""

from typing import Any

import httpx

from .errors import BookerClientError, map_transport_error
from .shared.auth import token_headers
from .shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://restful-booker.herokuapp.com"


class BookerClient:
    """Async HTTP client for the booking service.

    Use as an async context manager; one client is shared by every step of a run.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: Service URL (e.g., https://restful-booker.herokuapp.com)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (ASGI or mock transport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BookerClient":
        """Enter async context."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure client is initialized."""
        if not self._client:
            raise BookerClientError(
                message="Client not initialized. Use 'async with' context.",
                retryable=False,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make HTTP request to the service.

        Args:
            method: HTTP method
            path: API path (e.g., /booking/1)
            json: JSON body for POST/PUT/PATCH
            params: Query parameters
            headers: Extra headers (auth cookie, Accept)

        Returns:
            The response, whatever its status code

        Raises:
            BookerClientError: On connection errors and timeouts
        """
        client = self._ensure_client()
        try:
            response = await client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.TransportError as e:
            raise map_transport_error(e, f"{self.base_url}{path}") from e

        logger.debug(
            "http_response",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return response

    @staticmethod
    def _write_headers(token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        headers.update(token_headers(token))
        return headers

    # -------------------------------------------------------------------------
    # Health & auth
    # -------------------------------------------------------------------------

    async def ping(self) -> httpx.Response:
        """Check liveness via GET /ping (201 when healthy)."""
        return await self._request("GET", "/ping")

    async def authenticate(self, username: str, password: str) -> httpx.Response:
        """Request a token via POST /auth.

        Args:
            username: Account name
            password: Account password

        Returns:
            Response whose body carries ``token`` on success
        """
        return await self._request(
            "POST", "/auth", json={"username": username, "password": password}
        )

    # -------------------------------------------------------------------------
    # Bookings
    # -------------------------------------------------------------------------

    async def list_bookings(self, **filters: Any) -> httpx.Response:
        """List booking IDs, optionally filtered.

        Args:
            **filters: Query filters (firstname, lastname, checkin, checkout,
                depositpaid). Booleans are sent as lowercase strings.

        Returns:
            Response with a JSON array of ``{"bookingid": int}``
        """
        params: dict[str, Any] = {}
        for key, value in filters.items():
            if value is None:
                continue
            params[key] = str(value).lower() if isinstance(value, bool) else value
        return await self._request("GET", "/booking", params=params or None)

    async def get_booking(self, booking_id: int) -> httpx.Response:
        """Get booking details via GET /booking/{id}."""
        return await self._request(
            "GET", f"/booking/{booking_id}", headers={"Accept": "application/json"}
        )

    async def create_booking(self, booking: dict[str, Any]) -> httpx.Response:
        """Create a booking via POST /booking.

        Returns:
            Response with ``{"bookingid": int, "booking": {...}}`` on success
        """
        return await self._request(
            "POST", "/booking", json=booking, headers={"Accept": "application/json"}
        )

    async def update_booking(
        self, booking_id: int, booking: dict[str, Any], token: str | None
    ) -> httpx.Response:
        """Replace a booking via PUT /booking/{id} (cookie token auth)."""
        return await self._request(
            "PUT",
            f"/booking/{booking_id}",
            json=booking,
            headers=self._write_headers(token),
        )

    async def patch_booking(
        self, booking_id: int, fields: dict[str, Any], token: str | None
    ) -> httpx.Response:
        """Update some booking fields via PATCH /booking/{id} (cookie token auth)."""
        return await self._request(
            "PATCH",
            f"/booking/{booking_id}",
            json=fields,
            headers=self._write_headers(token),
        )

    async def delete_booking(self, booking_id: int, token: str | None) -> httpx.Response:
        """Delete a booking via DELETE /booking/{id} (201 on success)."""
        return await self._request(
            "DELETE", f"/booking/{booking_id}", headers=token_headers(token)
        )


def response_json(response: httpx.Response) -> Any:
    """Decode a response body as JSON.

    Raises:
        BookerClientError: If the body is not valid JSON (not retryable)
    """
    try:
        return response.json()
    except ValueError as e:
        snippet = response.text[:200]
        raise BookerClientError(
            message=f"Invalid JSON in response (HTTP {response.status_code}): {snippet}",
            retryable=False,
            data={"status_code": response.status_code},
        ) from e
