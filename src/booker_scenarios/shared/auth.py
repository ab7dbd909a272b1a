"""Authentication helpers for booker-scenarios.

The booking service issues an opaque token from POST /auth and expects it back
as a ``token`` cookie on every write request. Tokens are never persisted; they
live only in the session state of a single run.
"""

import os

DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "password123"


def resolve_credentials(
    username: str | None = None,
    password: str | None = None,
) -> dict[str, str]:
    """Resolve login credentials from: explicit args > env vars > demo defaults.

    Priority order:
    1. Explicit arguments (config file or CLI)
    2. Environment variables BOOKER_USERNAME / BOOKER_PASSWORD
    3. The public demo account of the booking service

    Args:
        username: Username passed explicitly
        password: Password passed explicitly

    Returns:
        Request body for POST /auth
    """
    return {
        "username": username or os.environ.get("BOOKER_USERNAME") or DEFAULT_USERNAME,
        "password": password or os.environ.get("BOOKER_PASSWORD") or DEFAULT_PASSWORD,
    }


def token_headers(token: str | None) -> dict[str, str]:
    """Build the cookie header dict for authenticated requests.

    Args:
        token: Token returned by POST /auth

    Returns:
        Dict with Cookie header, or empty dict if no token
    """
    if token:
        return {"Cookie": f"token={token}"}
    return {}


def mask_token(token: str | None) -> str:
    """Shorten a token for log output."""
    if not token:
        return "<none>"
    if len(token) <= 4:
        return "****"
    return f"{token[:4]}****"
