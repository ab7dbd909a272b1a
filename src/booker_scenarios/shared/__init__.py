"""Shared modules for booker-scenarios.

This module provides functionality used by both the runner and the CLI:
- Authentication helpers (credentials, cookie token headers)
- Logging configuration
"""

from .auth import mask_token, resolve_credentials, token_headers
from .logging import configure_logging, get_logger, level_for_verbosity

__all__ = [
    # Auth
    "resolve_credentials",
    "token_headers",
    "mask_token",
    # Logging
    "configure_logging",
    "get_logger",
    "level_for_verbosity",
]
