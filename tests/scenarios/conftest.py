"""Shared fixtures for scenario tests.

Layer 2 tests talk to a real booking service. They are deselected by default
(``-m "not live"``); run them with ``pytest -m live``. Point them at a local
instance with BOOKER_BASE_URL.
"""

from __future__ import annotations

import asyncio
import os
import subprocess
import sys
import time

import httpx
import pytest

from booker_scenarios.client import DEFAULT_BASE_URL, BookerClient
from booker_scenarios.payloads import BookingFactory
from booker_scenarios.policy import StepResult
from booker_scenarios.retry import RetryBudget
from booker_scenarios.shared.auth import resolve_credentials
from booker_scenarios.state import SessionState
from booker_scenarios.steps import Step, StepContext

BOOKER_BASE_URL = os.environ.get("BOOKER_BASE_URL", DEFAULT_BASE_URL)


# ---------------------------------------------------------------------------
# Health & Server Fixtures (Layer 2)
# ---------------------------------------------------------------------------


def wait_for_ping(url: str, timeout: int = 30) -> bool:
    """Wait for GET /ping to answer 201."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            response = httpx.get(f"{url}/ping", timeout=5)
            if response.status_code == 201:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(2)
    return False


@pytest.fixture(scope="module")
def booker_url() -> str:
    """Booking service URL. Skips Layer 2 tests if unreachable."""
    url = BOOKER_BASE_URL.rstrip("/")
    if not wait_for_ping(url, timeout=10):
        pytest.skip(f"Booking service not reachable at {url}")
    return url


@pytest.fixture(scope="module")
def session_state() -> SessionState:
    """State shared by the ordered steps of one module."""
    return SessionState()


@pytest.fixture(scope="module")
def run_live_step(booker_url: str, session_state: SessionState):
    """Run one step against the live service, sharing module state."""
    credentials = resolve_credentials()
    factory = BookingFactory()

    def _run(step: Step) -> StepResult:
        async def _go() -> StepResult:
            async with BookerClient(booker_url) as client:
                ctx = StepContext(
                    client=client,
                    state=session_state,
                    credentials=credentials,
                    budget=RetryBudget(retries=3, delay=1.0),
                    factory=factory,
                )
                return await step.func(ctx)

        return asyncio.run(_go())

    return _run


# ---------------------------------------------------------------------------
# CLI Fixture (Layer 1)
# ---------------------------------------------------------------------------


@pytest.fixture
def cli():
    """Run the booker CLI in a subprocess."""

    def _run(*args: str, check: bool = True, timeout: int = 120) -> subprocess.CompletedProcess:
        result = subprocess.run(
            [sys.executable, "-m", "booker_scenarios.main", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        if check and result.returncode != 0:
            raise AssertionError(
                f"booker {' '.join(args)} exited {result.returncode}: {result.stderr}"
            )
        return result

    return _run
