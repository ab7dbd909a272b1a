"""Scenario runner.

Runs the step plan strictly in order against one client, threading a single
SessionState through every step. A failing step is recorded and the run moves
on; later steps check their own preconditions.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from .client import BookerClient
from .config import SuiteConfig
from .errors import BookerError, PreconditionError
from .payloads import BookingFactory
from .policy import DEFAULT_TOLERATED_STATUSES, StepOutcome, StepResult
from .retry import RetryBudget
from .shared.auth import resolve_credentials
from .shared.logging import get_logger
from .state import SessionState
from .steps import DEFAULT_STEPS, Step, StepContext

logger = get_logger(__name__)


@dataclass
class ScenarioReport:
    """Ordered step results of one run plus the final session state."""

    base_url: str
    results: list[StepResult] = field(default_factory=list)
    state: dict[str, Any] = field(default_factory=dict)
    elapsed_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        """True when no step failed."""
        return all(result.ok for result in self.results)

    def get(self, name: str) -> StepResult | None:
        return next((r for r in self.results if r.name == name), None)

    def counts(self) -> dict[str, int]:
        """Number of steps per outcome."""
        totals = {outcome.value: 0 for outcome in StepOutcome}
        for result in self.results:
            totals[result.outcome.value] += 1
        return totals

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "passed": self.passed,
            "counts": self.counts(),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "state": self.state,
            "steps": [result.to_dict() for result in self.results],
        }


def select_steps(steps: Sequence[Step], only: Iterable[str] | None) -> set[str]:
    """Validate a step selection.

    Args:
        steps: The step plan
        only: Step names to run, or None for all

    Returns:
        Set of selected step names

    Raises:
        ValueError: If a name is not in the plan
    """
    names = [step.name for step in steps]
    if not only:
        return set(names)
    selected = set(only)
    unknown = sorted(selected - set(names))
    if unknown:
        raise ValueError(f"Unknown step(s): {', '.join(unknown)}. Valid steps: {', '.join(names)}")
    return selected


class ScenarioRunner:
    """Run the booking scenario against a booking service."""

    def __init__(
        self,
        client: BookerClient,
        steps: Sequence[Step] | None = None,
        credentials: dict[str, str] | None = None,
        tolerated: Iterable[int] = DEFAULT_TOLERATED_STATUSES,
        budget: RetryBudget | None = None,
        factory: BookingFactory | None = None,
    ):
        """Initialize runner.

        Args:
            client: Open BookerClient
            steps: Step plan (default: the ten booking steps)
            credentials: Body for POST /auth (default: resolved demo account)
            tolerated: Statuses accepted as instability on read/create
            budget: Retry budget for read/create
            factory: Booking payload factory
        """
        self.client = client
        self.steps = list(steps) if steps is not None else list(DEFAULT_STEPS)
        self.credentials = credentials or resolve_credentials()
        self.tolerated = tuple(tolerated)
        self.budget = budget or RetryBudget()
        self.factory = factory or BookingFactory()

    def context(self, state: SessionState) -> StepContext:
        return StepContext(
            client=self.client,
            state=state,
            credentials=self.credentials,
            tolerated=self.tolerated,
            budget=self.budget,
            factory=self.factory,
        )

    async def run(
        self,
        only: Iterable[str] | None = None,
        state: SessionState | None = None,
    ) -> ScenarioReport:
        """Run the plan in order.

        Args:
            only: Optional subset of step names; others are reported SKIPPED
            state: Optional pre-populated session state

        Returns:
            ScenarioReport for the run
        """
        selected = select_steps(self.steps, only)
        state = state or SessionState()
        ctx = self.context(state)
        report = ScenarioReport(base_url=self.client.base_url)
        start = time.monotonic()

        logger.info("scenario_started", base_url=self.client.base_url, steps=len(selected))
        for step in self.steps:
            if step.name not in selected:
                report.results.append(StepResult(name=step.name, outcome=StepOutcome.SKIPPED))
                continue
            report.results.append(await self.run_step(step, ctx))

        report.elapsed_seconds = time.monotonic() - start
        report.state = state.snapshot()
        logger.info("scenario_finished", passed=report.passed, counts=report.counts())
        return report

    async def run_step(self, step: Step, ctx: StepContext) -> StepResult:
        """Run one step, turning BookerError into a FAILED result."""
        start = time.monotonic()
        try:
            result = await step.func(ctx)
        except BookerError as e:
            # Precondition failures happen before any request unless a step says otherwise
            default_attempts = 0 if isinstance(e, PreconditionError) else 1
            result = StepResult(
                name=step.name,
                outcome=StepOutcome.FAILED,
                status_code=getattr(e, "status_code", None),
                attempts=e.data.get("attempts", default_attempts),
                detail=str(e),
                error=e.to_dict(),
            )
            logger.error("step_failed", step=step.name, error=str(e), data=e.data)
        else:
            logger.info(
                f"step_{result.outcome.value}",
                step=step.name,
                status_code=result.status_code,
                detail=result.detail,
            )
        result.elapsed_seconds = time.monotonic() - start
        return result


async def run_scenario(
    config: SuiteConfig,
    only: Iterable[str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    factory: BookingFactory | None = None,
) -> ScenarioReport:
    """Open a client from config and run the scenario.

    Args:
        config: Suite configuration
        only: Optional subset of step names
        transport: Optional httpx transport (tests)
        factory: Optional payload factory (seeded in tests)

    Returns:
        ScenarioReport for the run
    """
    async with BookerClient(config.base_url, timeout=config.timeout, transport=transport) as client:
        runner = ScenarioRunner(
            client,
            credentials=resolve_credentials(config.username, config.password),
            tolerated=config.tolerated_statuses,
            budget=RetryBudget(retries=config.retry_count, delay=config.retry_delay),
            factory=factory,
        )
        return await runner.run(only=only)
