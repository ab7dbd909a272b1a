"""Status policy table and per-step results.

Each step declares which HTTP statuses pass, which are tolerated as known
instability, and which are worth another attempt. Unlisted statuses fail.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Observed from the public demo service under load; not part of its documented API.
DEFAULT_TOLERATED_STATUSES = (418,)


class Disposition(str, Enum):
    """What to do with a response status."""

    PASS = "pass"
    TOLERATE = "tolerate"
    RETRY = "retry"
    FAIL = "fail"


class StepOutcome(str, Enum):
    """Final classification of a step."""

    PASSED = "passed"
    TOLERATED = "tolerated"
    DEGRADED = "degraded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StatusPolicy:
    """Mapping of status code to disposition for one step."""

    table: dict[int, Disposition] = field(default_factory=dict)
    tolerated: frozenset[int] = frozenset()

    @classmethod
    def build(
        cls,
        expected: Iterable[int],
        tolerated: Iterable[int] = (),
        retry_tolerated: bool = False,
    ) -> StatusPolicy:
        """Build a policy table.

        Args:
            expected: Statuses that pass the step
            tolerated: Statuses accepted as known instability
            retry_tolerated: Retry tolerated statuses before accepting them

        Returns:
            StatusPolicy for the step
        """
        tolerated_set = frozenset(tolerated)
        table = {status: Disposition.PASS for status in expected}
        for status in tolerated_set:
            if status not in table:
                table[status] = Disposition.RETRY if retry_tolerated else Disposition.TOLERATE
        return cls(table=table, tolerated=tolerated_set)

    def should_retry(self, status_code: int) -> bool:
        return self.table.get(status_code) is Disposition.RETRY

    def classify(self, status_code: int, retries_left: bool = False) -> Disposition:
        """Resolve the disposition of a status.

        A RETRY status with no retries left resolves to TOLERATE when the status
        is tolerated, FAIL otherwise.
        """
        disposition = self.table.get(status_code, Disposition.FAIL)
        if disposition is Disposition.RETRY and not retries_left:
            return Disposition.TOLERATE if status_code in self.tolerated else Disposition.FAIL
        return disposition

    @property
    def expected(self) -> list[int]:
        return sorted(s for s, d in self.table.items() if d is Disposition.PASS)


@dataclass
class StepResult:
    """Result of running one step."""

    name: str
    outcome: StepOutcome
    status_code: int | None = None
    attempts: int = 0
    detail: str = ""
    elapsed_seconds: float = 0.0
    error: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        """Whether the step did not fail."""
        return self.outcome is not StepOutcome.FAILED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "outcome": self.outcome.value,
            "status_code": self.status_code,
            "attempts": self.attempts,
            "detail": self.detail,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
        }
        if self.error is not None:
            data["error"] = self.error
        return data
