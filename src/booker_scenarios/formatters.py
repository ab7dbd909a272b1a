"""CLI output formatting helpers."""

from collections.abc import Sequence
from typing import Any

import click
import yaml

from .config import CONFIG_KEYS, SuiteConfig
from .policy import StepOutcome
from .runner import ScenarioReport
from .steps import Step

OUTCOME_SYMBOLS = {
    StepOutcome.PASSED: "✓",
    StepOutcome.TOLERATED: "⚠",
    StepOutcome.DEGRADED: "⚠",
    StepOutcome.FAILED: "✗",
    StepOutcome.SKIPPED: "-",
}


def print_report(report: ScenarioReport) -> None:
    """Print a scenario report.

    Args:
        report: Report returned by the runner
    """
    click.echo(f"Booking scenario against {report.base_url}\n")

    width = max((len(r.name) for r in report.results), default=0)
    for result in report.results:
        symbol = OUTCOME_SYMBOLS[result.outcome]
        status = f"HTTP {result.status_code}" if result.status_code is not None else ""
        retries = f" ({result.attempts} attempts)" if result.attempts > 1 else ""
        line = f"  {symbol} {result.name:<{width}}  {result.outcome.value:<9} {status:<8}{retries}"
        click.echo(line.rstrip())
        if result.detail and result.outcome is not StepOutcome.SKIPPED:
            click.echo(f"      {result.detail}")

    counts = report.counts()
    summary = ", ".join(f"{count} {name}" for name, count in counts.items() if count)
    click.echo()
    click.echo(f"{summary} in {report.elapsed_seconds:.2f}s")
    if report.passed:
        click.echo("✓ Scenario passed")
    else:
        click.echo(f"✗ Scenario failed ({counts[StepOutcome.FAILED.value]} failed steps)")


def print_steps(steps: Sequence[Step]) -> None:
    """Print the step plan in order."""
    width = max((len(s.name) for s in steps), default=0)
    for index, step in enumerate(steps, start=1):
        badge = " [degradable]" if step.degradable else ""
        click.echo(f"{index:>2}. {step.name:<{width}}  {step.description}{badge}")


def print_config(config: SuiteConfig, source_path: str | None = None) -> None:
    """Print effective configuration as YAML with value sources.

    Args:
        config: Loaded configuration
        source_path: Config file that was consulted
    """
    click.echo("Booker Scenario Configuration")
    if source_path:
        click.echo(f"Config file: {source_path}\n")
    data: dict[str, Any] = config.to_dict()
    click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True))
    click.echo("Sources:")
    for key in CONFIG_KEYS:
        click.echo(f"  {key}: {config.get_source(key)}")
