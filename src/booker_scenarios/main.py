"""CLI main entry point."""

import asyncio
import json
import sys

import click

__version__ = "0.1.0"  # Defined here to avoid circular import

from .config import get_config_path, load_config
from .runner import run_scenario
from .shared.logging import configure_logging, level_for_verbosity
from .steps import DEFAULT_STEPS, STEP_NAMES


@click.group()
@click.option("-c", "--config", type=click.Path(), help="Config file path")
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--log-file", type=click.Path(), help="Write logs to a file")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def cli(
    ctx: click.Context,
    config: str | None,
    verbose: int,
    log_file: str | None,
    json_output: bool,
) -> None:
    """End-to-end scenario checks for the restful-booker API."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["json_output"] = json_output
    configure_logging(level_for_verbosity(verbose), log_file=log_file, json_output=json_output)


@cli.command()
@click.option("--base-url", help="Booking service URL")
@click.option(
    "--only",
    multiple=True,
    type=click.Choice(STEP_NAMES),
    help="Run only these steps (repeatable); the rest are skipped",
)
@click.option("--tolerate", multiple=True, type=int, help="Tolerated status code (repeatable)")
@click.option("--retries", type=int, help="Retries for read/create steps")
@click.option("--retry-delay", type=float, help="Seconds between retries")
@click.option("-t", "--timeout", type=float, help="Request timeout in seconds")
@click.pass_context
def run(
    ctx: click.Context,
    base_url: str | None,
    only: tuple[str, ...],
    tolerate: tuple[int, ...],
    retries: int | None,
    retry_delay: float | None,
    timeout: float | None,
) -> None:
    """Run the booking scenario."""
    from .formatters import print_report

    suite_config = load_config(ctx.obj["config_path"])
    suite_config.override(
        base_url=base_url,
        tolerated_statuses=list(tolerate) or None,
        retry_count=retries,
        retry_delay=retry_delay,
        timeout=timeout,
    )

    report = asyncio.run(run_scenario(suite_config, only=only or None))

    if ctx.obj["json_output"]:
        click.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_report(report)

    if not report.passed:
        sys.exit(1)


@cli.command()
def steps() -> None:
    """List scenario steps in execution order."""
    from .formatters import print_steps

    print_steps(DEFAULT_STEPS)


@cli.command()
def version() -> None:
    """Show version."""
    click.echo(f"booker-scenarios {__version__}")


@cli.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show effective configuration and where each value came from."""
    from .config import CONFIG_KEYS
    from .formatters import print_config

    config_path = ctx.obj["config_path"] or str(get_config_path())
    loaded = load_config(ctx.obj["config_path"])

    if ctx.obj["json_output"]:
        data = {
            "config_file": config_path,
            "values": loaded.to_dict(),
            "sources": {key: loaded.get_source(key) for key in CONFIG_KEYS},
        }
        click.echo(json.dumps(data, indent=2))
    else:
        print_config(loaded, config_path)


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
