#!/usr/bin/env python3
"""
Main CLI entry point for specreport.

- replay: feed a recorded runner event log through the aggregator
- summarize: print per-spec counts for a finished run directory
"""

import asyncio
import sys
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from specreport.config import ReporterSettings
from specreport.core.aggregator import SpecAggregator
from specreport.core.exceptions import SpecReportError
from specreport.core.logging import configure_from_settings
from specreport.core.model import WorkerInfo
from specreport.core.replay import load_event_log, replay_events
from specreport.core.summary import RunSummary, load_run_summary
from specreport.serialization import JsonSerializer

console = Console()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose: bool):
    """
    specreport - test runner event aggregation.

    Turns runner lifecycle events into one deterministic JSON report per spec
    file, ready for upload to a reporting backend.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def setup_logging(ctx: click.Context, settings: ReporterSettings) -> None:
    """Log per the settings; ``-v`` forces DEBUG for everything."""
    if ctx.obj.get("verbose"):
        settings = settings.model_copy(update={"log_level": "DEBUG"})
    configure_from_settings(settings, colorize=True)


@cli.command()
@click.argument(
    "events_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--root-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Runner root directory (default: current directory)",
)
@click.option("--report-dir", help="Base name of the run report directory")
@click.option("--worker-index", type=int, default=1, show_default=True)
@click.option(
    "--gate-timeout",
    type=float,
    help="Fail a handler after waiting this many seconds on a gate",
)
@click.pass_context
def replay(
    ctx,
    events_file: Path,
    root_dir: Path | None,
    report_dir: str | None,
    worker_index: int,
    gate_timeout: float | None,
):
    """Replay a JSON-lines runner event log into report artifacts."""
    overrides = {
        "root_dir": root_dir,
        "report_dir": report_dir,
        "gate_timeout": gate_timeout,
    }
    settings = ReporterSettings(
        **{key: value for key, value in overrides.items() if value is not None}
    )
    setup_logging(ctx, settings)

    async def _replay() -> SpecAggregator:
        aggregator = SpecAggregator(settings, WorkerInfo.for_index(worker_index))
        events = await load_event_log(events_file)
        await replay_events(aggregator, events)
        return aggregator

    try:
        aggregator = asyncio.run(_replay())
    except (SpecReportError, OSError) as e:
        logger.error(f"Replay failed: {e}")
        console.print(f"[red]❌ Replay failed: {escape(str(e))}[/red]")
        sys.exit(1)

    console.print(f"✅ Report directory: {aggregator.run_dir}")
    console.print(
        f"   {aggregator.emitter.processed_specs}/{aggregator.total_specs} specs written"
    )


def display_summary(summary: RunSummary) -> None:
    table = Table(title=f"Run {summary.run_dir.name}")
    table.add_column("Group", style="cyan")
    table.add_column("Spec", style="bold")
    table.add_column("Tests", justify="right")
    table.add_column("Passes", justify="right", style="green")
    table.add_column("Failures", justify="right", style="red")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Flaky", justify="right", style="magenta")

    for spec in summary.specs:
        table.add_row(
            spec.group_id,
            spec.spec,
            str(spec.tests),
            str(spec.passes),
            str(spec.failures),
            str(spec.skipped),
            str(spec.flaky),
        )

    console.print(table)
    console.print(
        f"Total: {summary.total_tests} tests, {summary.total_failures} failures, "
        f"{summary.total_flaky} flaky"
    )


@cli.command()
@click.argument(
    "run_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
def summarize(ctx, run_dir: Path, output: str):
    """Summarize the instance reports of a finished run directory."""
    setup_logging(ctx, ReporterSettings())

    try:
        summary = load_run_summary(run_dir)
    except (SpecReportError, OSError, ValueError) as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        sys.exit(1)

    if output == "json":
        click.echo(JsonSerializer(indent=True).serialize(summary.to_dict()).decode())
    else:
        display_summary(summary)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
