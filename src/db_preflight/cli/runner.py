"""Pre-flight runner and console reporter for the CLI."""

import asyncio

import typer
from rich.console import Console
from rich.markup import escape

from db_preflight.checks import run_preflight
from db_preflight.readiness_pipeline import CheckResult, CheckStatus, PipelineOutcome
from db_preflight.settings import Settings

console = Console(highlight=False)


def print_result(result: CheckResult) -> None:
    """Print one check result as a colorized trace line."""
    output = result.details.get("output")
    if result.status == CheckStatus.SUCCESS:
        if output:
            console.print(escape(output))
        console.print(f"[bright_green]✓ {escape(result.message)}[/bright_green]")
        for note in result.notes:
            console.print(f"[bright_green]✓ {escape(note)}[/bright_green]")
    elif result.status == CheckStatus.SKIPPED:
        console.print(f"[dim]- {escape(result.message)}[/dim]")
    else:
        console.print(f"[bright_red]✗ {escape(result.message)}[/bright_red]")


def run_preflight_checks(settings: Settings) -> PipelineOutcome:
    """Run the pre-flight pipeline, printing each result as it completes.

    Args:
        settings: Configuration for this run

    Returns:
        PipelineOutcome: The finished outcome

    Raises:
        typer.Exit: With code 1 if any check failed
    """
    outcome = asyncio.run(run_preflight(settings, on_result=print_result))

    if outcome.skipped_all:
        console.print(outcome.message)

    if not outcome.succeeded:
        raise typer.Exit(outcome.exit_code)

    return outcome
