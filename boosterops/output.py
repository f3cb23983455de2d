"""
Output module for boosterops.

Operator-facing progress and the end-of-run summary, rendered with Rich.
Diagnostics go through logging instead.

Usage:
    from boosterops import output

    output.booster_header("spring-boot-http-booster")
    output.branch_line("master", "Executing 'release'")
    output.print_summary(results)
"""

from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape

from .domain.outcome import OutcomeRecord, RunResults

console = Console(highlight=False)


def banner(message: str) -> None:
    """Announce a run-wide mode, e.g. dry-run."""
    console.print(f"[yellow]== {escape(message)} ==[/yellow]\n")


def note(message: str) -> None:
    console.print(f"\t[blue]{escape(message)}[/blue]")


def booster_header(name: str) -> None:
    console.print(f"[blue]>[/blue] [yellow]{escape(name)}[/yellow]")


def branch_line(branch: str, message: str) -> None:
    console.print(f"\t[green]{escape(branch)}[/green][blue]: {escape(message)}[/blue]")


def ignored_line(branch: Optional[str], reason: str) -> None:
    if branch:
        console.print(f"\t[green]{escape(branch)}[/green][blue]: [/blue][magenta]{escape(reason)}. Ignoring.[/magenta]")
    else:
        console.print(f"[magenta]{escape(reason)}. Ignoring.[/magenta]")


def failed_line(branch: Optional[str], reason: str) -> None:
    prefix = f"\t[green]{escape(branch)}[/green][blue]: [/blue]" if branch else ""
    console.print(f"{prefix}[red]ERROR: {escape(reason)}[/red]")


def danger(branch: str, message: str) -> None:
    console.print(f"\t[green]{escape(branch)}[/green][blue]: [/blue][bold red]{escape(message)}[/bold red]")


def separator() -> None:
    console.print("-" * 88 + "\n")


def _section(title: str, records: Iterable[OutcomeRecord], style: str) -> None:
    records = list(records)
    if not records:
        return
    console.print(f"[blue]{escape(title)}[/blue]", soft_wrap=True)
    for record in records:
        console.print(f"\t[{style}]{escape(str(record))}[/{style}]", soft_wrap=True)
    console.print()


def print_summary(results: RunResults) -> None:
    """Print processed, failed and skipped booster/branch combinations."""
    _section(f"{len(results.processed)} booster/branch combinations were processed:", results.processed, "yellow")
    _section(f"{len(results.failed)} booster/branch combinations failed:", results.failed, "red")
    _section(f"{len(results.ignored)} booster/branch combinations were skipped:", results.ignored, "magenta")
