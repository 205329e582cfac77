from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from user_registry.domain.models import Record
from user_registry.seed import SeedReport

DATE_FORMAT = "%b %d, %Y %H:%M"


def print_users(
    records: Sequence[Record],
    title: str = "Users",
    console: Optional[Console] = None,
) -> None:
    """
    Render records as a rich table, newest first as given.
    """
    console = console or Console()

    if not records:
        console.print("[yellow]No users found.[/yellow] Add some users to get started!")
        return

    table = Table(
        title=f"{title} ({len(records)})",
        box=box.ROUNDED,
        caption="Sorted by creation time (newest first)",
    )
    table.add_column("ID", justify="right", style="magenta", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Email", style="green")
    table.add_column("Added (UTC)", justify="right", style="dim")

    for record in records:
        table.add_row(
            str(record.id),
            record.name,
            record.email,
            record.created_at.strftime(DATE_FORMAT),
        )

    console.print(table)


def print_seed_report(report: SeedReport, console: Optional[Console] = None) -> None:
    """Summarize a seeding pass; skipped entries are listed with their reason."""
    console = console or Console()
    console.print(
        f"Seeded [bold]{len(report.inserted)}[/bold] users from [cyan]{report.source}[/cyan]"
    )
    if not report.skipped:
        return

    table = Table(title="Skipped seed entries", box=box.ROUNDED)
    table.add_column("#", justify="right", style="magenta")
    table.add_column("Email", style="green")
    table.add_column("Reason", style="red")
    for outcome in report.skipped:
        table.add_row(str(outcome.index), outcome.email or "-", outcome.reason or "")
    console.print(table)


__all__ = ["print_seed_report", "print_users"]
