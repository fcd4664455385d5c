"""Rich output formatters for CLI display."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from cfgoracle.driver import FixtureOutcome

console = Console()
err_console = Console(stderr=True)

_STATUS_STYLE = {"passed": "green", "failed": "red", "error": "magenta"}


def print_table(
    rows: Sequence[dict[str, Any]],
    title: str | None = None,
    columns: Sequence[str] | None = None,
) -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No results.[/dim]")
        return

    cols = columns or list(rows[0].keys())
    table = Table(title=title, show_lines=True)
    for col in cols:
        table.add_column(col, overflow="fold")

    for row in rows:
        table.add_row(*(str(row.get(c, "")) for c in cols))

    console.print(table)


def print_outcomes(outcomes: Sequence[FixtureOutcome]) -> None:
    """One row per fixture, then every failure message underneath."""
    table = Table(title="Fixtures", show_lines=False)
    table.add_column("fixture", overflow="fold")
    table.add_column("status")
    table.add_column("failures", justify="right")
    for outcome in outcomes:
        style = _STATUS_STYLE[outcome.status.value]
        count = len(outcome.report.failures) if outcome.report else ("-" if outcome.ok else "fatal")
        table.add_row(outcome.case.name, f"[{style}]{outcome.status.value}[/{style}]", str(count))
    console.print(table)

    for outcome in outcomes:
        if outcome.ok:
            continue
        console.print(f"\n[bold]{outcome.case.name}[/bold]")
        if outcome.error:
            console.print(f"  [magenta]{escape(outcome.error)}[/magenta]")
            continue
        for failure in outcome.report.failures:
            raw = f" (raw 0x{failure.raw_address:x})" if failure.raw_address is not None else ""
            console.print(f"  [red]{failure.kind.value}[/red] {escape(failure.message)}{raw}")


def print_success(msg: str) -> None:
    console.print(f"[bold green]{msg}[/bold green]")


def print_error(msg: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {msg}")
