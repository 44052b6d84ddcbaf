"""Rich consoles and the output helpers the form-engine commands share."""

from typing import Any, Iterable, Optional

import typer
from rich.console import Console
from rich.table import Table

# Status lines and tables go to stderr; JSON documents go to stdout
console = Console(stderr=True)
stdout_console = Console()

_STATUS_MARKS = {
    "ok": "[green]✓[/green]",
    "error": "[red]✗[/red]",
    "warning": "[yellow]![/yellow]",
}


def _status(level: str, msg: str) -> None:
    console.print(f"{_STATUS_MARKS[level]} {msg}", highlight=False)


def print_ok(msg: str) -> None:
    _status("ok", msg)


def print_err(msg: str) -> None:
    _status("error", msg)


def print_warn(msg: str) -> None:
    _status("warning", msg)


def output_json(data: Any) -> None:
    """Write a JSON document to stdout (form definitions, --json results)."""
    stdout_console.print_json(data=data, default=str)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else ""
    return str(value)


def output_table(
    rows: list[dict],
    *,
    ctx: typer.Context,
    title: str = "",
    columns: Optional[Iterable[str]] = None,
) -> None:
    """Print rows as a JSON array with --json, otherwise as a Rich table.

    Booleans show as ``yes`` or blank so disabled/computed markers stand out.
    """
    if ctx.obj.get("json"):
        output_json(rows)
        return

    if not rows:
        console.print(f"[dim]{title or 'Nothing to show'}: no rows[/dim]")
        return

    cols = list(columns or rows[0].keys())
    table = Table(title=title, caption=f"{len(rows)} row(s)")
    for col in cols:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*[_cell(row.get(col)) for col in cols])
    console.print(table)
