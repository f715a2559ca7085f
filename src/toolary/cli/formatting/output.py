#!/usr/bin/env python
"""
Output formatting with Rich console.
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.theme import Theme


# Custom theme for Toolary CLI
custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
    "success": "green",
})

STATE_STYLES = {
    "active": "green",
    "rate_limited": "yellow",
    "error": "red",
}


class ConsoleOutput:
    """Console output with Rich formatting."""

    def __init__(self, console: Console = None):
        self.console = console or Console(theme=custom_theme)

    def print(self, text: str = "", **kwargs):
        """Print text to console."""
        self.console.print(text, **kwargs)

    def print_error(self, text: str):
        self.console.print(f"[red]Error:[/red] {text}")

    def print_success(self, text: str):
        self.console.print(f"[green]Success:[/green] {text}")

    def print_warning(self, text: str):
        self.console.print(f"[yellow]Warning:[/yellow] {text}")

    def print_dim(self, text: str):
        self.console.print(f"[dim]{text}[/dim]")

    def print_table(self, title: str, columns: list[str], rows: list[list[str]]):
        """Print a simple table; cells may contain Rich markup."""
        table = Table(title=title)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)


def mask_secret(secret: str) -> str:
    """'AIzaSyABCDEF1234' -> 'AIza…1234'."""
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}…{secret[-4:]}"


def styled_state(state: str) -> str:
    style = STATE_STYLES.get(state, "white")
    return f"[{style}]{state}[/{style}]"
