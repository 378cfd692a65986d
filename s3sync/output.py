"""Output formatting for the s3sync command line."""

import json
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormatter:
    """Writes command results to the terminal as text, tables or JSON.

    Informational messages go to stdout and are suppressed in quiet and
    JSON mode. Warnings and errors always go to stderr.
    """

    def __init__(self, json_output: bool = False, quiet: bool = False):
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console()
        self.err_console = Console(stderr=True)

    def info(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(escape(message), highlight=False, soft_wrap=True)

    def success(self, message: str) -> None:
        if not self.quiet and not self.json_output:
            self.console.print(f"[green]✓[/green] {escape(message)}", highlight=False)

    def warning(self, message: str) -> None:
        self.err_console.print(
            f"[yellow]Warning:[/yellow] {escape(message)}",
            highlight=False,
            soft_wrap=True,
        )

    def error(self, message: str) -> None:
        self.err_console.print(
            f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True
        )

    def print(self, message: str) -> None:
        """Print a message regardless of quiet mode."""
        self.console.print(escape(message), highlight=False, soft_wrap=True)

    def output_json(self, data: Any) -> None:
        """Print data as indented JSON."""
        click.echo(json.dumps(data, indent=2, default=str))

    def output_table(
        self, headers: list[str], rows: list[list[str]], title: str = ""
    ) -> None:
        """Print rows as a table.

        Args:
            headers: Column headers
            rows: Table rows, one string per column
            title: Optional table title
        """
        table = Table(title=title or None, show_edge=False, header_style="bold")
        for header in headers:
            table.add_column(header, justify="right" if header == "Size" else "left")
        for row in rows:
            table.add_row(*(escape(cell) for cell in row))
        self.console.print(table)

    def print_summary(self, title: str, stats: dict[str, Any]) -> None:
        """Print a titled block of key/value statistics."""
        if self.quiet or self.json_output:
            return
        self.console.print(f"\n[bold]{title}[/bold]")
        for key, value in stats.items():
            self.console.print(f"  {key}: {value}", highlight=False)
