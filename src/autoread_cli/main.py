"""autoread CLI entry point."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from autoread import __version__
from autoread.locator import DirectoryEntry, EntryLocator
from autoread.patterns import PatternResolver

from .console import console, create_table, print_table
from .seen import app as seen_app

app = typer.Typer(
    name="autoread",
    help="autoread - surface project context files once per session",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"autoread version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """autoread - surface project context files once per session."""
    pass


def _start_dir(directory: Optional[Path]) -> Path:
    start = (directory or Path.cwd()).expanduser().resolve()
    if not start.is_dir():
        console.print(f"[red]Error:[/red] Not a directory: {escape(str(start))}")
        raise typer.Exit(1)
    return start


@app.command(name="patterns")
def patterns_command(
    directory: Optional[Path] = typer.Argument(
        None, help="Directory to resolve patterns for (default: cwd)"
    ),
) -> None:
    """Show the autoread patterns in effect for a directory and their source."""
    start = _start_dir(directory)
    patterns, source = PatternResolver().describe(start)

    if source is None:
        console.print("[dim]Source: built-in defaults[/dim]")
    else:
        console.print(f"[dim]Source: {escape(str(source))}[/dim]")

    if not patterns:
        console.print("[dim]No patterns configured.[/dim]")
        return

    for pattern in patterns:
        console.print(pattern, highlight=False, markup=False)


@app.command(name="locate")
def locate_command(
    directory: Optional[Path] = typer.Argument(
        None, help="Directory to start from (default: cwd)"
    ),
) -> None:
    """List the autoread entries found from a directory upward."""
    start = _start_dir(directory)
    entries = EntryLocator().locate(start)

    if not entries:
        console.print("[dim]No autoread entries found.[/dim]")
        return

    table = create_table("Autoread Entries")
    table.add_column("Kind", style="magenta")
    table.add_column("Path", style="green", overflow="fold")
    table.add_column("Children", style="cyan", justify="right")

    for entry in entries:
        children = str(len(entry.children)) if isinstance(entry, DirectoryEntry) else ""
        table.add_row(entry.kind, escape(str(entry.path)), children)

    print_table(table)


# Register the seen subcommand group
app.add_typer(seen_app, name="seen")


if __name__ == "__main__":
    app()
