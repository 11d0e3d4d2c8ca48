"""Seen-state CLI commands for inspecting and updating session records."""

from pathlib import Path

import typer
from rich.markup import escape

from autoread.config import load_config
from autoread.errors import ConfigurationError, LockTimeoutError
from autoread.seen_state import SeenStateStore

from .console import console, print_error, print_success

app = typer.Typer(
    name="seen",
    help="Inspect and update which entries a session has already surfaced",
    no_args_is_help=True,
)


def _get_store() -> SeenStateStore:
    """Build a SeenStateStore from runtime configuration."""
    try:
        return SeenStateStore.from_config(load_config())
    except ConfigurationError as e:
        print_error(f"Configuration error: {e}")
        raise typer.Exit(2)


def _validate_session(value: str) -> str:
    if not value:
        raise typer.BadParameter("session id must not be empty")
    return value


def _normalize(path: str) -> str:
    return str(Path(path).expanduser().resolve())


@app.command(name="list")
def list_seen(
    session_id: str = typer.Argument(
        ..., help="Session identifier", callback=_validate_session
    ),
) -> None:
    """List the paths already surfaced in a session."""
    store = _get_store()
    paths = sorted(store.seen_paths(session_id))

    if not paths:
        console.print("[dim]Nothing surfaced yet for this session.[/dim]")
        return

    for path in paths:
        console.print(path, highlight=False, markup=False)


@app.command(name="check")
def check_seen(
    session_id: str = typer.Argument(
        ..., help="Session identifier", callback=_validate_session
    ),
    path: str = typer.Argument(..., help="Path to check"),
) -> None:
    """Exit 0 if PATH has been surfaced in the session, 1 otherwise."""
    store = _get_store()
    resolved = _normalize(path)
    if store.is_seen(session_id, resolved):
        console.print(f"[green]seen[/green] {escape(resolved)}", highlight=False)
        return
    console.print(f"[yellow]not seen[/yellow] {escape(resolved)}", highlight=False)
    raise typer.Exit(1)


@app.command(name="mark")
def mark_seen(
    session_id: str = typer.Argument(
        ..., help="Session identifier", callback=_validate_session
    ),
    path: str = typer.Argument(..., help="Path to record as surfaced"),
) -> None:
    """Record PATH as surfaced in the session."""
    store = _get_store()
    resolved = _normalize(path)
    try:
        newly_marked = store.mark_seen(session_id, resolved)
    except LockTimeoutError as e:
        print_error(str(e))
        raise typer.Exit(2)

    if newly_marked:
        print_success(f"Marked {escape(resolved)}")
    else:
        console.print(f"[dim]Already seen: {escape(resolved)}[/dim]", highlight=False)
