#!/usr/bin/env python3
"""
Hook entry points for autoread.

Each command is invoked by the host as a short-lived process: it reads the
hook JSON from stdin, surfaces any autoread entries the session has not seen
yet, and prints the hook response JSON to stdout. Diagnostics go to stderr.

autoread-on-read (PreToolUse, file read tools):
    stdin:  {"session_id": "...", "cwd": "...", "tool_input": {"file_path": "..."}}
    stdout: {"hookSpecificOutput": {"hookEventName": "PreToolUse",
             "permissionDecision": "allow", "additionalContext": "..."}}

autoread-session-start (SessionStart):
    stdin:  {"session_id": "...", "cwd": "..."}
    stdout: {"hookSpecificOutput": {"hookEventName": "SessionStart",
             "additionalContext": "..."}}  or {} when nothing is new

Exit codes:
    0: Success, or unusable input (the host is never blocked)
    1: Unexpected error (message on stderr)
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

from autoread.config import configure_logging, load_config
from autoread.formatter import format_entries
from autoread.locator import EntryLocator
from autoread.seen_state import SeenStateStore
from autoread.surface import surface_new_entries

logger = logging.getLogger(__name__)


def read_hook_input(stream: Optional[TextIO] = None) -> dict[str, Any]:
    """
    Parse hook JSON from stdin.

    Returns:
        The decoded object, or {} when stdin is empty or not a JSON object
    """
    stream = stream or sys.stdin
    raw = stream.read().strip()
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Ignoring invalid hook input: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring hook input that is not a JSON object")
        return {}
    return data


def approve(hook_event_name: str, context: str = "") -> dict[str, Any]:
    """Build an allow decision, optionally carrying injected context."""
    output: dict[str, Any] = {
        "hookEventName": hook_event_name,
        "permissionDecision": "allow",
    }
    if context:
        output["additionalContext"] = context
    return {"hookSpecificOutput": output}


def inject(hook_event_name: str, context: str) -> dict[str, Any]:
    """Build a context injection response ({} when there is nothing to add)."""
    if not context:
        return {}
    return {
        "hookSpecificOutput": {
            "hookEventName": hook_event_name,
            "additionalContext": context,
        }
    }


def emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload))


def _session_id(hook_input: dict[str, Any]) -> Optional[str]:
    session_id = hook_input.get("session_id")
    return str(session_id) if session_id else None


def _resolve_directory(raw_path: str, hook_input: dict[str, Any]) -> Path:
    """Make a hook-supplied path absolute against the hook's cwd."""
    path = Path(raw_path).expanduser()
    if path.is_absolute():
        return path
    base = hook_input.get("cwd") or Path.cwd()
    return Path(base) / path


def collect_context(directory: Path, session_id: Optional[str]) -> str:
    """Locate, claim and render new entries for directory."""
    config = load_config()
    configure_logging(config)
    entries = surface_new_entries(
        directory,
        session_id,
        locator=EntryLocator(),
        store=SeenStateStore.from_config(config),
    )
    return format_entries(entries)


def on_read_cli() -> None:
    """
    CLI entry point for the PreToolUse hook on file reads.

    Surfaces autoread entries found from the directory of the file being
    read. Always approves the tool call.
    """
    hook_input = read_hook_input()
    tool_input = hook_input.get("tool_input") or {}
    file_path = tool_input.get("file_path") if isinstance(tool_input, dict) else None

    if not file_path:
        emit(approve("PreToolUse"))
        return

    try:
        directory = _resolve_directory(str(file_path), hook_input).parent
        context = collect_context(directory, _session_id(hook_input))
    except Exception as e:
        print(f"autoread error: {e}", file=sys.stderr)
        emit(approve("PreToolUse"))
        sys.exit(1)

    emit(approve("PreToolUse", context))


def session_start_cli() -> None:
    """
    CLI entry point for the SessionStart hook.

    Surfaces autoread entries found from the session's working directory.
    """
    hook_input = read_hook_input()
    cwd = hook_input.get("cwd") or str(Path.cwd())

    try:
        context = collect_context(Path(cwd), _session_id(hook_input))
    except Exception as e:
        print(f"autoread error: {e}", file=sys.stderr)
        emit({})
        sys.exit(1)

    emit(inject("SessionStart", context))


if __name__ == "__main__":
    on_read_cli()
