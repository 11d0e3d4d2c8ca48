"""Locate entries for a directory and claim the ones a session has not seen."""

import logging
from pathlib import Path
from typing import Optional

from autoread.errors import LockTimeoutError
from autoread.locator import Entry, EntryLocator
from autoread.seen_state import SeenStateStore

logger = logging.getLogger(__name__)


def surface_new_entries(
    directory: Path,
    session_id: Optional[str],
    locator: EntryLocator,
    store: SeenStateStore,
) -> list[Entry]:
    """
    Return the entries for directory that this call is first to surface.

    Each candidate is claimed through SeenStateStore.mark_seen, so concurrent
    invocations for the same session never both return the same entry. When
    the session lock times out the entry is returned anyway: showing it twice
    is preferable to never showing it.

    Args:
        directory: Directory to locate entries from
        session_id: Session to track against; None/empty disables tracking
        locator: Entry locator
        store: Seen-state store

    Returns:
        Newly surfaced entries in discovery order
    """
    entries = locator.locate(directory)
    if not session_id:
        logger.debug("No session id; surfacing all entries without tracking")
        return entries

    new_entries = []
    for entry in entries:
        # Lock-free pre-check; mark_seen re-checks under the lock
        if store.is_seen(session_id, entry.path):
            continue
        try:
            if store.mark_seen(session_id, entry.path):
                new_entries.append(entry)
        except LockTimeoutError as e:
            logger.warning(f"{e}; surfacing {entry.path} without recording it")
            new_entries.append(entry)

    logger.debug(
        f"Session {session_id}: {len(new_entries)} new of {len(entries)} entries"
    )
    return new_entries
