"""autoread - surface project context files to a session exactly once.

Usage:
    from autoread import EntryLocator, SeenStateStore, surface_new_entries

    locator = EntryLocator()
    store = SeenStateStore()

    # Entries for a directory, each claimed at most once per session
    for entry in surface_new_entries(Path.cwd(), "session-1", locator, store):
        print(entry.path)
"""

from .errors import AutoreadError, ConfigurationError, LockTimeoutError
from .locator import DirectoryEntry, Entry, EntryLocator, FileEntry
from .patterns import DEFAULT_PATTERNS, PatternResolver
from .seen_state import FileLock, SeenStateStore
from .surface import surface_new_entries

__all__ = [
    "AutoreadError",
    "ConfigurationError",
    "DEFAULT_PATTERNS",
    "DirectoryEntry",
    "Entry",
    "EntryLocator",
    "FileEntry",
    "FileLock",
    "LockTimeoutError",
    "PatternResolver",
    "SeenStateStore",
    "surface_new_entries",
]

__version__ = "0.1.0"
