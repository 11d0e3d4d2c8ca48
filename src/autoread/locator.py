"""
Autoread entry location.

Turns resolved patterns into concrete filesystem entries. Absolute and
home-rooted patterns are resolved once; relative patterns are tried in every
directory from the start directory up toward the root. Results are
deduplicated by fully resolved path and kept in first-discovered order.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from autoread.patterns import PatternResolver, iter_ancestors

logger = logging.getLogger(__name__)

HOME_MARKER = "~"


@dataclass(frozen=True)
class FileEntry:
    """A pattern match that is a regular file."""

    path: Path

    kind = "file"


@dataclass(frozen=True)
class DirectoryEntry:
    """A pattern match that is a directory, with its sorted child names."""

    path: Path
    children: tuple[str, ...] = field(default_factory=tuple)

    kind = "directory"


Entry = Union[FileEntry, DirectoryEntry]


def is_absolute_pattern(pattern: str) -> bool:
    """True for home-rooted (~) and filesystem-absolute patterns."""
    return pattern.startswith(HOME_MARKER) or os.path.isabs(pattern)


def list_children(directory: Path) -> tuple[str, ...]:
    """Sorted names of the immediate children of directory (empty on error)."""
    try:
        return tuple(sorted(os.listdir(directory)))
    except OSError as e:
        logger.debug(f"Cannot list {directory}: {e}")
        return ()


def load_entry(candidate: Path) -> Optional[Entry]:
    """
    Classify an existing path as a file or directory entry.

    Returns None when the path does not exist, cannot be inspected, or is
    neither a regular file nor a directory (e.g. a broken symlink).
    """
    try:
        resolved = candidate.resolve()
        if resolved.is_file():
            return FileEntry(resolved)
        if resolved.is_dir():
            return DirectoryEntry(resolved, list_children(resolved))
    except (OSError, RuntimeError) as e:
        # RuntimeError: symlink loop on older interpreters
        logger.debug(f"Cannot inspect {candidate}: {e}")
    return None


class EntryLocator:
    """Finds autoread entries for a directory."""

    def __init__(self, resolver: Optional[PatternResolver] = None):
        self.resolver = resolver or PatternResolver()

    @property
    def home(self) -> Path:
        return self.resolver.home

    def locate(self, start_dir: Path) -> list[Entry]:
        """
        Return the entries matching the patterns for start_dir.

        Args:
            start_dir: Directory to start the upward walk from

        Returns:
            Entries in discovery order, unique by resolved path
        """
        start_dir = Path(start_dir).resolve()
        patterns = self.resolver.resolve(start_dir)

        absolute = [p for p in patterns if is_absolute_pattern(p)]
        relative = [p for p in patterns if not is_absolute_pattern(p)]

        found: list[Entry] = []
        seen_paths: set[Path] = set()

        def add(candidate: Path) -> None:
            entry = load_entry(candidate)
            if entry is not None and entry.path not in seen_paths:
                seen_paths.add(entry.path)
                found.append(entry)

        for pattern in absolute:
            try:
                candidate = self._expand_absolute(pattern)
            except RuntimeError as e:
                # Unknown user in a ~user pattern
                logger.debug(f"Cannot expand {pattern}: {e}")
                continue
            add(candidate)

        if relative:
            for directory in iter_ancestors(start_dir):
                for pattern in relative:
                    add(directory / pattern)

        logger.debug(f"Located {len(found)} entries from {start_dir}")
        return found

    def _expand_absolute(self, pattern: str) -> Path:
        if pattern == HOME_MARKER:
            return self.home
        if pattern.startswith(HOME_MARKER + "/") or pattern.startswith(HOME_MARKER + os.sep):
            return self.home / pattern[2:]
        # ~user forms
        return Path(pattern).expanduser()
