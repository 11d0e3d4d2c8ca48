"""
Autoread pattern resolution.

Determines which file/directory names count as autoread candidates for a
directory. The nearest ancestor holding a local pattern file wins outright;
otherwise the user's global pattern file applies, and failing that the
built-in defaults.

Pattern file format: one pattern per line, surrounding whitespace trimmed,
blank lines and lines starting with "#" ignored. No quoting or escaping.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ["AGENTS.md", "CONTRIBUTING.md"]

# Checked in this order within each directory
LOCAL_CONFIG_NAMES = (".autoread", "autoread")

COMMENT_MARKER = "#"


def parse_pattern_file(content: str) -> list[str]:
    """
    Parse the text of a pattern file into an ordered pattern list.

    Args:
        content: Raw file content

    Returns:
        Trimmed, non-empty, non-comment lines in file order
    """
    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith(COMMENT_MARKER):
            patterns.append(line)
    return patterns


def iter_ancestors(start_dir: Path) -> Iterator[Path]:
    """
    Yield start_dir and each ancestor, stopping before the filesystem root.

    Termination relies on the parent of the root being the root itself, so
    no platform-specific root string is needed.
    """
    current = Path(start_dir)
    while True:
        parent = current.parent
        if parent == current:
            return
        yield current
        current = parent


def _is_file(path: Path) -> bool:
    """is_file() that reports an uninspectable path as absent."""
    try:
        return path.is_file()
    except OSError as e:
        logger.debug(f"Cannot stat {path}: {e}")
        return False


def global_config_path(home: Path) -> Path:
    """Location of the user-wide pattern file."""
    return home / ".config" / "autoread"


class PatternResolver:
    """Resolves the ordered autoread pattern list for a directory."""

    def __init__(self, home: Optional[Path] = None):
        """
        Args:
            home: Home directory used to locate the global pattern file
                (default: the current user's home)
        """
        self.home = Path(home) if home is not None else Path.home()

    def resolve(self, start_dir: Path) -> list[str]:
        """Return the patterns that apply to start_dir."""
        patterns, _source = self.describe(start_dir)
        return patterns

    def describe(self, start_dir: Path) -> tuple[list[str], Optional[Path]]:
        """
        Resolve patterns and report where they came from.

        Returns:
            (patterns, source) where source is the pattern file that was used,
            or None when the built-in defaults apply
        """
        for directory in iter_ancestors(Path(start_dir)):
            for local in self._local_configs(directory):
                patterns = self._read_patterns(local)
                if patterns is not None:
                    logger.debug(f"Using local patterns from {local}: {patterns}")
                    return patterns, local

        global_path = global_config_path(self.home)
        if _is_file(global_path):
            patterns = self._read_patterns(global_path)
            if patterns is not None:
                logger.debug(f"Using global patterns from {global_path}: {patterns}")
                return patterns, global_path

        return list(DEFAULT_PATTERNS), None

    def _local_configs(self, directory: Path) -> Iterator[Path]:
        """Pattern files present in directory, in priority order."""
        for name in LOCAL_CONFIG_NAMES:
            candidate = directory / name
            if _is_file(candidate):
                yield candidate

    def _read_patterns(self, path: Path) -> Optional[list[str]]:
        """Read a pattern file; None when it cannot be read."""
        try:
            return parse_pattern_file(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read pattern file {path} (skipping): {e}")
            return None
