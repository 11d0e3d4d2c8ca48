"""
Context Formatter for autoread.

Renders located entries as tagged text blocks for injection into the
consuming session via hook output.
"""

import logging
from typing import Iterable, Optional

from autoread.locator import DirectoryEntry, Entry, FileEntry

logger = logging.getLogger(__name__)

TAG = "autoread"
EMPTY_DIRECTORY_MARKER = "(empty)"


def format_file_entry(entry: FileEntry) -> Optional[str]:
    """
    Render a file entry with its full content.

    Returns:
        The block, or None if the file can no longer be read
    """
    try:
        content = entry.path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Cannot read {entry.path} (skipping): {e}")
        return None
    return f'<{TAG} path="{entry.path}">\n{content}\n</{TAG}>'


def format_directory_entry(entry: DirectoryEntry) -> str:
    """Render a directory entry as a shallow listing, one child per line."""
    output_parts = [f'<{TAG} path="{entry.path}" type="directory">\n']
    if entry.children:
        for name in entry.children:
            output_parts.append(f"{name}\n")
    else:
        output_parts.append(f"{EMPTY_DIRECTORY_MARKER}\n")
    output_parts.append(f"</{TAG}>")
    return "".join(output_parts)


def format_entry(entry: Entry) -> Optional[str]:
    if isinstance(entry, DirectoryEntry):
        return format_directory_entry(entry)
    return format_file_entry(entry)


def format_entries(entries: Iterable[Entry]) -> str:
    """
    Render entries in order, separated by blank lines.

    Returns:
        Combined context string ("" when nothing could be rendered)
    """
    blocks = []
    for entry in entries:
        block = format_entry(entry)
        if block is not None:
            blocks.append(block)
    return "\n\n".join(blocks)
