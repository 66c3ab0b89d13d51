from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from codebase_flattener.config import DIRECTORY_ICON, MAX_SCAN_DEPTH, file_icon
from codebase_flattener.logging import logger
from codebase_flattener.scanner import is_dir_entry, list_entries

if TYPE_CHECKING:
    import os


def _sort_key(entry: os.DirEntry[str]) -> tuple[int, str, str]:
    return (0 if is_dir_entry(entry) else 1, entry.name.casefold(), entry.name)


def build_tree_lines(
    root: str | Path,
    *,
    max_depth: int = MAX_SCAN_DEPTH,
    include_icons: bool = False,
) -> list[str]:
    """Build the box-drawing lines of the directory tree under `root`.

    Every level lists directories first, then files, each group sorted
    case-insensitively. Names are compared by their `str.casefold` code
    points, an approximation of locale-aware collation: a name starting
    with an accented letter sorts after "zebra". Names equal up to case
    fall back to a plain comparison, so the order is stable. The root
    itself is not part of the lines. A directory at depth `max_depth` is
    listed but its children are not. Directories that cannot be listed are
    left empty.

    Args:
        root (str | Path): the directory to render
        max_depth (int): deepest level whose entries are listed (root is 0)
        include_icons (bool): prefix names with a type icon

    Returns:
        list[str]: one string per entry, in display order
    """
    lines: list[str] = []

    def walk(directory: Path, depth: int, prefix: str) -> None:
        if depth > max_depth:
            return
        try:
            entries = sorted(list_entries(directory), key=_sort_key)
        except OSError as e:
            logger.debug("tree_directory_skipped", path=str(directory), reason=str(e))
            return
        for idx, entry in enumerate(entries):
            last = idx == len(entries) - 1
            is_dir = is_dir_entry(entry)
            icon = ""
            if include_icons:
                icon = DIRECTORY_ICON if is_dir else file_icon(entry.name)
            lines.append(prefix + ("└── " if last else "├── ") + icon + entry.name)
            if is_dir:
                walk(directory / entry.name, depth + 1, prefix + ("    " if last else "│   "))

    walk(Path(root), 0, "")
    return lines


def render_tree(
    root: str | Path,
    *,
    max_depth: int = MAX_SCAN_DEPTH,
    include_icons: bool = False,
) -> str:
    """Render the directory tree of `root` as a newline-joined string."""
    return "\n".join(build_tree_lines(root, max_depth=max_depth, include_icons=include_icons))
