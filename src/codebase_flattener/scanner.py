from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from codebase_flattener.config import MAX_SCAN_DEPTH, NO_EXTENSION, file_extension
from codebase_flattener.logging import logger
from codebase_flattener.models import FileStructure, SkipRecord
from codebase_flattener.path_filter import first_matching_pattern

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from codebase_flattener.config import FlattenerConfig


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def list_entries(directory: Path) -> list[os.DirEntry[str]]:
    """List a directory in name order.

    Raises:
        OSError: if the directory cannot be listed.

    Returns:
        list[os.DirEntry[str]]: the entries, sorted by name
    """
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def iter_tree(
    root: Path,
    exclude_patterns: Sequence[str],
    skipped: list[SkipRecord],
    excluded: list[Path] | None = None,
    max_depth: int | None = MAX_SCAN_DEPTH,
) -> Iterator[tuple[os.DirEntry[str], Path]]:
    """Walk `root` depth-first in pre-order, yielding kept entries.

    Excluded entries are not yielded and their subtree is not entered.
    Symbolic links are yielded but never followed. Directories deeper than
    `max_depth` are yielded without being listed. Listing errors are
    appended to `skipped` and the walk moves on.

    Args:
        root (Path): the directory to walk
        exclude_patterns (Sequence[str]): patterns tested on root-relative paths
        skipped (list[SkipRecord]): receives one record per unlistable directory
        excluded (list[Path] | None): receives the excluded paths, if given
        max_depth (int | None): deepest level listed, None for no bound

    Yields:
        tuple[os.DirEntry[str], Path]: each kept entry with its absolute path
    """

    def walk(directory: Path, depth: int) -> Iterator[tuple[os.DirEntry[str], Path]]:
        if max_depth is not None and depth > max_depth:
            return
        try:
            entries = list_entries(directory)
        except OSError as e:
            logger.warning("directory_skipped", path=str(directory), reason=str(e))
            skipped.append(SkipRecord(path=str(directory), reason=str(e)))
            return
        for entry in entries:
            full_path = directory / entry.name
            pattern = first_matching_pattern(relpath(full_path, root), exclude_patterns)
            if pattern is not None:
                logger.debug("path_excluded", path=str(full_path), pattern=pattern)
                if excluded is not None:
                    excluded.append(full_path)
                continue
            yield entry, full_path
            if is_dir_entry(entry):
                yield from walk(full_path, depth + 1)

    yield from walk(root, 0)


def is_dir_entry(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def is_file_entry(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_file(follow_symlinks=False)
    except OSError:
        return False


def scan_directory(root: str | Path, config: FlattenerConfig) -> FileStructure:
    """Enumerate the files of `root` that survive the exclude patterns.

    The walk is depth-first and pre-order, entries in name order, bounded at
    `MAX_SCAN_DEPTH` levels below the root. File contents are not read.
    Directories that cannot be listed and files that cannot be stat-ed are
    left out of every count and reported in `skipped`.

    Args:
        root (str | Path): the directory to scan
        config (FlattenerConfig): run options; only `exclude_patterns` is used

    Returns:
        FileStructure: counts, extension histogram and the included paths
    """
    root = Path(root)
    included: list[Path] = []
    excluded: list[Path] = []
    skipped: list[SkipRecord] = []
    file_types: dict[str, int] = {}
    total_size = 0
    total_directories = 0

    for entry, full_path in iter_tree(root, config.exclude_patterns, skipped, excluded):
        if is_dir_entry(entry):
            total_directories += 1
        elif is_file_entry(entry):
            try:
                size = entry.stat(follow_symlinks=False).st_size
            except OSError as e:
                logger.warning("file_skipped", path=str(full_path), reason=str(e))
                skipped.append(SkipRecord(path=str(full_path), reason=str(e)))
                continue
            included.append(full_path)
            extension = file_extension(entry.name) or NO_EXTENSION
            file_types[extension] = file_types.get(extension, 0) + 1
            total_size += size
        else:
            logger.debug("special_entry_ignored", path=str(full_path))

    return FileStructure(
        total_files=len(included),
        total_directories=total_directories,
        total_size=total_size,
        file_types=file_types,
        included_files=included,
        excluded_files=excluded,
        skipped=skipped,
    )
