from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from codebase_flattener.config import MAX_SCAN_DEPTH, file_extension, language_for_extension
from codebase_flattener.exceptions import DirectoryNotFoundError, DirectoryNotReadableError
from codebase_flattener.logging import logger
from codebase_flattener.models import FlattenMetadata, FlattenResult, ProcessedFile, SkipRecord
from codebase_flattener.scanner import relpath, scan_directory
from codebase_flattener.transform import should_read_content, transform_file_content
from codebase_flattener.tree import render_tree

if TYPE_CHECKING:
    from collections.abc import Callable

    from codebase_flattener.config import FlattenerConfig

    ProgressCallback = Callable[[Path], None]


def ensure_readable_directory(root: str | Path) -> Path:
    """Check the precondition of every walk: `root` is a listable directory.

    Args:
        root (str | Path): the directory to check

    Raises:
        DirectoryNotFoundError: if `root` does not exist or is not a directory.
        DirectoryNotReadableError: if `root` cannot be listed.

    Returns:
        Path: `root` as an absolute path
    """
    path = Path(root).resolve()
    if not path.is_dir():
        raise DirectoryNotFoundError(folder=path)
    if not os.access(path, os.R_OK | os.X_OK):
        raise DirectoryNotReadableError(folder=path)
    return path


def now_iso() -> str:
    """Return the current UTC time as ISO 8601 with milliseconds and a `Z` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def read_text(path: Path) -> str:
    """Read a file as UTF-8, replacing undecodable bytes and keeping line endings as-is."""
    return path.read_bytes().decode("utf-8", errors="replace")


def count_lines(content: str) -> int:
    """Count lines the way the outputs report them: an empty text is one line."""
    return len(content.split("\n"))


def process_file(path: Path, root: Path, config: FlattenerConfig) -> ProcessedFile:
    """Build the `ProcessedFile` of one included file.

    Code files are read and transformed unless the run is tree-only; other
    files get an empty content.

    Args:
        path (Path): absolute path of the file
        root (Path): the flatten root, for the relative path
        config (FlattenerConfig): run options

    Raises:
        OSError: if the file cannot be stat-ed or read.

    Returns:
        ProcessedFile: the file record
    """
    st = path.stat()
    content = ""
    if should_read_content(path.name, config):
        content = transform_file_content(path.name, read_text(path), config)
    return ProcessedFile(
        path=path,
        relative_path=relpath(path, root),
        content=content,
        size=st.st_size,
        language=language_for_extension(file_extension(path.name)),
        line_count=count_lines(content),
        last_modified=datetime.fromtimestamp(st.st_mtime, tz=UTC),
    )


def flatten_directory(
    root: str | Path,
    config: FlattenerConfig,
    on_progress: ProgressCallback | None = None,
    *,
    tree_depth: int = MAX_SCAN_DEPTH,
) -> FlattenResult:
    """Flatten a directory into a `FlattenResult` ready for serialization.

    The directory is scanned once, then every included file is processed
    in traversal order. A file that cannot be processed is logged, recorded
    in `skipped` and left out; it never aborts the run. `on_progress` is
    called synchronously after each processed file; an exception it raises
    propagates and stops the run.

    Args:
        root (str | Path): the directory to flatten
        config (FlattenerConfig): run options, never modified
        on_progress (ProgressCallback | None): called with each processed path
        tree_depth (int): depth of the embedded directory tree

    Raises:
        DirectoryNotFoundError: if `root` does not exist.
        DirectoryNotReadableError: if `root` cannot be listed.

    Returns:
        FlattenResult: metadata, processed files and the rendered tree
    """
    root_path = ensure_readable_directory(root)
    structure = scan_directory(root_path, config)
    logger.info(
        "scan_completed",
        root=str(root_path),
        files=structure.total_files,
        directories=structure.total_directories,
        size=structure.total_size,
    )

    files: list[ProcessedFile] = []
    skipped: list[SkipRecord] = list(structure.skipped)
    for path in structure.included_files:
        try:
            processed = process_file(path, root_path, config)
        except (OSError, ValueError) as e:
            logger.warning("file_skipped", path=str(path), reason=str(e))
            skipped.append(SkipRecord(path=str(path), reason=str(e)))
            continue
        files.append(processed)
        if on_progress is not None:
            on_progress(path)

    directory_tree = render_tree(root_path, max_depth=tree_depth, include_icons=False)

    return FlattenResult(
        metadata=FlattenMetadata(
            processed_at=now_iso(),
            total_files=len(files),
            total_size=sum(f.size for f in files),
            config=config,
        ),
        files=files,
        directory_tree=directory_tree,
        skipped=skipped,
    )
