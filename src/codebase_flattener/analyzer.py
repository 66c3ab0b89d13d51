from __future__ import annotations

from typing import TYPE_CHECKING

from codebase_flattener.config import (
    ANALYZE_EXCLUDE_PATTERNS,
    LOC_SIZE_LIMIT,
    NO_EXTENSION,
    file_extension,
    is_code_file,
    language_for_extension,
)
from codebase_flattener.engine import count_lines, ensure_readable_directory, read_text
from codebase_flattener.logging import logger
from codebase_flattener.models import (
    CodebaseAnalysis,
    FileCounts,
    LanguageShare,
    LargestFile,
    SkipRecord,
)
from codebase_flattener.scanner import is_dir_entry, is_file_entry, iter_tree

if TYPE_CHECKING:
    from pathlib import Path


def percentage(part: int, total: int) -> int:
    """Return `part / total` as a whole percentage, halves rounded up."""
    if total <= 0:
        return 0
    return int(part * 100 / total + 0.5)


def language_shares(by_language: dict[str, int]) -> list[LanguageShare]:
    """Turn a language histogram into shares sorted by percentage, largest first.

    Each percentage is rounded on its own, so the sum may miss 100 slightly.
    Ties keep the order in which the languages were first seen.

    Args:
        by_language (dict[str, int]): language name to file count

    Returns:
        list[LanguageShare]: one share per language
    """
    total = sum(by_language.values())
    shares = [
        LanguageShare(name=name, files=files, percentage=percentage(files, total))
        for name, files in by_language.items()
    ]
    return sorted(shares, key=lambda share: share.percentage, reverse=True)


def analyze_codebase(root: str | Path) -> CodebaseAnalysis:
    """Compute aggregate metrics of the codebase under `root`.

    This is a fresh walk, independent of any flatten run, that prunes the
    contents of the top-level `node_modules`, `.git`, `dist` and `build`
    directories (`ANALYZE_EXCLUDE_PATTERNS`); the directories themselves
    are still counted, and look-alike names such as `distance.py` or
    `.github/` are kept. Lines of code are counted for code files below
    1 MiB only; unreadable files are recorded in `skipped` and otherwise
    ignored.

    Args:
        root (str | Path): the directory to analyze

    Raises:
        DirectoryNotFoundError: if `root` does not exist.
        DirectoryNotReadableError: if `root` cannot be listed.

    Returns:
        CodebaseAnalysis: file, language, size and line metrics
    """
    root_path = ensure_readable_directory(root)
    skipped: list[SkipRecord] = []
    file_types: dict[str, int] = {}
    by_language: dict[str, int] = {}
    total_files = 0
    total_size = 0
    directories = 0
    lines_of_code = 0
    largest = LargestFile()

    for entry, full_path in iter_tree(root_path, ANALYZE_EXCLUDE_PATTERNS, skipped):
        if is_dir_entry(entry):
            directories += 1
            continue
        if not is_file_entry(entry):
            continue
        try:
            size = entry.stat(follow_symlinks=False).st_size
        except OSError as e:
            logger.warning("file_skipped", path=str(full_path), reason=str(e))
            skipped.append(SkipRecord(path=str(full_path), reason=str(e)))
            continue

        total_files += 1
        extension = file_extension(entry.name) or NO_EXTENSION
        language = language_for_extension(extension)
        file_types[extension] = file_types.get(extension, 0) + 1
        by_language[language] = by_language.get(language, 0) + 1
        total_size += size
        if size > largest.size:
            largest = LargestFile(name=entry.name, size=size)

        if is_code_file(entry.name) and size < LOC_SIZE_LIMIT:
            try:
                lines_of_code += count_lines(read_text(full_path))
            except OSError as e:
                logger.warning("loc_count_skipped", path=str(full_path), reason=str(e))
                skipped.append(SkipRecord(path=str(full_path), reason=str(e)))

    analysis = CodebaseAnalysis(
        files=FileCounts(total=total_files, by_language=by_language),
        directories=directories,
        total_size=total_size,
        average_file_size=total_size / total_files if total_files else 0.0,
        largest_file=largest,
        file_types=file_types,
        languages=language_shares(by_language),
        lines_of_code=lines_of_code,
        skipped=skipped,
    )
    logger.info(
        "analysis_completed",
        root=str(root_path),
        files=total_files,
        directories=directories,
        lines_of_code=lines_of_code,
    )
    return analysis
