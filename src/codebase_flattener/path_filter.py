"""Exclude-pattern matching against root-relative paths.

Matching rules, applied to a path and a pattern both normalized to forward
slashes and lower case:

- a pattern containing `*` is a glob: `**` matches anything (slashes
  included), a single `*` matches within one path segment, every other
  character is literal, and the whole path must match;
- a pattern without `*` excludes every path that *contains* it. This is
  looser than segment matching on purpose (`node_modules` excludes
  `web/node_modules/x.js`) and it also means `build` excludes
  `my-build-tool/`.

The translation lives here only, so callers do not depend on it.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def normalize_path(path: str) -> str:
    return path.replace("\\", "/").lower()


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Translate a normalized glob into a regular expression.

    Args:
        pattern (str): a pattern already passed through `normalize_path`

    Returns:
        re.Pattern[str] | None: the compiled expression, or None for a
            pattern without wildcard (matched as a substring instead) or one
            that cannot be compiled
    """
    if "*" not in pattern:
        return None
    parts: list[str] = []
    for i, chunk in enumerate(pattern.split("**")):
        if i:
            parts.append(".*")
        parts.append("[^/]*".join(re.escape(piece) for piece in chunk.split("*")))
    try:
        return re.compile("".join(parts), re.DOTALL)
    except re.error:
        return None


def matches_pattern(normalized_path: str, pattern: str) -> bool:
    """Test one pattern against a path already passed through `normalize_path`."""
    normalized_pattern = normalize_path(pattern)
    if not normalized_pattern:
        return False
    if "*" not in normalized_pattern:
        return normalized_pattern in normalized_path
    regex = compile_pattern(normalized_pattern)
    if regex is None:
        return False
    return regex.fullmatch(normalized_path) is not None


def first_matching_pattern(relative_path: str, exclude_patterns: Iterable[str]) -> str | None:
    """Return the first pattern excluding `relative_path`, or None."""
    normalized = normalize_path(relative_path)
    for pattern in exclude_patterns:
        if matches_pattern(normalized, pattern):
            return pattern
    return None


def should_exclude(relative_path: str, exclude_patterns: Iterable[str]) -> bool:
    """Check if a root-relative path is excluded by any of the patterns.

    Args:
        relative_path (str): path relative to the scan root, any separator
        exclude_patterns (Iterable[str]): glob-like patterns, case-insensitive

    Returns:
        bool: True if at least one pattern matches
    """
    return first_matching_pattern(relative_path, exclude_patterns) is not None
