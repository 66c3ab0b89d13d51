"""Content transforms applied to code files before they are embedded.

Comment stripping is lexical: each extension maps to regular expressions
that are substituted away in order. It does not parse the language, so a
`//` or `#` inside a string literal is stripped as well
(`"http://x"` becomes `"http:`).

The table in `COMMENT_PATTERNS` is shared by the whole process.
`register_comment_patterns` is meant for start-up configuration; code that
needs its own rules passes a `comment_patterns` mapping instead.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from codebase_flattener.config import file_extension, is_code_file

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from codebase_flattener.config import FlattenerConfig

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_HASH_COMMENT = re.compile(r"#.*$", re.MULTILINE)
_MARKUP_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)

_C_STYLE = (_BLOCK_COMMENT, _LINE_COMMENT)

COMMENT_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "js": _C_STYLE,
    "jsx": _C_STYLE,
    "ts": _C_STYLE,
    "tsx": _C_STYLE,
    "java": _C_STYLE,
    "c": _C_STYLE,
    "cpp": _C_STYLE,
    "cs": _C_STYLE,
    "go": _C_STYLE,
    "rs": _C_STYLE,
    "swift": _C_STYLE,
    "kt": _C_STYLE,
    "scala": _C_STYLE,
    "py": (_HASH_COMMENT,),
    "rb": (_HASH_COMMENT,),
    "sh": (_HASH_COMMENT,),
    "r": (_HASH_COMMENT,),
    "yaml": (_HASH_COMMENT,),
    "yml": (_HASH_COMMENT,),
    "css": (_BLOCK_COMMENT,),
    "less": (_BLOCK_COMMENT,),
    "html": (_MARKUP_COMMENT,),
    "xml": (_MARKUP_COMMENT,),
}

_BLANK_LINE_RUN = re.compile(r"\n{3,}")


def register_comment_patterns(extensions: str | Iterable[str], patterns: Iterable[re.Pattern[str]]) -> None:
    """Set the comment expressions used for one or more extensions.

    This updates the process-wide `COMMENT_PATTERNS`, so every later run
    sees the change. Call it once at start-up.

    Args:
        extensions (str | Iterable[str]): extension(s) without the dot, e.g. "sql"
        patterns (Iterable[re.Pattern[str]]): expressions removed in order
    """
    keys = [extensions] if isinstance(extensions, str) else list(extensions)
    compiled = tuple(patterns)
    for key in keys:
        COMMENT_PATTERNS[key.lower()] = compiled


def strip_comments(
    content: str,
    extension: str,
    comment_patterns: Mapping[str, Iterable[re.Pattern[str]]] | None = None,
) -> str:
    """Remove comments with the regex table; unknown extensions are untouched.

    `comment_patterns` replaces the shared `COMMENT_PATTERNS` for this call.
    """
    table = COMMENT_PATTERNS if comment_patterns is None else comment_patterns
    for pattern in table.get(extension.lower(), ()):
        content = pattern.sub("", content)
    return content


def minify(content: str) -> str:
    """Strip whitespace around every line and keep at most one blank line in a row.

    Args:
        content (str): the text to minify

    Returns:
        str: the minified text, e.g. "a;\\n\\n\\n\\nb;" -> "a;\\n\\nb;"
    """
    stripped = "\n".join(line.strip() for line in content.split("\n"))
    return _BLANK_LINE_RUN.sub("\n\n", stripped)


def should_read_content(filename: str, config: FlattenerConfig) -> bool:
    """Tell whether the engine reads a file at all (tree-only runs never do)."""
    return not config.tree_only and is_code_file(filename)


def transform_content(
    content: str,
    extension: str,
    config: FlattenerConfig,
    comment_patterns: Mapping[str, Iterable[re.Pattern[str]]] | None = None,
) -> str:
    """Apply the configured transforms: comment stripping first, then minification.

    Args:
        content (str): raw file text
        extension (str): file extension without the dot, selects the comment table
        config (FlattenerConfig): the run options
        comment_patterns (Mapping[str, Iterable[re.Pattern[str]]] | None): comment
            table to use instead of `COMMENT_PATTERNS`

    Returns:
        str: the transformed text
    """
    if not config.include_comments:
        content = strip_comments(content, extension, comment_patterns)
    if config.minify_output:
        content = minify(content)
    return content


def transform_file_content(
    filename: str,
    content: str,
    config: FlattenerConfig,
    comment_patterns: Mapping[str, Iterable[re.Pattern[str]]] | None = None,
) -> str:
    return transform_content(content, file_extension(filename), config, comment_patterns)
