from __future__ import annotations

from enum import StrEnum, auto
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from collections.abc import Mapping

MAX_SCAN_DEPTH = 10
"""Deepest directory level (counted from the root) whose entries are visited."""

LOC_SIZE_LIMIT = 1024 * 1024
"""Files at or above this size are left out of the lines-of-code count."""

NO_EXTENSION = "no-extension"
UNKNOWN_LANGUAGE = "Unknown"


class OutputFormat(StrEnum):
    """Serialization formats for a flatten run."""

    XML = auto()
    JSON = auto()
    MARKDOWN = auto()


OUTPUT_SUFFIX: dict[OutputFormat, str] = {
    OutputFormat.XML: ".xml",
    OutputFormat.JSON: ".json",
    OutputFormat.MARKDOWN: ".md",
}

EXT2LANG: dict[str, str] = {
    "cs": "C#",
    "css": "CSS",
    "go": "Go",
    "html": "HTML",
    "java": "Java",
    "js": "JavaScript",
    "json": "JSON",
    "md": "Markdown",
    "php": "PHP",
    "py": "Python",
    "rb": "Ruby",
    "rs": "Rust",
    "ts": "TypeScript",
    "xml": "XML",
    "yaml": "YAML",
    "yml": "YAML",
}

CODE_EXTENSIONS: frozenset[str] = frozenset({
    "bat",
    "c",
    "cpp",
    "cs",
    "css",
    "dockerfile",
    "go",
    "html",
    "java",
    "js",
    "json",
    "jsx",
    "kt",
    "less",
    "md",
    "php",
    "ps1",
    "py",
    "r",
    "rb",
    "rs",
    "sass",
    "scala",
    "scss",
    "sh",
    "sql",
    "svelte",
    "swift",
    "ts",
    "tsx",
    "vue",
    "xml",
    "yaml",
    "yml",
})

FILE_ICONS: dict[str, str] = {
    "css": "🎨 ",
    "html": "🌐 ",
    "js": "📜 ",
    "json": "📋 ",
    "md": "📝 ",
    "py": "🐍 ",
    "ts": "🔷 ",
}
DIRECTORY_ICON = "📁 "
DEFAULT_FILE_ICON = "📄 "

DEFAULT_INCLUDE_PATTERNS: tuple[str, ...] = ("**/*",)

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "node_modules/**",
    ".git/**",
    "dist/**",
    "build/**",
    "*.log",
    ".env*",
    "**/*.min.js",
    "**/*.min.css",
)

ANALYZE_EXCLUDE_PATTERNS: tuple[str, ...] = ("node_modules/**", ".git/**", "dist/**", "build/**")

EXCLUDE_PRESETS: dict[str, tuple[str, ...]] = {
    "node_modules": ("node_modules/**",),
    "git": (".git/**",),
    "build-output": ("dist/**", "build/**"),
    "logs": ("*.log", "**/*.log"),
    "env": (".env*",),
    "lock": ("*.lock", "**/*.lock"),
    "minified": ("**/*.min.js", "**/*.min.css"),
    "coverage": ("coverage/**",),
}
"""Named groups of exclude patterns, offered by `--preset` and the interactive mode."""

EXCLUDE_PRESET_LABELS: dict[str, str] = {
    "node_modules": "node_modules (dependencies)",
    "git": ".git (version control)",
    "build-output": "dist/build (compiled files)",
    "logs": "Log files",
    "env": "Environment files",
    "lock": "Lock files",
    "minified": "Minified files",
    "coverage": "Test coverage",
}


def file_extension(filename: str) -> str:
    """Return the lower-cased text after the last dot of `filename`.

    Dotfiles count as having an extension (".env" -> "env"), and a name
    without any dot returns an empty string.

    Args:
        filename (str): a file name or path; only the final component is used

    Returns:
        str: the extension without the dot, or "" if there is none
    """
    name = PurePath(filename).name
    _, dot, ext = name.rpartition(".")
    return ext.lower() if dot else ""


def is_code_file(filename: str) -> bool:
    """Tell whether a file's contents are read, transformed and counted."""
    return file_extension(filename) in CODE_EXTENSIONS


def language_for_extension(extension: str) -> str:
    """Map an extension to its display language, "Unknown" when unmapped."""
    return EXT2LANG.get(extension.lower(), UNKNOWN_LANGUAGE)


def file_icon(filename: str) -> str:
    return FILE_ICONS.get(file_extension(filename), DEFAULT_FILE_ICON)


class FlattenerConfig(BaseModel):
    """Options of one flatten run.

    The model is frozen: components receive it read-only, and a variant is
    obtained with `with_overrides`. Dumped with `by_alias=True` it uses the
    camelCase keys of the serialized outputs (`includeComments`, ...).

    Attributes:
        include_comments: Keep comments; when False they are stripped lexically.
        minify_output: Strip per-line indentation and collapse blank-line runs.
        tree_only: Record files without reading their contents.
        output_format: Serialization format of the result.
        include_patterns: Accepted for compatibility; they do not filter the walk.
        exclude_patterns: Patterns tested against root-relative paths.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    include_comments: bool = Field(default=True, description="Keep source comments.")
    minify_output: bool = Field(default=False, description="Collapse whitespace.")
    tree_only: bool = Field(default=False, description="Skip reading file contents.")
    output_format: OutputFormat = Field(
        default=OutputFormat.XML,
        description="Output format (xml, json or markdown).",
    )
    include_patterns: tuple[str, ...] = Field(
        default=DEFAULT_INCLUDE_PATTERNS,
        description="Include globs (advisory, no filtering effect).",
    )
    exclude_patterns: tuple[str, ...] = Field(
        default=DEFAULT_EXCLUDE_PATTERNS,
        description="Exclude globs, relative to the root directory.",
    )

    @field_validator("output_format", mode="before")
    @classmethod
    def _normalize_format(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, str):
            normalized = value.strip().lower()
            return "markdown" if normalized == "md" else normalized
        return value

    def with_overrides(self, overrides: Mapping[str, Any]) -> FlattenerConfig:
        """Return a new validated config with `overrides` applied.

        Keys may use either the Python names or the camelCase aliases;
        unknown keys are ignored.

        Args:
            overrides (Mapping[str, Any]): the values to replace

        Returns:
            FlattenerConfig: a new config; `self` is left untouched
        """
        merged = self.model_dump()
        fields = type(self).model_fields
        for key, value in overrides.items():
            name = key if key in fields else _field_for_alias(key)
            if name is not None:
                merged[name] = value
        return type(self).model_validate(merged)


def _field_for_alias(alias: str) -> str | None:
    for name, info in FlattenerConfig.model_fields.items():
        if info.alias == alias:
            return name
    return None


def format_for_output_path(path: str | PurePath) -> OutputFormat:
    """Infer the output format from a file suffix, XML when unrecognized."""
    suffix = PurePath(path).suffix.lower()
    if suffix == ".json":
        return OutputFormat.JSON
    if suffix in {".md", ".markdown"}:
        return OutputFormat.MARKDOWN
    return OutputFormat.XML
