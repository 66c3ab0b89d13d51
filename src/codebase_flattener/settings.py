from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from codebase_flattener.config import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    EXCLUDE_PRESETS,
    MAX_SCAN_DEPTH,
    OUTPUT_SUFFIX,
    FlattenerConfig,
    OutputFormat,
    format_for_output_path,
)

ENV_FILE = find_dotenv(usecwd=True)
if ENV_FILE:
    load_dotenv(ENV_FILE, override=False)

Command = Literal["flatten", "tree", "analyze"]


def _env_default(name: str, fallback: str) -> str:
    return os.environ.get(name, fallback)


class Settings(BaseModel):
    """Command-line settings of the `flatten` tool."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    command: Command = Field(default="flatten", description="Sub-command to run.")
    directory: Path = Field(default_factory=lambda: Path("."), description="Directory to process.")
    output: Path | None = Field(default=None, description="Output file.")
    output_dir: Path | None = Field(
        default=None,
        description="Directory receiving a timestamped output file.",
    )
    format: str = Field(default="", description="Force format (xml, json, markdown).")

    include: list[str] = Field(default_factory=list, description="Include globs.")
    exclude: list[str] | None = Field(default=None, description="Exclude globs.")
    preset: list[str] = Field(default_factory=list, description="Named exclude presets added to the excludes.")
    interactive: bool = Field(default=False, description="Prompt for format, presets, comments and minify.")
    comments: bool = Field(default=False, description="Keep comments in file contents.")
    minify: bool = Field(default=False, description="Minify file contents.")
    tree_only: bool = Field(default=False, description="Only record the file tree.")
    depth: int = Field(default=MAX_SCAN_DEPTH, ge=0, description="Directory tree depth.")
    icons: bool = Field(default=False, description="Show file type icons in the tree.")
    as_json: bool = Field(default=False, description="Print the analysis as JSON.")
    config: Path | None = Field(default=None, description="YAML or JSON file of config overrides.")

    name: str | None = Field(default=None, description="Name of the saved output.")
    description: str | None = Field(default=None, description="Description of the saved output.")
    project_id: str | None = Field(default=None, description="Project owning the saved output.")

    log_file: str = Field(
        default_factory=lambda: _env_default("FLATTENER_LOG_FILE", ""),
        description="Log file path.",
    )
    log_level: str = Field(
        default_factory=lambda: _env_default("FLATTENER_LOG_LEVEL", "INFO"),
        description="Minimum log level.",
    )

    @field_validator("preset")
    @classmethod
    def _known_presets(cls, value: list[str]) -> list[str]:
        unknown = [name for name in value if name not in EXCLUDE_PRESETS]
        if unknown:
            msg = f"unknown preset(s) {unknown}, expected one of {sorted(EXCLUDE_PRESETS)}"
            raise ValueError(msg)
        return value

    def output_format(self) -> OutputFormat:
        """Return the forced format, else the one implied by the output suffix."""
        fmt = self.format.strip().lower()
        if fmt:
            return OutputFormat("markdown" if fmt == "md" else fmt)
        if self.output is not None:
            return format_for_output_path(self.output)
        return OutputFormat.XML

    def output_path(self, output_format: OutputFormat | None = None) -> Path:
        """Return the explicit output file, else `codebase.<ext>` for `output_format`."""
        if self.output is not None:
            return self.output
        return Path(f"codebase{OUTPUT_SUFFIX[output_format or self.output_format()]}")

    def flattener_config(self) -> FlattenerConfig:
        return FlattenerConfig(
            include_comments=self.comments,
            minify_output=self.minify,
            tree_only=self.tree_only,
            output_format=self.output_format(),
            include_patterns=tuple(self.include) or DEFAULT_INCLUDE_PATTERNS,
            exclude_patterns=self.exclude_patterns(),
        )

    def exclude_patterns(self) -> tuple[str, ...]:
        """Return `--exclude` (or the defaults) followed by the preset patterns, without duplicates."""
        patterns = list(DEFAULT_EXCLUDE_PATTERNS if self.exclude is None else self.exclude)
        for name in self.preset:
            patterns.extend(EXCLUDE_PRESETS[name])
        return tuple(dict.fromkeys(patterns))
