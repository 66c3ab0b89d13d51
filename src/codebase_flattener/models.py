from __future__ import annotations

from datetime import datetime  # noqa: TC003
from pathlib import Path  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from codebase_flattener.config import FlattenerConfig  # noqa: TC001


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SkipRecord(_Model):
    """An entry the walk or the read phase had to leave out, and why."""

    path: str = Field(..., description="Absolute path of the skipped entry")
    reason: str = Field(..., description="Error message that caused the skip")


class FileStructure(_Model):
    """Outcome of a directory scan.

    Attributes:
        total_files: Number of included files, always `len(included_files)`.
        total_directories: Directories entered (excluded ones are not counted).
        total_size: Sum of the included files' sizes in bytes.
        file_types: Extension to file count; `"no-extension"` for bare names.
        included_files: Absolute paths in pre-order traversal order.
        excluded_files: Absolute paths where an exclude pattern pruned the walk.
        skipped: Entries omitted because of I/O errors.
    """

    total_files: int = Field(..., ge=0)
    total_directories: int = Field(..., ge=0)
    total_size: int = Field(..., ge=0)
    file_types: dict[str, int] = Field(default_factory=dict)
    included_files: list[Path] = Field(default_factory=list)
    excluded_files: list[Path] = Field(default_factory=list)
    skipped: list[SkipRecord] = Field(default_factory=list)


class ProcessedFile(_Model):
    """One included file, as embedded in the flattened output."""

    path: Path = Field(..., description="Absolute file path")
    relative_path: str = Field(..., description="Path relative to the root, with '/' separators")
    content: str = Field("", description="Transformed content; empty when not read")
    size: int = Field(..., ge=0, description="File size in bytes")
    language: str = Field(..., description="Display language derived from the extension")
    line_count: int = Field(..., ge=1, description="Number of lines of `content`")
    last_modified: datetime = Field(..., description="Modification time (UTC)")


class FlattenMetadata(_Model):
    processed_at: str = Field(..., description="ISO-8601 UTC timestamp of the run")
    total_files: int = Field(..., ge=0)
    total_size: int = Field(..., ge=0)
    config: FlattenerConfig


class FlattenResult(_Model):
    """Everything a serializer needs to render one flatten run."""

    metadata: FlattenMetadata
    files: list[ProcessedFile] = Field(default_factory=list)
    directory_tree: str = ""
    skipped: list[SkipRecord] = Field(default_factory=list)


class FileCounts(_Model):
    total: int = Field(..., ge=0)
    by_language: dict[str, int] = Field(default_factory=dict)


class LargestFile(_Model):
    name: str = ""
    size: int = Field(default=0, ge=0)


class LanguageShare(_Model):
    name: str
    files: int = Field(..., ge=0)
    percentage: int = Field(..., ge=0)


class CodebaseAnalysis(_Model):
    """Aggregate metrics of a codebase.

    Percentages in `languages` are rounded one by one, so their sum can be
    off 100 by a point or two.
    """

    files: FileCounts
    directories: int = Field(..., ge=0)
    total_size: int = Field(..., ge=0)
    average_file_size: float = Field(..., ge=0)
    largest_file: LargestFile = Field(default_factory=LargestFile)
    file_types: dict[str, int] = Field(default_factory=dict)
    languages: list[LanguageShare] = Field(default_factory=list)
    lines_of_code: int = Field(..., ge=0)
    skipped: list[SkipRecord] = Field(default_factory=list)
