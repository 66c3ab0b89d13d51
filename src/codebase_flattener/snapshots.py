"""Hand-off point between a flatten run and whatever stores its output.

The engine returns strings; writing them to disk and describing them for a
persistence layer happens here. Storing the record (a database row, an
index file, ...) is left to the caller.
"""

from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from codebase_flattener.config import OUTPUT_SUFFIX, OutputFormat
from codebase_flattener.logging import logger


class FlattenRecord(BaseModel):
    """Description of one saved flatten output, keyed by a generated id."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    name: str
    description: str | None = None
    file_path: Path
    format: OutputFormat
    size: int = Field(..., ge=0, description="Length of the serialized output in characters")
    project_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


def default_output_path(directory: str | Path, output_format: OutputFormat) -> Path:
    """Build a timestamped output file name, e.g. `outputs/1718000000000-flattened.xml`."""
    millis = time.time_ns() // 1_000_000
    return Path(directory) / f"{millis}-flattened{OUTPUT_SUFFIX[output_format]}"


def write_output(
    content: str,
    output_path: str | Path,
    *,
    output_format: OutputFormat,
    name: str | None = None,
    description: str | None = None,
    project_id: str | None = None,
) -> FlattenRecord:
    """Write a serialized output and describe it.

    Args:
        content (str): the serialized document
        output_path (str | Path): destination file; parent directories are created
        output_format (OutputFormat): format of `content`
        name (str | None): display name, defaults to a dated title
        description (str | None): free text, defaults to the format
        project_id (str | None): owning project, if any

    Returns:
        FlattenRecord: the record a persistence layer would store
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline="")

    created_at = datetime.now(UTC)
    record = FlattenRecord(
        name=name or f"Flattened Codebase {created_at:%Y-%m-%d}",
        description=description or f"Flattened codebase in {output_format.value} format",
        file_path=path.resolve(),
        format=output_format,
        size=len(content),
        project_id=project_id,
        created_at=created_at,
    )
    logger.info("output_written", id=record.id, path=str(record.file_path), size=record.size)
    return record
