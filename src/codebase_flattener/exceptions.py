from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class FlattenerError(Exception):
    """Base exception for errors in the codebase_flattener package."""

    message: str = "Codebase flattening failed."

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class DirectoryNotFoundError(FlattenerError):
    """Raised when the root directory to flatten or analyze does not exist."""

    folder: Path = Path()
    message: str = "Directory not found."

    def __str__(self) -> str:
        return f"{self.message} {self.folder}"


@dataclass(frozen=True)
class DirectoryNotReadableError(FlattenerError):
    """Raised when the root directory exists but cannot be listed."""

    folder: Path = Path()
    message: str = "Directory is not readable."

    def __str__(self) -> str:
        return f"{self.message} {self.folder}"


@dataclass(frozen=True)
class UnsupportedFormatError(FlattenerError):
    """Raised when an output format has no registered serializer."""

    output_format: str = ""
    message: str = "Unsupported output format."

    def __str__(self) -> str:
        return f"{self.message} {self.output_format!r}"
