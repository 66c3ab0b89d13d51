from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

LOGGER_NAME = "codebase_flattener"

_LOGGING_CONFIGURED = False


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    filename: str | Path | None = None,
    level: int | str = logging.INFO,
    *,
    force: bool = False,
) -> structlog.BoundLogger:
    """Set up structured logging for the codebase_flattener package.

    The first call wins; later calls only return the logger unless `force`
    is set, which lets the CLI redirect logs once its options are parsed.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        level: Minimum level, as a `logging` constant or a name such as "DEBUG".
        force: Reconfigure even if logging was already set up.

    Returns:
        A structlog logger instance bound to the codebase_flattener name.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if force or not _LOGGING_CONFIGURED:
        min_level = _resolve_level(level)
        handlers: list[logging.Handler] = []
        if filename:
            handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
        else:
            handlers.append(logging.StreamHandler(sys.stderr))

        logging.basicConfig(
            level=min_level,
            handlers=handlers,
            format="%(message)s",
            force=force,
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(min_level),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger(LOGGER_NAME)


logger = setup_logging()
