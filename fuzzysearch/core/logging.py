"""Logging configuration for the command-line entry point."""

import logging
import sys
from pathlib import Path


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    format_string: str | None = None,
) -> None:
    """Configure root logging.

    The library itself never calls this; it is meant for applications and
    the ``fuzzysearch`` command.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If provided, logs to both file and stderr
        format_string: Custom log format string. Uses default if not provided
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # stdout is reserved for command output
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=format_string,
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured at {level} level")
    if log_file:
        logger.debug(f"Logging to file: {log_file}")

