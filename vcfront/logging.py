"""Logging configuration."""

import logging
import sys


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for vcfront.

    Logs go to stderr, not mixed with command output (diffs, logs, --json).

    Args:
        verbose: If True, log at DEBUG level; otherwise WARNING.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (e.g., "vcfront.adapter")

    Returns:
        Logger instance
    """
    if name.startswith("vcfront"):
        return logging.getLogger(name)
    return logging.getLogger(f"vcfront.{name}")
