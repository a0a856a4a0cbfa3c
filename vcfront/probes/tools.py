"""Subprocess execution utilities."""

import logging
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """Raised when a subprocess cannot be started."""

    pass


def run_command(cmd: list[str], cwd: Optional[Path] = None) -> subprocess.CompletedProcess[str]:
    """
    Run a subprocess command, capturing stdout and stderr together.

    Back-end tools interleave diagnostics on stderr with data on stdout;
    both belong in the transcript, in order. Workfile contents and log
    messages carry no declared encoding, so undecodable bytes are replaced
    rather than raised.

    Args:
        cmd: Command and arguments as list (safe, no shell injection)
        cwd: Working directory (optional)

    Returns:
        CompletedProcess with merged output in stdout

    Raises:
        SubprocessError: If the executable is missing
    """
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            check=False,
            cwd=cwd,
        )
    except FileNotFoundError as e:
        error_msg = f"Command not found: {cmd[0]}"
        logger.error(error_msg)
        raise SubprocessError(error_msg) from e

    logger.debug(f"Exit code: {result.returncode}")
    return result
