"""Back-end abstraction layer."""

import logging
import shutil
from pathlib import Path
from typing import Optional

from vcfront.backends.protocol import (
    Backend,
    CommandSpec,
    LogicalOperation,
    PropertyKind,
)
from vcfront.backends.rcs import RCSBackend
from vcfront.backends.sccs import SCCSBackend
from vcfront.errors import ConfigError

logger = logging.getLogger(__name__)

_BACKENDS: dict[str, type] = {
    "RCS": RCSBackend,
    "SCCS": SCCSBackend,
}


def get_backend(kind: str) -> Backend:
    """
    Get a back-end by kind.

    Args:
        kind: "RCS" or "SCCS" (case-insensitive)

    Returns:
        Back-end instance

    Raises:
        ConfigError: If kind is unknown
    """
    try:
        backend: Backend = _BACKENDS[kind.upper()]()
    except KeyError:
        raise ConfigError(
            f"Invalid back-end: {kind}. Must be one of: {', '.join(_BACKENDS)}"
        ) from None
    return backend


def detect_backend(root: Path, preferred: Optional[str] = None) -> Backend:
    """
    Select the back-end for a repository root, once.

    Order: explicit preference, an existing RCS/ or SCCS/ directory under
    root, then whichever tool is installed (RCS first).

    Args:
        root: Repository root
        preferred: Configured back-end kind, if any

    Returns:
        Back-end instance
    """
    if preferred:
        logger.debug(f"Using configured back-end: {preferred}")
        return get_backend(preferred)

    for kind in _BACKENDS:
        if (root / kind).is_dir():
            logger.debug(f"Found {kind}/ under {root}")
            return get_backend(kind)

    if shutil.which("rcs") is None and shutil.which("admin") is not None:
        logger.debug("RCS not installed, falling back to SCCS")
        return get_backend("SCCS")

    return get_backend("RCS")


__all__ = [
    "Backend",
    "CommandSpec",
    "LogicalOperation",
    "PropertyKind",
    "RCSBackend",
    "SCCSBackend",
    "detect_backend",
    "get_backend",
]
