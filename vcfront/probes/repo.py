"""Repository probes: root discovery and tree walking."""

import logging
import os
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

STATE_DIR_NAME = ".vcfront"


def find_repo_root(start: Optional[Path] = None) -> Path:
    """
    Find the repository root.

    The root is the nearest ancestor of start holding a .vcfront directory.
    Without one, start itself is the root.

    Args:
        start: Directory to search from (default: cwd)

    Returns:
        Resolved path to repository root
    """
    start = (start or Path.cwd()).resolve()
    if start.is_file():
        start = start.parent

    for candidate in [start, *start.parents]:
        if (candidate / STATE_DIR_NAME).is_dir():
            logger.debug(f"Repo root: {candidate}")
            return candidate

    logger.debug(f"No {STATE_DIR_NAME} found, using {start} as root")
    return start


def walk_files(root: Path, skip_dirs: frozenset[str] = frozenset()) -> Iterator[Path]:
    """
    Yield every regular file under root, in sorted order.

    Dot-directories and any directory named in skip_dirs (back-end
    metadata such as RCS/ or SCCS/) are not descended into.

    Args:
        root: Directory (or single file) to walk
        skip_dirs: Directory names to prune

    Yields:
        Absolute file paths
    """
    root = root.resolve()
    if root.is_file():
        yield root
        return

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in skip_dirs)
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.is_file() and not path.is_symlink():
                yield path
