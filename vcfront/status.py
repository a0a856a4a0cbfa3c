"""Directory status collection (non-mutating)."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from vcfront.backends.protocol import PropertyKind
from vcfront.snapshot import registered_files

if TYPE_CHECKING:
    from vcfront.session import Session

logger = logging.getLogger(__name__)


@dataclass
class FileStatus:
    """Status of one registered file."""

    path: str  # Relative to the listed directory
    state: str
    owner: Optional[str]
    version: Optional[str]


def collect_file_status(session: "Session", file: Path, base: Path) -> FileStatus:
    """
    Collect the status of one registered file.

    Args:
        session: Open session
        file: Workfile path
        base: Directory paths are shown relative to

    Returns:
        FileStatus
    """
    state = session.inference.infer_state(file)
    if state.locked:
        owner = state.owner or session.identity
        version = session.cache.get(file, PropertyKind.LOCKED_VERSION)
    else:
        owner = None
        version = session.cache.get(file, PropertyKind.LATEST_VERSION)

    try:
        shown = str(file.relative_to(base))
    except ValueError:
        shown = str(file)

    return FileStatus(path=shown, state=state.kind.value, owner=owner, version=version)


def collect_status(session: "Session", root: Path, all_files: bool = False) -> list[FileStatus]:
    """
    Collect status of registered files under a directory.

    Args:
        session: Open session
        root: Directory to list
        all_files: Include unlocked files

    Returns:
        List of FileStatus, in walk order
    """
    base = root.resolve()
    if base.is_file():
        base = base.parent

    statuses = []
    for path in registered_files(session, root):
        if not all_files and session.inference.locking_user(path) is None:
            continue
        statuses.append(collect_file_status(session, path, base))

    logger.debug(f"Collected status of {len(statuses)} file(s) under {root}")
    return statuses
