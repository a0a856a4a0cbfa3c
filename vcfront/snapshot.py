"""Named snapshots across a directory subtree."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional

from vcfront.errors import SnapshotBlocked, VcError
from vcfront.probes.repo import walk_files

if TYPE_CHECKING:
    from vcfront.session import Session

logger = logging.getLogger(__name__)

# Back-end metadata directories, never walked into
METADATA_DIRS = frozenset({"RCS", "SCCS"})


def registered_files(session: "Session", root: Path) -> Iterator[Path]:
    """
    Yield every file under root that has a master.

    Args:
        session: Open session
        root: Directory (or single file)

    Yields:
        Workfile paths, in sorted walk order
    """
    for path in walk_files(root, METADATA_DIRS):
        if session.cache.master(path) is not None:
            yield path


def find_locked(session: "Session", root: Path) -> Optional[tuple[Path, str]]:
    """
    Find the first registered file under root that anyone has locked.

    Returns:
        (file, lock holder), or None if the subtree is quiescent
    """
    for path in registered_files(session, root):
        owner = session.inference.locking_user(path)
        if owner is not None:
            logger.debug(f"{path} is locked by {owner}")
            return path, owner
    return None


def is_quiescent(session: "Session", root: Path) -> bool:
    """Check that no registered file under root is locked."""
    return find_locked(session, root) is None


def _require_quiescent(session: "Session", root: Path) -> None:
    locked = find_locked(session, root)
    if locked is not None:
        raise SnapshotBlocked(*locked)


def create_snapshot(session: "Session", root: Path, name: str) -> list[Path]:
    """
    Bind name to the latest version of every registered file under root.

    Quiescence is checked once, before anything is recorded.

    Args:
        session: Open session
        root: Directory to snapshot
        name: Snapshot name

    Returns:
        Files named

    Raises:
        SnapshotBlocked: If any file under root is locked
    """
    _require_quiescent(session, root)

    named = []
    for path in registered_files(session, root):
        version = session.operations.assign_name(path, name)
        logger.debug(f"Named {path} {version or ''} as {name}")
        named.append(path)

    logger.info(f"Created snapshot {name} of {len(named)} file(s) under {root}")
    return named


def retrieve_snapshot(session: "Session", root: Path, name: str) -> list[Path]:
    """
    Check out the version recorded under name for every file under root.

    A file that cannot be retrieved (typically one without a version under
    an older snapshot) is logged and skipped; the walk goes on.

    Args:
        session: Open session
        root: Directory to restore
        name: Snapshot name

    Returns:
        Files retrieved

    Raises:
        SnapshotBlocked: If any file under root is locked
    """
    _require_quiescent(session, root)

    retrieved = []
    for path in registered_files(session, root):
        try:
            session.operations.retrieve_named(path, name)
        except VcError as e:
            logger.warning(f"Skipping {path}: {e.message}")
            continue
        retrieved.append(path)

    logger.info(f"Retrieved snapshot {name}: {len(retrieved)} file(s) under {root}")
    return retrieved
