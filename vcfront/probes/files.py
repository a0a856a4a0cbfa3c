"""Filesystem probes: modification times, ownership, identity, permission bits."""

import getpass
import logging
import os
import stat
from enum import Enum
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_WRITE_BITS = stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH
_READ_BITS = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH


class PermissionVerdict(str, Enum):
    """What a workfile's mode bits say about its lock."""

    UNLOCKED = "unlocked"  # r--r--r--
    MINE = "mine"  # rw-r--r-- and owned by us
    AMBIGUOUS = "ambiguous"  # anything else, or no workfile


def get_file_mtime(path: Path) -> Optional[float]:
    """
    Get modification time of a file.

    Returns:
        mtime in seconds, or None if the file doesn't exist
    """
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return None


def get_file_owner(path: Path) -> Optional[int]:
    """
    Get the numeric owner of a file.

    Returns:
        uid, or None if the file doesn't exist
    """
    try:
        return path.stat().st_uid
    except FileNotFoundError:
        return None


def current_identity() -> str:
    """
    Get the login name of the calling user.

    This is the name back-end tools record as lock owner and author.
    """
    return getpass.getuser()


def current_uid() -> int:
    """Get the numeric id of the calling process."""
    return os.getuid()


def classify_permissions(mode: int, owner_uid: int, uid: int) -> PermissionVerdict:
    """
    Classify mode bits against the back-end permission contract.

    Execute bits are ignored. A checked-in workfile is readable by all and
    writable by none; a workfile locked by its owner adds only owner write.

    Args:
        mode: st_mode of the workfile
        owner_uid: uid owning the workfile
        uid: uid of the calling process

    Returns:
        PermissionVerdict
    """
    if mode & _READ_BITS != _READ_BITS:
        return PermissionVerdict.AMBIGUOUS

    write = mode & _WRITE_BITS
    if write == 0:
        return PermissionVerdict.UNLOCKED
    if write == stat.S_IWUSR and owner_uid == uid:
        return PermissionVerdict.MINE
    return PermissionVerdict.AMBIGUOUS


def probe_permissions(path: Path) -> PermissionVerdict:
    """
    Classify a workfile by its current mode bits.

    Args:
        path: Workfile path

    Returns:
        PermissionVerdict (AMBIGUOUS if the workfile is missing)
    """
    try:
        st = path.stat()
    except FileNotFoundError:
        logger.debug(f"No workfile for permission probe: {path}")
        return PermissionVerdict.AMBIGUOUS

    return classify_permissions(st.st_mode, st.st_uid, current_uid())


def make_owner_writable(path: Path) -> bool:
    """
    Add owner write permission to a workfile.

    Returns:
        True if the mode was changed, False if we may not change it
    """
    try:
        mode = path.stat().st_mode
        path.chmod(stat.S_IMODE(mode) | stat.S_IWUSR)
        return True
    except PermissionError as e:
        logger.warning(f"Cannot make {path} writable: {e}")
        return False
