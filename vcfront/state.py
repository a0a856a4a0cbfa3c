"""State inference: what is a file's version-control state, as cheaply as possible."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from vcfront.adapter import BackendCommandAdapter
from vcfront.backends.protocol import Backend, LogicalOperation, PropertyKind
from vcfront.cache import PropertyCache
from vcfront.config import Config
from vcfront.probes import files
from vcfront.probes.files import PermissionVerdict

logger = logging.getLogger(__name__)

# Checkout timestamp meaning "modified since checkout, don't trust mtime"
STALE_TIMESTAMP = float("nan")


class VCStateKind(str, Enum):
    """Inferred version-control states."""

    UNREGISTERED = "unregistered"
    UNLOCKED = "unlocked"
    LOCKED_BY_ME_UNCHANGED = "locked-by-me-unchanged"
    LOCKED_BY_ME_CHANGED = "locked-by-me-changed"
    LOCKED_BY_OTHER = "locked-by-other"


@dataclass(frozen=True)
class VCState:
    """A file's believed state; owner is set only for LOCKED_BY_OTHER."""

    kind: VCStateKind
    owner: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self.kind in (
            VCStateKind.LOCKED_BY_ME_UNCHANGED,
            VCStateKind.LOCKED_BY_ME_CHANGED,
            VCStateKind.LOCKED_BY_OTHER,
        )

    def __str__(self) -> str:
        if self.owner:
            return f"{self.kind.value} ({self.owner})"
        return self.kind.value


UNREGISTERED = VCState(VCStateKind.UNREGISTERED)
UNLOCKED = VCState(VCStateKind.UNLOCKED)
LOCKED_BY_ME_UNCHANGED = VCState(VCStateKind.LOCKED_BY_ME_UNCHANGED)
LOCKED_BY_ME_CHANGED = VCState(VCStateKind.LOCKED_BY_ME_CHANGED)


def locked_by_other(owner: str) -> VCState:
    return VCState(VCStateKind.LOCKED_BY_OTHER, owner)


class StateInference:
    """Computes VCState from permission bits first, the back-end second."""

    def __init__(
        self,
        config: Config,
        backend: Backend,
        adapter: BackendCommandAdapter,
        cache: PropertyCache,
        identity: str,
    ) -> None:
        """
        Initialize inference engine.

        Args:
            config: Config (mistrust settings)
            backend: Back-end of this repository root
            adapter: Command adapter (for the zero-diff check)
            cache: Property cache
            identity: Calling user's login name
        """
        self._config = config
        self._backend = backend
        self._adapter = adapter
        self._cache = cache
        self.identity = identity

    def permission_verdict(self, file: Path) -> PermissionVerdict:
        """
        Fast path: classify the workfile's mode bits.

        Never runs a back-end command.
        """
        return files.probe_permissions(file)

    def trusts_permissions(self, file: Path, trust_permissions: bool = True) -> bool:
        """
        Check whether the fast path may be used for a file.

        Args:
            file: Workfile path
            trust_permissions: Caller's trust setting

        Returns:
            False if the caller or config distrusts permission bits here
        """
        if not trust_permissions:
            return False
        master = self._cache.master(file)
        master_dir = master.parent if master else file.parent
        return not self._config.should_mistrust(master_dir)

    def locking_user(self, file: Path, trust_permissions: bool = True) -> Optional[str]:
        """
        Get the user holding the lock on a registered file.

        Uses permission bits when they are decisive; otherwise, or when
        distrusted, reads LockingUser from the property cache.

        Args:
            file: Workfile path
            trust_permissions: Allow the permission-bit fast path

        Returns:
            Login name of the lock holder, or None if unlocked
        """
        if self.trusts_permissions(file, trust_permissions):
            verdict = self.permission_verdict(file)
            if verdict is PermissionVerdict.UNLOCKED:
                logger.debug(f"{file}: read-only, unlocked")
                return None
            if verdict is PermissionVerdict.MINE:
                logger.debug(f"{file}: owner-writable, locked by {self.identity}")
                return self.identity

        return self._cache.get(file, PropertyKind.LOCKING_USER)

    def workfile_unchanged(self, file: Path) -> bool:
        """
        Check whether a locked workfile is identical to its latest version.

        A cached checkout timestamp equal to the current mtime answers
        without running anything; otherwise a diff decides and the
        timestamp is updated to match the answer.

        Returns:
            True if byte-for-byte identical to the last checked-in version
        """
        record = self._cache.tracked(file)
        mtime = files.get_file_mtime(file)

        if (
            record.checkout_timestamp is not None
            and mtime is not None
            and record.checkout_timestamp == mtime
        ):
            logger.debug(f"{file}: mtime matches checkout time, unchanged")
            return True

        result = self._adapter.run(LogicalOperation.DIFF, file)
        if result.status == 0:
            record.checkout_timestamp = mtime
            return True

        record.checkout_timestamp = STALE_TIMESTAMP
        return False

    def infer_state(self, file: Path, trust_permissions: bool = True) -> VCState:
        """
        Infer a file's version-control state.

        Args:
            file: Workfile path
            trust_permissions: Allow the permission-bit fast path

        Returns:
            VCState
        """
        if self._cache.master(file) is None:
            return UNREGISTERED

        owner = self.locking_user(file, trust_permissions)
        if owner is None:
            return UNLOCKED
        if owner != self.identity:
            return locked_by_other(owner)
        if self.workfile_unchanged(file):
            return LOCKED_BY_ME_UNCHANGED
        return LOCKED_BY_ME_CHANGED

    def mode_line(self, file: Path) -> Optional[str]:
        """
        Render the lock-state indicator for a file.

        RCS-1.3 when unlocked, RCS:1.3 when locked by the calling user,
        RCS:alice:1.3 when locked by someone else.

        Returns:
            Indicator string, or None if the file is unregistered
        """
        if self._cache.master(file) is None:
            return None

        owner = self.locking_user(file)
        kind = self._backend.kind
        if owner is None:
            version = self._cache.get(file, PropertyKind.LATEST_VERSION) or "?"
            return f"{kind}-{version}"

        version = (
            self._cache.get(file, PropertyKind.LOCKED_VERSION)
            or self._cache.get(file, PropertyKind.LATEST_VERSION)
            or "?"
        )
        if owner == self.identity:
            return f"{kind}:{version}"
        return f"{kind}:{owner}:{version}"
