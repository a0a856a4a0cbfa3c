"""Per-file property cache with explicit, whole-record invalidation."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from vcfront.adapter import BackendCommandAdapter
from vcfront.backends.protocol import Backend, Properties, PropertyKind

logger = logging.getLogger(__name__)


@dataclass
class TrackedFile:
    """What the tracker believes about one workfile."""

    path: Path
    master: Optional[Path] = None
    master_resolved: bool = False
    properties: Properties = field(default_factory=dict)
    checkout_timestamp: Optional[float] = None


class PropertyCache:
    """
    Lazily populated per-file properties.

    Values are never refreshed behind the caller's back: a property is
    fetched on first need, and only invalidate() or forget() make the
    next read go to the back-end again.
    """

    def __init__(self, backend: Backend, adapter: BackendCommandAdapter, identity: str) -> None:
        """
        Initialize cache.

        Args:
            backend: Back-end used to resolve masters and fetch properties
            adapter: Command adapter passed through to the back-end
            identity: Calling user's login name
        """
        self._backend = backend
        self._adapter = adapter
        self._identity = identity
        self._files: dict[Path, TrackedFile] = {}
        self.fetch_count = 0

    def tracked(self, file: Path) -> TrackedFile:
        """Get (creating on first use) the record for a workfile."""
        file = file.absolute()
        record = self._files.get(file)
        if record is None:
            record = TrackedFile(path=file)
            self._files[file] = record
        return record

    def master(self, file: Path) -> Optional[Path]:
        """
        Resolve a file's master, once per record.

        Returns:
            Master path, or None if the file is not under version control
        """
        record = self.tracked(file)
        if not record.master_resolved:
            record.master = self._backend.find_master(record.path)
            record.master_resolved = True
            logger.debug(f"Master for {record.path}: {record.master}")
        return record.master

    def fetch_all(self, file: Path) -> Properties:
        """
        Refresh all properties of a file with one back-end query.

        Slots the back-end reports nothing for are stored as None.

        Returns:
            The freshly cached properties
        """
        record = self.tracked(file)
        master = self.master(file)
        if master is None:
            record.properties = {kind: None for kind in PropertyKind}
            return record.properties

        fetched = self._backend.fetch_properties(
            self._adapter, record.path, master, self._identity
        )
        self.fetch_count += 1
        record.properties = {kind: fetched.get(kind) for kind in PropertyKind}
        return record.properties

    def get(self, file: Path, kind: PropertyKind) -> Optional[str]:
        """
        Get a cached property, fetching all of them on a miss.

        Args:
            file: Workfile path
            kind: Property to read

        Returns:
            Property value, or None if the back-end reports none
        """
        record = self.tracked(file)
        if kind not in record.properties:
            self.fetch_all(file)
        return record.properties.get(kind)

    def invalidate(self, file: Path) -> None:
        """Drop all cached properties of a file (master and timestamp stay)."""
        record = self.tracked(file)
        record.properties = {}
        logger.debug(f"Invalidated properties for {record.path}")

    def forget(self, file: Path) -> None:
        """Drop the whole record, including the master reference."""
        self._files.pop(file.absolute(), None)
        logger.debug(f"Forgot {file}")
