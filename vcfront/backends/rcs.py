"""RCS back-end implementation."""

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Optional

from vcfront.backends.protocol import (
    CommandSpec,
    CommandTable,
    LogicalOperation,
    Properties,
    PropertyKind,
    find_master,
)

if TYPE_CHECKING:
    from vcfront.adapter import BackendCommandAdapter

logger = logging.getLogger(__name__)

_HEAD_RE = re.compile(r"^head:\s*(\S+)", re.MULTILINE)
_LOCKS_RE = re.compile(r"^locks:[^\n]*\n((?:\t[^\n]*\n)*)", re.MULTILINE)
_LOCK_ENTRY_RE = re.compile(r"^\t([^:\s]+):\s*(\S+)", re.MULTILINE)
_REVISION_RE = re.compile(
    r"^revision ([0-9.]+)[^\n]*\ndate: [^\n]*?author: ([^;]+);",
    re.MULTILINE,
)


def parse_rlog(output: str, identity: str) -> Properties:
    """
    Parse rlog output into the four cached properties.

    Args:
        output: Full rlog output for one file
        identity: Calling user's login name

    Returns:
        Properties (None where rlog reports nothing)
    """
    head = _HEAD_RE.search(output)

    locking_user: Optional[str] = None
    locked_version: Optional[str] = None
    locks = _LOCKS_RE.search(output)
    if locks:
        entry = _LOCK_ENTRY_RE.search(locks.group(1))
        if entry:
            locking_user, locked_version = entry.group(1), entry.group(2)

    yours: Optional[str] = None
    for revision, author in _REVISION_RE.findall(output):
        if author.strip() == identity:
            yours = revision
            break

    return {
        PropertyKind.LOCKING_USER: locking_user,
        PropertyKind.LOCKED_VERSION: locked_version,
        PropertyKind.LATEST_VERSION: head.group(1) if head else None,
        PropertyKind.LATEST_VERSION_BY_CALLING_USER: yours,
    }


class RCSBackend:
    """RCS implementation of the back-end protocol."""

    kind: Literal["RCS", "SCCS"] = "RCS"
    subdirectory = "RCS"
    master_templates = ("RCS/{name},v", "{name},v", "RCS/{name}")
    max_comment_length: Optional[int] = None
    uses_name_registry = False

    def command_table(self) -> CommandTable:
        """Get RCS commands for each logical operation."""
        return {
            LogicalOperation.REGISTER: (
                CommandSpec("ci", ("-i", "-u{keep}", "-r{rev}", "-t-{comment}", "-m{comment}")),
            ),
            LogicalOperation.CHECKOUT: (CommandSpec("co", ("-l{lock}", "-r{rev}")),),
            LogicalOperation.CHECKIN: (
                CommandSpec("ci", ("-u{keep}", "-r{rev}", "-m{comment}")),
            ),
            LogicalOperation.REVERT: (CommandSpec("co", ("-f", "-u")),),
            LogicalOperation.STEAL_LOCK_RELEASE: (CommandSpec("rcs", ("-M", "-u{rev}")),),
            LogicalOperation.STEAL_LOCK_ACQUIRE: (CommandSpec("rcs", ("-l{rev}",)),),
            LogicalOperation.UNCHECK: (CommandSpec("rcs", ("-o{rev}",)),),
            LogicalOperation.PRINT_LOG: (CommandSpec("rlog"),),
            LogicalOperation.DIFF: (
                CommandSpec("rcsdiff", ("-q", "-r{rev1}", "-r{rev2}"), max_status=1),
            ),
            LogicalOperation.ASSIGN_NAME: (CommandSpec("rcs", ("-n{name}:{rev}",)),),
        }

    def find_master(self, file: Path) -> Optional[Path]:
        """Resolve the RCS master (RCS/f,v, f,v or RCS/f)."""
        return find_master(self.master_templates, file)

    def new_master_path(self, file: Path) -> Path:
        """ci puts new masters in RCS/ when that directory exists."""
        if (file.parent / self.subdirectory).is_dir():
            return file.parent / self.subdirectory / f"{file.name},v"
        return file.parent / f"{file.name},v"

    def fetch_properties(
        self,
        adapter: "BackendCommandAdapter",
        file: Path,
        master: Path,
        identity: str,
    ) -> Properties:
        """
        Fetch properties with a single rlog.

        Args:
            adapter: Command adapter
            file: Workfile path
            master: Master path
            identity: Calling user's login name

        Returns:
            Properties parsed from rlog
        """
        result = adapter.run(LogicalOperation.PRINT_LOG, file)
        properties = parse_rlog(result.output, identity)
        logger.debug(f"RCS properties for {file}: {properties}")
        return properties
