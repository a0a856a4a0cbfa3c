"""SCCS back-end implementation."""

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

SCCS_MAX_COMMENT_LENGTH = 512

_DELTA_RE = re.compile(r"^\x01d D (\S+) \S+ \S+ (\S+)", re.MULTILINE)
_PFILE_RE = re.compile(r"^(\S+) \S+ (\S+)", re.MULTILINE)


def _remove_workfile(file: Path) -> None:
    """admin -i leaves the original in place; get refuses to overwrite it."""
    if file.exists():
        logger.debug(f"Removing {file} after admin")
        file.unlink()


def pfile_for(master: Path) -> Path:
    """Map SCCS/s.foo to SCCS/p.foo."""
    return master.parent / ("p." + master.name[2:])


def parse_sccs(master_text: str, pfile_text: str, identity: str) -> Properties:
    """
    Parse an s-file delta table and p-file into the four cached properties.

    Args:
        master_text: Contents of the s-file (delta table newest first)
        pfile_text: Contents of the p-file ("" if there is none)
        identity: Calling user's login name

    Returns:
        Properties (None where the master reports nothing)
    """
    deltas = _DELTA_RE.findall(master_text)
    latest = deltas[0][0] if deltas else None
    yours = next((sid for sid, user in deltas if user == identity), None)

    locking_user: Optional[str] = None
    locked_version: Optional[str] = None
    lock = _PFILE_RE.search(pfile_text)
    if lock:
        locked_version, locking_user = lock.group(1), lock.group(2)

    return {
        PropertyKind.LOCKING_USER: locking_user,
        PropertyKind.LOCKED_VERSION: locked_version,
        PropertyKind.LATEST_VERSION: latest,
        PropertyKind.LATEST_VERSION_BY_CALLING_USER: yours,
    }


class SCCSBackend:
    """SCCS implementation of the back-end protocol."""

    kind: Literal["RCS", "SCCS"] = "SCCS"
    subdirectory = "SCCS"
    master_templates = ("SCCS/s.{name}", "s.{name}")
    max_comment_length: Optional[int] = SCCS_MAX_COMMENT_LENGTH
    uses_name_registry = True

    def command_table(self) -> CommandTable:
        """Get SCCS commands for each logical operation."""
        return {
            LogicalOperation.REGISTER: (
                CommandSpec(
                    "admin",
                    ("-fb", "-i{workfile}", "-r{rev}", "-y{comment}"),
                    target="master",
                    after=_remove_workfile,
                ),
                CommandSpec("get", target="master", when="keep"),
            ),
            LogicalOperation.CHECKOUT: (
                CommandSpec("get", ("-e{lock}", "-r{rev}"), target="master"),
            ),
            LogicalOperation.CHECKIN: (
                CommandSpec("delta", ("-r{rev}", "-y{comment}"), target="master"),
                CommandSpec("get", target="master", when="keep"),
            ),
            LogicalOperation.REVERT: (
                CommandSpec("unget", target="master"),
                CommandSpec("get", target="master"),
            ),
            LogicalOperation.STEAL_LOCK_RELEASE: (
                CommandSpec("unget", ("-n", "-r{version}"), target="master"),
            ),
            LogicalOperation.STEAL_LOCK_ACQUIRE: (
                CommandSpec("get", ("-g", "-e", "-r{version}"), target="master"),
            ),
            LogicalOperation.UNCHECK: (CommandSpec("rmdel", ("-r{rev}",), target="master"),),
            LogicalOperation.PRINT_LOG: (CommandSpec("prs", target="master"),),
            LogicalOperation.DIFF: (
                CommandSpec(
                    "vcdiff", ("-q", "-r{rev1}", "-r{rev2}"), target="master", max_status=1
                ),
            ),
        }

    def find_master(self, file: Path) -> Optional[Path]:
        """Resolve the SCCS master (SCCS/s.f or s.f)."""
        return find_master(self.master_templates, file)

    def new_master_path(self, file: Path) -> Path:
        """New masters always go in SCCS/, created on demand."""
        subdir = file.parent / self.subdirectory
        subdir.mkdir(exist_ok=True)
        return subdir / f"s.{file.name}"

    def fetch_properties(
        self,
        adapter: "BackendCommandAdapter",
        file: Path,
        master: Path,
        identity: str,
    ) -> Properties:
        """
        Fetch properties by reading the s-file and p-file.

        SCCS keeps lock records in a separate p-file, so the query is a
        read of both files rather than a tool invocation.

        Returns:
            Properties parsed from the master and lock record
        """
        try:
            master_text = master.read_text(encoding="latin-1")
        except OSError as e:
            logger.error(f"Failed to read SCCS master {master}: {e}")
            raise

        pfile = pfile_for(master)
        pfile_text = pfile.read_text(encoding="latin-1") if pfile.exists() else ""

        properties = parse_sccs(master_text, pfile_text, identity)
        logger.debug(f"SCCS properties for {file}: {properties}")
        return properties
