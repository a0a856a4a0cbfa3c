"""Single-file version-control operations.

Every mutating operation follows the same shape: run the back-end command,
and only after it succeeds invalidate the property cache, refresh the lock
indicator and journal the event. A failing command leaves the cache as it
was and is journalled as an error.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from vcfront.adapter import BackendCommandAdapter, ExecutionResult
from vcfront.backends.protocol import Backend, LogicalOperation, PropertyKind, workfile_for_master
from vcfront.cache import PropertyCache
from vcfront.config import Config
from vcfront.errors import (
    AlreadyRegisteredError,
    BackendCommandFailed,
    FileLockedError,
    NotRegisteredError,
    UserCancelled,
    UserInputError,
)
from vcfront.event_log import append_event, make_event
from vcfront.names import NameRegistry
from vcfront.probes import files
from vcfront.state import StateInference
from vcfront.ui import Interaction

logger = logging.getLogger(__name__)


def _lock_params(rev: Optional[str]) -> dict[str, object]:
    """
    Template parameters for the lock commands.

    RCS takes the version glued to the lock flag ("-l" or "-l1.3"); SCCS
    takes it as a separate "-r" option that is left out when there is none.
    """
    return {"rev": rev or True, "version": rev}


class Operations:
    """Register, checkout, checkin, revert, steal, cancel, diff, log, rename."""

    def __init__(
        self,
        config: Config,
        backend: Backend,
        adapter: BackendCommandAdapter,
        cache: PropertyCache,
        inference: StateInference,
        ui: Interaction,
    ) -> None:
        self._config = config
        self._backend = backend
        self._adapter = adapter
        self._cache = cache
        self._inference = inference
        self._ui = ui

    def _append(self, cmd: str, file: Path, version: Optional[str], error: Optional[str]) -> None:
        if not self._config.event_log:
            return
        try:
            append_event(make_event(cmd, file, version, error), self._config.state_dir)
        except OSError as e:
            logger.error(f"Failed to journal {cmd} on {file}: {e}")

    @contextmanager
    def _journal(self, cmd: str, file: Path, version: Optional[str] = None) -> Iterator[None]:
        try:
            yield
        except BackendCommandFailed as e:
            self._append(cmd, file, version, e.message)
            raise
        self._append(cmd, file, version, None)

    def refresh(self, file: Path) -> None:
        """Push the current lock-state indicator to the UI."""
        self._ui.update_indicator(file, self._inference.mode_line(file))

    def require_master(self, file: Path) -> Path:
        """
        Get a file's master.

        Raises:
            NotRegisteredError: If the file is not under version control
        """
        master = self._cache.master(file)
        if master is None:
            raise NotRegisteredError(file)
        return master

    def register(
        self, file: Path, rev: Optional[str] = None, comment: Optional[str] = None
    ) -> ExecutionResult:
        """
        Create a master for a workfile.

        Args:
            file: Workfile path
            rev: Initial version (back-end default if None)
            comment: Initial description / comment

        Returns:
            ExecutionResult

        Raises:
            AlreadyRegisteredError: If a master already exists
            UserInputError: If the workfile doesn't exist
        """
        if self._cache.master(file) is not None:
            raise AlreadyRegisteredError(file)
        if not file.exists():
            raise UserInputError(f"{file} does not exist")

        with self._journal("register", file, rev):
            result = self._adapter.run(
                LogicalOperation.REGISTER,
                file,
                self._config.register_switches,
                rev=rev,
                comment=comment or None,
                keep=self._config.keep_workfiles,
            )

        self._cache.forget(file)
        self.refresh(file)
        logger.info(f"Registered {file}")
        return result

    def checkout(
        self, file: Path, writable: bool = True, rev: Optional[str] = None
    ) -> ExecutionResult:
        """
        Materialize a workfile, optionally taking the lock.

        Args:
            file: Workfile path
            writable: Acquire the lock for editing
            rev: Version to check out (latest if None)

        Returns:
            ExecutionResult
        """
        self.require_master(file)

        with self._journal("checkout", file, rev):
            result = self._adapter.run(LogicalOperation.CHECKOUT, file, lock=writable, rev=rev)

        self._cache.invalidate(file)
        record = self._cache.tracked(file)
        record.checkout_timestamp = files.get_file_mtime(file) if writable else None
        self.refresh(file)
        logger.info(f"Checked out {file}{' for editing' if writable else ''}")
        return result

    def checkin(
        self, file: Path, rev: Optional[str] = None, comment: Optional[str] = None
    ) -> ExecutionResult:
        """
        Commit a locked workfile as a new version, releasing the lock.

        Args:
            file: Workfile path
            rev: New version number (next in sequence if None)
            comment: Log message

        Returns:
            ExecutionResult
        """
        self.require_master(file)

        with self._journal("checkin", file, rev):
            result = self._adapter.run(
                LogicalOperation.CHECKIN,
                file,
                self._config.checkin_switches,
                rev=rev,
                comment=comment or None,
                keep=self._config.keep_workfiles,
            )

        self._cache.invalidate(file)
        self._cache.tracked(file).checkout_timestamp = None
        self.refresh(file)
        logger.info(f"Checked in {file}")
        return result

    def revert(self, file: Path, confirm: bool = True) -> ExecutionResult:
        """
        Discard workfile changes, restore the latest version and release the lock.

        Args:
            file: Workfile path
            confirm: Ask first (unless suppress_confirm is set)

        Returns:
            ExecutionResult

        Raises:
            UserCancelled: If the user declines
        """
        self.require_master(file)

        if confirm and not self._config.suppress_confirm:
            if not self._ui.confirm(f"Discard changes to {file} since last checkin?"):
                raise UserCancelled("Revert cancelled")

        with self._journal("revert", file):
            result = self._adapter.run(LogicalOperation.REVERT, file)

        self._cache.invalidate(file)
        self._cache.tracked(file).checkout_timestamp = None
        self.refresh(file)
        logger.info(f"Reverted {file}")
        return result

    def steal_lock(
        self,
        file: Path,
        rev: Optional[str],
        owner: Optional[str],
        comment: str,
    ) -> ExecutionResult:
        """
        Move the lock on a file from its holder to the calling user.

        The workfile is left as it is; it is made owner-writable where we
        own it so that permission bits keep telling the truth.

        Args:
            file: Workfile path
            rev: Locked version to take (current lock if None)
            owner: Previous holder, for the notification
            comment: Explanation of why the lock was taken

        Returns:
            ExecutionResult of the acquire step
        """
        self.require_master(file)

        with self._journal("steal", file, rev):
            self._adapter.run(LogicalOperation.STEAL_LOCK_RELEASE, file, **_lock_params(rev))
            result = self._adapter.run(
                LogicalOperation.STEAL_LOCK_ACQUIRE, file, **_lock_params(rev)
            )

        if file.exists():
            files.make_owner_writable(file)

        self._cache.invalidate(file)
        self._cache.tracked(file).checkout_timestamp = None
        self.refresh(file)

        target = f"{file}:{rev}" if rev else str(file)
        message = f"Stolen lock on {target} from {owner or 'unknown'}"
        if comment:
            message += f"\n{comment}"
        self._ui.notify(message)
        logger.info(f"Stole lock on {target} from {owner}")
        return result

    def claim_lock(self, file: Path) -> ExecutionResult:
        """
        Lock an unlocked file without touching the workfile.

        Used when a workfile was edited without a lock: the edits stay and
        the lock is acquired underneath them.
        """
        self.require_master(file)

        with self._journal("claim", file):
            result = self._adapter.run(
                LogicalOperation.STEAL_LOCK_ACQUIRE, file, **_lock_params(None)
            )

        if file.exists():
            files.make_owner_writable(file)

        self._cache.invalidate(file)
        self._cache.tracked(file).checkout_timestamp = None
        self.refresh(file)
        logger.info(f"Claimed lock on {file}, keeping workfile changes")
        return result

    def cancel_version(self, file: Path, norevert: bool = False) -> Optional[ExecutionResult]:
        """
        Remove the latest version from the master.

        Args:
            file: Workfile path
            norevert: Leave the workfile alone afterwards

        Returns:
            ExecutionResult of the uncheck, or None if the user declined

        Raises:
            FileLockedError: If the file is locked
        """
        self.require_master(file)

        owner = self._inference.locking_user(file)
        if owner is not None:
            raise FileLockedError(
                file, owner, f"{file} is locked by {owner}; revert it before cancelling a version"
            )

        target = self._cache.get(file, PropertyKind.LATEST_VERSION)
        yours = self._cache.get(file, PropertyKind.LATEST_VERSION_BY_CALLING_USER)
        if target is None:
            raise UserInputError(f"{file} has no versions to cancel")

        if target == yours:
            prompt = f"Remove your version {target} from master?"
        else:
            prompt = f"Version {target} was not your change. Remove it anyway?"
        if not self._ui.confirm(prompt):
            return None

        with self._journal("cancel", file, target):
            result = self._adapter.run(LogicalOperation.UNCHECK, file, rev=target)
        self._cache.invalidate(file)

        if not norevert and self._ui.confirm("Revert to most recent remaining version?"):
            self.checkout(file, writable=False)
        else:
            self.refresh(file)

        logger.info(f"Cancelled version {target} of {file}")
        return result

    def retrieve(self, file: Path, rev: str) -> ExecutionResult:
        """Check out a specific version read-only."""
        return self.checkout(file, writable=False, rev=rev)

    def assign_name(self, file: Path, name: str) -> Optional[str]:
        """
        Bind a snapshot name to a file's latest version.

        RCS records the name in the master itself; SCCS has no symbolic
        names, so the binding goes to the directory's name registry.

        Returns:
            The version named (None for RCS, which resolves it itself)

        Raises:
            UserInputError: If the master reports no version
        """
        self.require_master(file)

        if not self._backend.uses_name_registry:
            with self._journal("assign-name", file, name):
                self._adapter.run(LogicalOperation.ASSIGN_NAME, file, name=name, rev="")
            return None

        version = self._cache.get(file, PropertyKind.LATEST_VERSION)
        if version is None:
            raise UserInputError(f"{file} has no version to name")
        NameRegistry(file.parent, self._backend.subdirectory).add(name, file.name, version)
        self._append("assign-name", file, name, None)
        return version

    def retrieve_named(self, file: Path, name: str) -> ExecutionResult:
        """
        Check out the version of a file recorded under a snapshot name.

        Raises:
            UserInputError: If the registry has no version for the file
        """
        if not self._backend.uses_name_registry:
            return self.retrieve(file, name)

        version = NameRegistry(file.parent, self._backend.subdirectory).lookup(name, file.name)
        if version is None:
            raise UserInputError(f"No version of {file} recorded under {name}")
        return self.retrieve(file, version)

    def diff(
        self, file: Path, rev1: Optional[str] = None, rev2: Optional[str] = None
    ) -> ExecutionResult:
        """
        Diff a file against the master.

        With no versions, compares the workfile to the latest version.

        Returns:
            ExecutionResult (status 0: no differences, 1: differences)
        """
        self.require_master(file)

        result = self._adapter.run(
            LogicalOperation.DIFF, file, self._config.diff_switches, rev1=rev1, rev2=rev2
        )
        if result.status == 0 and rev1 is None and rev2 is None:
            self._ui.notify(f"No changes to {file} since latest version.")
        return result

    def print_log(self, file: Path) -> str:
        """Get the back-end's version history of a file."""
        self.require_master(file)
        return self._adapter.run(LogicalOperation.PRINT_LOG, file).output

    def rename_file(self, old: Path, new: Path) -> None:
        """
        Rename a registered file together with its master.

        Snapshot registry records naming the file follow it.

        Raises:
            NotRegisteredError: If old has no master
            FileLockedError: If old is locked
            UserInputError: If new already exists
        """
        master = self.require_master(old)

        owner = self._inference.locking_user(old)
        if owner is not None:
            raise FileLockedError(old, owner, f"Please check in {old} before renaming it")
        if new.exists() or self._backend.find_master(new) is not None:
            raise UserInputError(f"{new} already exists")

        template = workfile_for_master(self._backend.master_templates, master, old)
        if template is None:
            new_master = self._backend.new_master_path(new)
        else:
            new_master = new.parent / template.format(name=new.name)

        with self._journal("rename", old, str(new)):
            new_master.parent.mkdir(parents=True, exist_ok=True)
            master.rename(new_master)
            if old.exists():
                old.rename(new)

        if self._backend.uses_name_registry:
            self._propagate_rename(old, new)

        self._cache.forget(old)
        self._cache.forget(new)
        self.refresh(new)
        logger.info(f"Renamed {old} -> {new}")

    def _propagate_rename(self, old: Path, new: Path) -> None:
        old_registry = NameRegistry(old.parent, self._backend.subdirectory)
        if old.parent == new.parent:
            old_registry.rename_file(old.name, new.name)
            return

        new_registry = NameRegistry(new.parent, self._backend.subdirectory)
        for record in old_registry.remove_file(old.name):
            new_registry.add(record.name, new.name, record.version)
