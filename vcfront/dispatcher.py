"""Next-Action Dispatcher: do the one obvious thing for a file's current state.

| State                  | Action                                   |
|------------------------|------------------------------------------|
| unregistered           | register, then act again (checkout)      |
| unlocked               | checkout for editing                     |
| locked-by-other        | confirm, then steal the lock (log entry) |
| locked-by-me-unchanged | revert (release the lock)                |
| locked-by-me-changed   | checkin (log entry)                      |

Actions that need a log message return an open EditingSession; the caller
completes it through CommitFlow.
"""

import logging
import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from vcfront.adapter import ExecutionResult
from vcfront.cache import PropertyCache
from vcfront.commit import CommitFlow, EditingSession, PendingKind, PendingLogOperation
from vcfront.config import Config
from vcfront.errors import NoAssociatedFile, NotRegisteredError, UserCancelled, UserInputError
from vcfront.operations import Operations
from vcfront.probes.tools import SubprocessError, run_command
from vcfront.state import StateInference, VCState, VCStateKind
from vcfront.ui import Interaction

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """The single operation chosen for a state."""

    REGISTER = "register"
    CHECKOUT = "checkout"
    CLAIM_LOCK = "claim-lock"
    STEAL_LOCK = "steal-lock"
    REVERT = "revert"
    CHECKIN = "checkin"


@dataclass
class ActionResult:
    """What next_action did."""

    action: Action
    state: VCState  # State inferred before acting
    session: Optional[EditingSession] = None  # Set when a log message is still needed
    result: Optional[ExecutionResult] = None
    followup: Optional["ActionResult"] = None  # The re-invocation after register

    @property
    def pending(self) -> bool:
        """Check whether this action (or its followup) awaits a log message."""
        if self.session is not None and self.session.is_pending:
            return True
        return self.followup is not None and self.followup.pending


class NextActionDispatcher:
    """Chooses and performs the next logical operation for a file."""

    def __init__(
        self,
        config: Config,
        cache: PropertyCache,
        inference: StateInference,
        operations: Operations,
        flow: CommitFlow,
        ui: Interaction,
    ) -> None:
        self._config = config
        self._cache = cache
        self._inference = inference
        self._operations = operations
        self._flow = flow
        self._ui = ui

    def next_action(
        self,
        file: Optional[Path],
        verbose: bool = False,
        comment: Optional[str] = None,
    ) -> ActionResult:
        """
        Perform the next logical version-control operation on a file.

        Args:
            file: Workfile path
            verbose: Ask for version numbers where the action takes one
            comment: Log message to use instead of opening a session

        Returns:
            ActionResult (with an open session if a log message is needed)

        Raises:
            NoAssociatedFile: If file is None
            UserCancelled: If the user declines a prompt
            UserInputError: If comment is given for a lock held by someone else
            NotRegisteredError: If the master vanished before acting
        """
        if file is None:
            raise NoAssociatedFile()

        state = self._inference.infer_state(file)
        logger.debug(f"{file}: {state}")

        if state.kind is VCStateKind.UNREGISTERED:
            return self._register(file, state, verbose, comment)
        if state.kind is VCStateKind.UNLOCKED:
            return self._checkout(file, state)
        if state.kind is VCStateKind.LOCKED_BY_OTHER:
            return self._steal(file, state, verbose, comment)
        if state.kind is VCStateKind.LOCKED_BY_ME_UNCHANGED:
            self._revalidate(file)
            result = self._operations.revert(file, confirm=False)
            return ActionResult(Action.REVERT, state, result=result)
        return self._checkin(file, state, verbose, comment)

    def _ask_version(self, title: str) -> Optional[str]:
        answer = self._ui.prompt_for_text(title)
        if answer is None:
            raise UserCancelled()
        return answer.strip() or None

    def _revalidate(self, file: Path, need_workfile: bool = False) -> None:
        """
        Re-check the cheap preconditions right before mutating.

        Raises:
            NotRegisteredError: If the master is gone (the record is forgotten)
            UserInputError: If the workfile is required and gone
        """
        master = self._cache.master(file)
        if master is None or not master.exists():
            self._cache.forget(file)
            raise NotRegisteredError(file)
        if need_workfile and not file.exists():
            raise UserInputError(f"{file} no longer exists")

    def _register(
        self, file: Path, state: VCState, verbose: bool, comment: Optional[str]
    ) -> ActionResult:
        rev = self._ask_version(f"Initial version level for {file}:") if verbose else None

        if comment is None and not self._config.initial_comment:
            result = self._operations.register(file, rev)
            followup = self.next_action(file)
            return ActionResult(Action.REGISTER, state, result=result, followup=followup)

        pending = PendingLogOperation(
            PendingKind.ADMIN, file, rev, after_hook=lambda: self.next_action(file)
        )
        session = self._flow.begin_commit(file, pending)
        if comment is None:
            return ActionResult(Action.REGISTER, state, session=session)

        result = self._flow.complete_commit(session, comment)
        return ActionResult(
            Action.REGISTER, state, session=session, result=result, followup=session.hook_result
        )

    def _checkout(self, file: Path, state: VCState) -> ActionResult:
        self._revalidate(file)

        if (
            self._config.checkout_carefully
            and file.exists()
            and not self._inference.workfile_unchanged(file)
        ):
            if self._ui.confirm("File has unlocked changes, claim lock retaining changes?"):
                result = self._operations.claim_lock(file)
                return ActionResult(Action.CLAIM_LOCK, state, result=result)
            if not self._ui.confirm("Revert to checked-in version, instead?"):
                raise UserCancelled("Checkout aborted")
            logger.info(f"Discarding unlocked changes to {file}")
            file.unlink()

        result = self._operations.checkout(file, writable=True)
        return ActionResult(Action.CHECKOUT, state, result=result)

    def _steal(
        self, file: Path, state: VCState, verbose: bool, comment: Optional[str]
    ) -> ActionResult:
        if comment is not None:
            raise UserInputError(f"Sorry, you can't steal the lock on {file} this way")

        rev = self._ask_version("Version to steal:") if verbose else None
        target = f"{file}:{rev}" if rev else str(file)
        if not self._ui.confirm(f"Take the lock on {target} from {state.owner}?"):
            raise UserCancelled("Steal cancelled")

        self._revalidate(file)
        pending = PendingLogOperation(PendingKind.STEAL_LOCK, file, rev, owner=state.owner)
        session = self._flow.begin_commit(file, pending)
        return ActionResult(Action.STEAL_LOCK, state, session=session)

    def _checkin(
        self, file: Path, state: VCState, verbose: bool, comment: Optional[str]
    ) -> ActionResult:
        rev = self._ask_version("New version level:") if verbose else None
        self._revalidate(file, need_workfile=True)

        pending = PendingLogOperation(
            PendingKind.CHECKIN, file, rev, after_hook=lambda: self.run_checkin_hook(file)
        )
        session = self._flow.begin_commit(file, pending)
        if comment is None:
            return ActionResult(Action.CHECKIN, state, session=session)

        result = self._flow.complete_commit(session, comment)
        return ActionResult(Action.CHECKIN, state, session=session, result=result)

    def run_checkin_hook(self, file: Path) -> Optional[int]:
        """
        Run the configured checkin hook with the file path appended.

        A failing hook is logged; the checkin itself has already happened.

        Returns:
            Hook exit status, or None if no hook ran
        """
        if not self._config.checkin_hook:
            return None

        argv = shlex.split(self._config.checkin_hook) + [str(file)]
        try:
            completed = run_command(argv, cwd=file.parent)
        except SubprocessError as e:
            logger.warning(f"Checkin hook failed to start: {e}")
            return None

        if completed.returncode != 0:
            logger.warning(f"Checkin hook exited with status {completed.returncode}")
        return completed.returncode
