"""Log-entry commit flow: collect a message, then run the pending operation."""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from itertools import count
from pathlib import Path
from typing import Callable, Optional

from vcfront.adapter import ExecutionResult
from vcfront.backends.protocol import Backend
from vcfront.config import DEFAULT_COMMENT_RING_SIZE, Config
from vcfront.errors import LogEntryTooLong, SessionClosedError, UserCancelled, UserInputError
from vcfront.operations import Operations
from vcfront.ui import Interaction

logger = logging.getLogger(__name__)

_session_ids = count(1)


class PendingKind(str, Enum):
    """Operations that wait on a log message."""

    ADMIN = "admin"
    CHECKIN = "checkin"
    STEAL_LOCK = "steal-lock"


class SessionStatus(str, Enum):
    """Lifecycle of an editing session."""

    PENDING = "pending"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass
class PendingLogOperation:
    """An operation parked until its log message is supplied."""

    kind: PendingKind
    file: Path
    version: Optional[str] = None
    owner: Optional[str] = None
    after_hook: Optional[Callable[[], object]] = None


@dataclass
class EditingSession:
    """An open log-message editing surface bound to one pending operation."""

    id: int
    operation: PendingLogOperation
    header: str
    text: str = ""
    status: SessionStatus = SessionStatus.PENDING
    result: Optional[ExecutionResult] = None
    hook_result: object = None

    @property
    def is_pending(self) -> bool:
        return self.status is SessionStatus.PENDING


class CommentRing:
    """Bounded history of submitted log messages, newest last."""

    def __init__(self, size: int = DEFAULT_COMMENT_RING_SIZE, entries: Optional[list[str]] = None):
        self.size = size
        self._entries: list[str] = list(entries or [])[-size:]
        self._index: Optional[int] = None  # 0 is the newest entry

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[str]:
        """Entries, newest first."""
        return list(reversed(self._entries))

    def add(self, text: str) -> None:
        """Remember a submitted message (empty and repeated messages are skipped)."""
        self._index = None
        if not text.strip() or (self._entries and self._entries[-1] == text):
            return
        self._entries.append(text)
        del self._entries[: -self.size]

    def _at(self, index: int) -> str:
        self._index = index % len(self._entries)
        return self._entries[-1 - self._index]

    def previous(self) -> Optional[str]:
        """Step to an older message, wrapping around."""
        if not self._entries:
            return None
        return self._at(0 if self._index is None else self._index + 1)

    def next(self) -> Optional[str]:
        """Step to a newer message, wrapping around."""
        if not self._entries:
            return None
        return self._at(-1 if self._index is None else self._index - 1)

    def search(self, pattern: str, forward: bool = False) -> Optional[str]:
        """
        Find the nearest message matching a regular expression.

        Searches older messages from the current position, or newer ones
        when forward is set.

        Args:
            pattern: Regular expression
            forward: Search towards newer messages

        Returns:
            The matching message, or None

        Raises:
            UserInputError: If pattern is not a valid regular expression
        """
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise UserInputError(f"Invalid pattern {pattern!r}: {e}") from e

        total = len(self._entries)
        if forward:
            start = total if self._index is None else self._index
            candidates = range(start - 1, -1, -1)
        else:
            start = -1 if self._index is None else self._index
            candidates = range(start + 1, total)

        for index in candidates:
            if regex.search(self._entries[-1 - index]):
                return self._at(index)
        return None

    @classmethod
    def load(cls, path: Path, size: int = DEFAULT_COMMENT_RING_SIZE) -> "CommentRing":
        """Load a ring saved by save(); a missing or corrupt file gives an empty ring."""
        if not path.exists():
            return cls(size)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable comment ring {path}: {e}")
            return cls(size)
        if not isinstance(data, list):
            logger.warning(f"Ignoring malformed comment ring {path}")
            return cls(size)
        return cls(size, [str(entry) for entry in data])

    def save(self, path: Path) -> None:
        """Write the ring as a JSON list, oldest first."""
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text(json.dumps(self._entries, indent=2), encoding="utf-8")
        temp_path.replace(path)


def _header_for(operation: PendingLogOperation, backend_kind: str) -> str:
    prompts = {
        PendingKind.ADMIN: "Enter initial comment.",
        PendingKind.CHECKIN: "Enter a change comment.",
        PendingKind.STEAL_LOCK: "Enter a brief explanation why you are stealing the lock.",
    }
    lines = [prompts[operation.kind], f"File: {operation.file}", f"Back-end: {backend_kind}"]
    if operation.version:
        lines.append(f"Version: {operation.version}")
    if operation.owner:
        lines.append(f"Lock held by: {operation.owner}")
    return "\n".join(lines)


class CommitFlow:
    """Two-phase commit: begin_commit() opens a session, complete_commit() finishes it."""

    def __init__(
        self,
        config: Config,
        backend: Backend,
        operations: Operations,
        ring: Optional[CommentRing] = None,
        ring_path: Optional[Path] = None,
    ) -> None:
        """
        Initialize commit flow.

        Args:
            config: Config (comment length override, ring size)
            backend: Back-end (comment length ceiling)
            operations: Operations the sessions dispatch to
            ring: Comment ring (a fresh one if not provided)
            ring_path: Where to persist the ring after each submission
        """
        self._config = config
        self._backend = backend
        self._operations = operations
        self.ring = ring or CommentRing(config.comment_ring_size)
        self._ring_path = ring_path
        self.pending: list[EditingSession] = []

    @property
    def comment_limit(self) -> Optional[int]:
        """Maximum log message length (None for unlimited)."""
        if self._config.max_comment_length is not None:
            return self._config.max_comment_length
        return self._backend.max_comment_length

    def begin_commit(self, file: Path, operation: PendingLogOperation) -> EditingSession:
        """
        Open an editing session for a pending operation.

        Args:
            file: Originating workfile
            operation: What to run once the message is in

        Returns:
            The pending EditingSession
        """
        operation.file = file
        session = EditingSession(
            id=next(_session_ids),
            operation=operation,
            header=_header_for(operation, self._backend.kind),
        )
        self.pending.append(session)
        logger.debug(f"Opened log session {session.id} for {operation.kind.value} on {file}")
        return session

    def validate(self, text: str) -> None:
        """
        Check a message against the back-end's constraints.

        Raises:
            LogEntryTooLong: If the message exceeds the ceiling
        """
        limit = self.comment_limit
        if limit is not None and len(text) > limit:
            raise LogEntryTooLong(len(text), limit)

    def complete_commit(self, session: EditingSession, text: str) -> ExecutionResult:
        """
        Submit a message and run the session's pending operation.

        The session stays open if validation or the back-end command
        fails, so the message can be corrected and resubmitted.

        Args:
            session: Pending session
            text: Log message

        Returns:
            ExecutionResult of the dispatched operation

        Raises:
            SessionClosedError: If the session is no longer pending
            LogEntryTooLong: If the message is too long
            BackendCommandFailed: If the operation fails
        """
        if not session.is_pending:
            raise SessionClosedError(f"Log session {session.id} is {session.status.value}")

        session.text = text
        self.validate(text)

        self.ring.add(text)
        if self._ring_path is not None:
            try:
                self.ring.save(self._ring_path)
            except OSError as e:
                logger.warning(f"Failed to save comment ring: {e}")

        op = session.operation
        if op.kind is PendingKind.ADMIN:
            result = self._operations.register(op.file, op.version, text)
        elif op.kind is PendingKind.CHECKIN:
            result = self._operations.checkin(op.file, op.version, text)
        else:
            result = self._operations.steal_lock(op.file, op.version, op.owner, text)

        session.result = result
        session.status = SessionStatus.COMPLETED
        self.pending.remove(session)
        logger.debug(f"Completed log session {session.id}")

        if op.after_hook is not None:
            session.hook_result = op.after_hook()
        return result

    def abandon(self, session: EditingSession) -> None:
        """
        Drop a pending session without running its operation.

        Locks already held stay held.
        """
        if not session.is_pending:
            raise SessionClosedError(f"Log session {session.id} is {session.status.value}")
        session.status = SessionStatus.ABANDONED
        self.pending.remove(session)
        logger.info(f"Abandoned {session.operation.kind.value} of {session.operation.file}")

    def run_interactive(self, session: EditingSession, ui: Interaction) -> ExecutionResult:
        """
        Prompt for a message until one is accepted or the user gives up.

        Returns:
            ExecutionResult of the dispatched operation

        Raises:
            UserCancelled: If the user abandons the prompt
        """
        while True:
            text = ui.prompt_for_text(session.header, session.text)
            if text is None:
                self.abandon(session)
                raise UserCancelled("Log entry abandoned")
            try:
                return self.complete_commit(session, text)
            except LogEntryTooLong as e:
                ui.notify(e.message)
