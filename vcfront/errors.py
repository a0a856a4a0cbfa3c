"""vcfront exception hierarchy with exit codes."""

from pathlib import Path
from typing import Optional

# Exit code constants (simple 0-5 range)
EXIT_SUCCESS = 0  # Operation succeeded
EXIT_ERROR = 1  # Generic error / back-end failure
EXIT_NOT_READY = 2  # Cancelled by user / precondition not met
EXIT_BLOCKED = 3  # Blocked by a lock held somewhere
EXIT_PARTIAL = 4  # Partial success (some files failed)
EXIT_USAGE = 5  # Invalid usage / arguments


class VcError(Exception):
    """Base exception for all vcfront errors."""

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


class PermanentError(VcError):
    """Non-retryable errors (back-end failures, config errors)."""

    exit_code = EXIT_ERROR


class ConfigError(PermanentError):
    """Configuration errors (invalid values, unknown back-end)."""

    exit_code = EXIT_ERROR

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message, exit_code=self.exit_code)


class UserInputError(VcError):
    """Invalid usage / arguments."""

    exit_code = EXIT_USAGE

    def __init__(self, message: str = "Invalid arguments"):
        super().__init__(message, exit_code=self.exit_code)


class BlockedError(VcError):
    """Operation blocked by a lock."""

    exit_code = EXIT_BLOCKED

    def __init__(self, message: str = "Blocked by a lock"):
        super().__init__(message, exit_code=self.exit_code)


class BackendCommandFailed(PermanentError):
    """
    A back-end command exited above its acceptable status.

    Never retried automatically: the captured output is surfaced verbatim.
    """

    def __init__(self, op: str, status: int, output: str, command: Optional[list[str]] = None):
        self.op = op
        self.status = status
        self.output = output
        self.command = command or []
        cmd_str = " ".join(self.command) if self.command else op
        message = f"Running {cmd_str}...FAILED (status {status})"
        if output.strip():
            message += f"\n{output.rstrip()}"
        super().__init__(message, exit_code=self.exit_code)


class UnsupportedOperation(PermanentError):
    """Back-end has no command for a logical operation."""

    def __init__(self, op: str, kind: str):
        self.op = op
        self.kind = kind
        super().__init__(f"{kind} back-end does not support {op}", exit_code=self.exit_code)


class NoAssociatedFile(UserInputError):
    """Operation invoked without a file to act on."""

    def __init__(self, message: str = "There is no file associated with this operation"):
        super().__init__(message)


class NotRegisteredError(UserInputError):
    """File is not under version control."""

    def __init__(self, file: Path):
        self.file = file
        super().__init__(f"{file} is not under version control")


class AlreadyRegisteredError(UserInputError):
    """File already has a master."""

    def __init__(self, file: Path):
        self.file = file
        super().__init__(f"{file} is already registered")


class UserCancelled(VcError):
    """User declined a confirmation or aborted a prompt."""

    exit_code = EXIT_NOT_READY

    def __init__(self, message: str = "Cancelled by user"):
        super().__init__(message, exit_code=self.exit_code)


class LogEntryTooLong(UserInputError):
    """Commit message exceeds the back-end's length ceiling."""

    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(f"Log must be less than {limit} characters (got {length})")


class SnapshotBlocked(BlockedError):
    """A file in the snapshot subtree is locked."""

    def __init__(self, locked_file: Path, owner: Optional[str] = None):
        self.locked_file = locked_file
        self.owner = owner
        message = f"File {locked_file} is locked"
        if owner:
            message += f" by {owner}"
        super().__init__(message + "; cannot proceed with snapshot")


class FileLockedError(BlockedError):
    """Operation requires the file to be unlocked."""

    def __init__(self, file: Path, owner: str, message: Optional[str] = None):
        self.file = file
        self.owner = owner
        super().__init__(message or f"{file} is locked by {owner}")


class SessionClosedError(UserInputError):
    """Commit session was already completed or abandoned."""

    def __init__(self, message: str = "Log entry session is no longer pending"):
        super().__init__(message)
