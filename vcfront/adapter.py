"""Backend Command Adapter: run a logical operation through the back-end's command table."""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from vcfront.backends.protocol import Backend, CommandSpec, LogicalOperation
from vcfront.errors import BackendCommandFailed, UnsupportedOperation
from vcfront.probes.tools import SubprocessError, run_command

logger = logging.getLogger(__name__)

# Exit status reported when the tool itself can't be started
STATUS_NOT_FOUND = 127

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


@dataclass
class ExecutionResult:
    """Outcome of one logical operation."""

    status: int
    output: str
    command: list[str] = field(default_factory=list)


class BackendCommandAdapter:
    """Uniform invocation of back-end tools for logical operations."""

    def __init__(
        self,
        backend: Backend,
        runner: Optional[Runner] = None,
        command_messages: bool = False,
    ) -> None:
        """
        Initialize adapter.

        Args:
            backend: Back-end whose command table is used
            runner: Subprocess runner (defaults to probes.tools.run_command)
            command_messages: Log "Running ..." at INFO instead of DEBUG
        """
        self.backend = backend
        self._runner = runner or run_command
        self._command_messages = command_messages
        self.transcript: list[str] = []

    def supports(self, op: LogicalOperation) -> bool:
        """Check whether the back-end has commands for op."""
        return op in self.backend.command_table()

    def build_commands(
        self,
        op: LogicalOperation,
        file: Path,
        extra_args: Sequence[str] = (),
        **params: Any,
    ) -> list[tuple[CommandSpec, list[str]]]:
        """
        Build the concrete command lines for an operation.

        Args:
            op: Logical operation
            file: Workfile path
            extra_args: Appended after the rendered options of every step
            **params: Template parameters (rev, lock, keep, comment, ...)

        Returns:
            List of (spec, argv) for the steps whose guard holds

        Raises:
            UnsupportedOperation: If the back-end has no entry for op
        """
        file = file.absolute()
        table = self.backend.command_table()
        if op not in table:
            raise UnsupportedOperation(op.value, self.backend.kind)

        params = {"workfile": str(file), **params}
        commands = []
        for spec in table[op]:
            if not spec.enabled(params):
                continue
            argv = spec.render(params) + list(extra_args)
            if spec.target == "workfile":
                argv.append(str(file))
            elif spec.target == "master":
                master = self.backend.find_master(file) or self.backend.new_master_path(file)
                argv.append(str(master))
            commands.append((spec, argv))
        return commands

    def run(
        self,
        op: LogicalOperation,
        file: Path,
        extra_args: Sequence[str] = (),
        **params: Any,
    ) -> ExecutionResult:
        """
        Run a logical operation on a file.

        Steps run in order, in the workfile's directory. The first step whose
        exit status exceeds its threshold stops the operation.

        Args:
            op: Logical operation
            file: Workfile path
            extra_args: Extra switches for every step
            **params: Template parameters

        Returns:
            ExecutionResult of the last step (output of all steps)

        Raises:
            BackendCommandFailed: If a step exits above its threshold
            UnsupportedOperation: If the back-end has no entry for op
        """
        file = file.absolute()
        outputs: list[str] = []
        status = 0
        argv: list[str] = []

        for spec, argv in self.build_commands(op, file, extra_args, **params):
            message = f"Running {spec.name} on {file.name}..."
            if self._command_messages:
                logger.info(message)
            else:
                logger.debug(message)

            self.transcript.append("$ " + " ".join(argv))
            try:
                completed = self._runner(argv, cwd=file.parent)
                status = completed.returncode
                output = completed.stdout or ""
            except SubprocessError as e:
                status = STATUS_NOT_FOUND
                output = str(e)

            if output:
                self.transcript.append(output.rstrip("\n"))
            outputs.append(output)

            if status > spec.max_status:
                logger.error(f"{' '.join(argv)} exited with status {status}")
                raise BackendCommandFailed(op.value, status, output, argv)

            logger.debug(f"{spec.name} exited with status {status}")
            if spec.after is not None:
                spec.after(file)

        return ExecutionResult(status=status, output="".join(outputs), command=argv)

    def clear_transcript(self) -> None:
        """Forget captured output."""
        self.transcript.clear()
