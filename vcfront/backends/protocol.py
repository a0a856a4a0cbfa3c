"""Back-end abstraction layer for version control operations."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from string import Formatter
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional, Protocol

if TYPE_CHECKING:
    from vcfront.adapter import BackendCommandAdapter


class LogicalOperation(str, Enum):
    """Operations the front-end asks of a back-end."""

    REGISTER = "register"
    CHECKOUT = "checkout"
    CHECKIN = "checkin"
    REVERT = "revert"
    STEAL_LOCK_RELEASE = "steal-lock-release"
    STEAL_LOCK_ACQUIRE = "steal-lock-acquire"
    UNCHECK = "uncheck"
    PRINT_LOG = "print-log"
    DIFF = "diff"
    ASSIGN_NAME = "assign-name"


class PropertyKind(str, Enum):
    """Per-file properties fetched from the master in one query."""

    LOCKING_USER = "locking-user"
    LOCKED_VERSION = "locked-version"
    LATEST_VERSION = "latest-version"
    LATEST_VERSION_BY_CALLING_USER = "latest-version-by-calling-user"


Target = Literal["workfile", "master", "none"]
Properties = dict[PropertyKind, Optional[str]]


def render_option(template: str, params: dict[str, Any]) -> Optional[str]:
    """
    Render one option template.

    A template referencing a parameter that is None or False is dropped.
    True renders as the empty string, so "-l{lock}" becomes "-l".

    Args:
        template: Option such as "-r{rev}" or a literal flag such as "-f"
        params: Parameter values

    Returns:
        Rendered option, or None if it is to be left out
    """
    values: dict[str, str] = {}
    for _, field_name, _, _ in Formatter().parse(template):
        if not field_name:
            continue
        value = params.get(field_name)
        if value is None or value is False:
            return None
        values[field_name] = "" if value is True else str(value)
    return template.format(**values)


@dataclass(frozen=True)
class CommandSpec:
    """One concrete command run for a logical operation."""

    name: str
    options: tuple[str, ...] = ()
    target: Target = "workfile"
    max_status: int = 0
    when: Optional[str] = None
    after: Optional[Callable[[Path], None]] = None

    def enabled(self, params: dict[str, Any]) -> bool:
        """Check the step's guard parameter."""
        return self.when is None or bool(params.get(self.when))

    def render(self, params: dict[str, Any]) -> list[str]:
        """Render command name and options (without the target path)."""
        rendered = [render_option(option, params) for option in self.options]
        return [self.name] + [option for option in rendered if option is not None]


CommandTable = dict[LogicalOperation, tuple[CommandSpec, ...]]


def find_master(templates: tuple[str, ...], file: Path) -> Optional[Path]:
    """
    Find an existing master for a workfile.

    Args:
        templates: Paths relative to the workfile's directory, with {name}
        file: Workfile path

    Returns:
        First existing master path, or None
    """
    for template in templates:
        candidate = file.parent / template.format(name=file.name)
        if candidate.is_file():
            return candidate
    return None


def workfile_for_master(templates: tuple[str, ...], master: Path, file: Path) -> Optional[Path]:
    """
    Map a master path back to the template that produced it.

    Returns:
        The matching template string, or None
    """
    for template in templates:
        if file.parent / template.format(name=file.name) == master:
            return template
    return None


class Backend(Protocol):
    """Version control back-end protocol."""

    kind: Literal["RCS", "SCCS"]
    subdirectory: str
    master_templates: tuple[str, ...]
    max_comment_length: Optional[int]
    uses_name_registry: bool

    def command_table(self) -> CommandTable:
        """
        Get the concrete commands for each logical operation.

        Returns:
            Mapping of operation to ordered command steps
        """

    def find_master(self, file: Path) -> Optional[Path]:
        """
        Resolve the master of a workfile.

        Args:
            file: Workfile path

        Returns:
            Master path, or None if unregistered
        """

    def new_master_path(self, file: Path) -> Path:
        """
        Get the path a new master for file would be created at.

        Args:
            file: Workfile path

        Returns:
            Master path
        """

    def fetch_properties(
        self,
        adapter: "BackendCommandAdapter",
        file: Path,
        master: Path,
        identity: str,
    ) -> Properties:
        """
        Query all lock and version properties in one round trip.

        Args:
            adapter: Command adapter (for back-ends that query via a tool)
            file: Workfile path
            master: Master path
            identity: Calling user's login name

        Returns:
            All four PropertyKinds, None where the master reports none
        """
