"""vcfront CLI entrypoint."""

import functools
import sys
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional, TypeVar

import click

from vcfront.commit import PendingKind, PendingLogOperation
from vcfront.dispatcher import ActionResult
from vcfront.errors import EXIT_PARTIAL, BackendCommandFailed, UserInputError, VcError
from vcfront.event_log import read_events
from vcfront.logging import get_logger, setup_logging
from vcfront.session import Session, open_session

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _open_session() -> Session:
    """Open a session for the cwd and remember it for error reporting."""
    session = open_session()
    click.get_current_context().ensure_object(dict)["session"] = session
    return session


def _fail(error: VcError) -> NoReturn:
    click.echo(f"Error: {error.message}", err=True)

    ctx = click.get_current_context(silent=True)
    obj = ctx.obj if ctx else None
    session = obj.get("session") if isinstance(obj, dict) else None
    if isinstance(error, BackendCommandFailed) and session and session.adapter.transcript:
        click.echo("Transcript:", err=True)
        for line in session.adapter.transcript:
            click.echo(f"  {line}", err=True)

    sys.exit(error.exit_code)


def handles_errors(func: F) -> F:
    """Turn VcError into a stderr message and the error's exit code."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except VcError as e:
            _fail(e)

    return wrapper  # type: ignore[return-value]


def _path(file: str) -> Path:
    return Path(file).absolute()


def _complete_pending(session: Session, result: ActionResult) -> None:
    """Collect log messages for every open session in an action chain."""
    current: Optional[ActionResult] = result
    while current is not None:
        if current.session is not None and current.session.is_pending:
            session.flow.run_interactive(current.session, session.ui)
            if isinstance(current.session.hook_result, ActionResult):
                current.followup = current.session.hook_result
        current = current.followup


def _echo_indicator(session: Session, file: Path) -> None:
    indicator = session.inference.mode_line(file)
    if indicator:
        click.echo(f"{file.name}: {indicator}")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.version_option()
def vcfront(verbose: bool) -> None:
    """vcfront - lock-based version control on top of RCS and SCCS."""
    setup_logging(verbose=verbose)


@vcfront.command(name="next")
@click.argument("file")
@click.option("-V", "--ask-version", is_flag=True, help="Prompt for version numbers")
@click.option("-m", "--message", help="Log message (skips the editor)")
@handles_errors
def next_cmd(file: str, ask_version: bool, message: Optional[str]) -> None:
    """
    Do the next logical version-control operation on FILE.

    Registers, checks out, steals, reverts or checks in, depending on
    the file's current state.
    """
    session = _open_session()
    path = _path(file)

    result = session.dispatcher.next_action(path, verbose=ask_version, comment=message)
    _complete_pending(session, result)

    current: Optional[ActionResult] = result
    while current is not None:
        click.echo(f"{current.action.value}: {path.name} (was {current.state})")
        current = current.followup
    _echo_indicator(session, path)


@vcfront.command()
@click.argument("file")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.option("--no-trust", is_flag=True, help="Ignore permission bits, ask the back-end")
@handles_errors
def state(file: str, json_output: bool, no_trust: bool) -> None:
    """Show the version-control state of FILE (non-mutating)."""
    from vcfront.render.json import render_state_json
    from vcfront.render.text import render_state

    session = _open_session()
    path = _path(file)

    vc_state = session.inference.infer_state(path, trust_permissions=not no_trust)
    indicator = session.inference.mode_line(path)
    if json_output:
        owner = vc_state.owner or (session.identity if vc_state.locked else None)
        click.echo(render_state_json(str(path), vc_state.kind.value, owner, indicator))
    else:
        click.echo(render_state(str(path), str(vc_state), indicator))


@vcfront.command()
@click.argument("file")
@click.option("-r", "--rev", help="Initial version")
@click.option("-m", "--message", help="Initial comment")
@handles_errors
def register(file: str, rev: Optional[str], message: Optional[str]) -> None:
    """Put FILE under version control."""
    session = _open_session()
    path = _path(file)

    if message is None and session.config.initial_comment:
        pending = PendingLogOperation(PendingKind.ADMIN, path, rev)
        log_session = session.flow.begin_commit(path, pending)
        session.flow.run_interactive(log_session, session.ui)
    else:
        session.operations.register(path, rev, message)

    click.echo(f"Registered {path.name}")
    _echo_indicator(session, path)


@vcfront.command()
@click.argument("file")
@click.option("-r", "--rev", help="Version to check out")
@click.option("--read-only", is_flag=True, help="Don't take the lock")
@handles_errors
def checkout(file: str, rev: Optional[str], read_only: bool) -> None:
    """Check out FILE, locked for editing unless --read-only."""
    session = _open_session()
    path = _path(file)

    session.operations.checkout(path, writable=not read_only, rev=rev)
    click.echo(f"Checked out {path.name}")
    _echo_indicator(session, path)


@vcfront.command()
@click.argument("file")
@click.option("-r", "--rev", help="New version number")
@click.option("-m", "--message", help="Log message (skips the editor)")
@handles_errors
def checkin(file: str, rev: Optional[str], message: Optional[str]) -> None:
    """Check in FILE as a new version."""
    session = _open_session()
    path = _path(file)

    pending = PendingLogOperation(
        PendingKind.CHECKIN,
        path,
        rev,
        after_hook=lambda: session.dispatcher.run_checkin_hook(path),
    )
    log_session = session.flow.begin_commit(path, pending)
    if message is None:
        session.flow.run_interactive(log_session, session.ui)
    else:
        session.flow.complete_commit(log_session, message)

    click.echo(f"Checked in {path.name}")
    _echo_indicator(session, path)


@vcfront.command()
@click.argument("file")
@click.option("-y", "--yes", is_flag=True, help="Don't ask for confirmation")
@handles_errors
def revert(file: str, yes: bool) -> None:
    """Discard changes to FILE and release the lock."""
    session = _open_session()
    path = _path(file)

    session.operations.revert(path, confirm=not yes)
    click.echo(f"Reverted {path.name}")
    _echo_indicator(session, path)


@vcfront.command()
@click.argument("file")
@click.option("-r", "--rev", help="Locked version to take")
@click.option("-m", "--message", help="Why the lock is being taken")
@handles_errors
def steal(file: str, rev: Optional[str], message: Optional[str]) -> None:
    """Take the lock on FILE from whoever holds it."""
    session = _open_session()
    path = _path(file)

    owner = session.inference.locking_user(path, trust_permissions=False)
    if owner is None or owner == session.identity:
        raise UserInputError(f"{path} is not locked by someone else")

    pending = PendingLogOperation(PendingKind.STEAL_LOCK, path, rev, owner=owner)
    log_session = session.flow.begin_commit(path, pending)
    if message is None:
        session.flow.run_interactive(log_session, session.ui)
    else:
        session.flow.complete_commit(log_session, message)
    _echo_indicator(session, path)


@vcfront.command()
@click.argument("file")
@click.option("--norevert", is_flag=True, help="Leave the workfile alone")
@handles_errors
def cancel(file: str, norevert: bool) -> None:
    """Remove the latest version of FILE from its master."""
    session = _open_session()
    path = _path(file)

    if session.operations.cancel_version(path, norevert=norevert) is None:
        click.echo("Nothing cancelled")
        return
    _echo_indicator(session, path)


@vcfront.command()
@click.argument("file")
@click.option("-r", "--rev", "revs", multiple=True, help="Version(s) to compare (at most two)")
@handles_errors
def diff(file: str, revs: tuple[str, ...]) -> None:
    """Diff FILE against its latest version (or between versions)."""
    if len(revs) > 2:
        raise UserInputError("At most two versions can be compared")

    session = _open_session()
    path = _path(file)

    rev1 = revs[0] if revs else None
    rev2 = revs[1] if len(revs) > 1 else None
    result = session.operations.diff(path, rev1, rev2)
    if result.output:
        click.echo(result.output.rstrip("\n"))


@vcfront.command()
@click.argument("file")
@handles_errors
def log(file: str) -> None:
    """Print the version history of FILE."""
    session = _open_session()
    click.echo(session.operations.print_log(_path(file)).rstrip("\n"))


@vcfront.command()
@click.argument("old")
@click.argument("new")
@handles_errors
def rename(old: str, new: str) -> None:
    """Rename a registered file together with its master."""
    session = _open_session()
    session.operations.rename_file(_path(old), _path(new))
    click.echo(f"Renamed {old} -> {new}")


@vcfront.command()
@click.argument("directory", default=".")
@click.option("--all", "all_files", is_flag=True, help="Include unlocked files")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@handles_errors
def status(directory: str, all_files: bool, json_output: bool) -> None:
    """
    List registered files under DIRECTORY.

    Non-mutating. Shows locked files only unless --all.
    """
    from vcfront.render.json import render_status_json
    from vcfront.render.text import render_status_table
    from vcfront.status import collect_status

    session = _open_session()
    statuses = collect_status(session, _path(directory), all_files=all_files)

    if json_output:
        click.echo(render_status_json(statuses))
    else:
        click.echo(render_status_table(statuses))


@vcfront.group()
def snapshot() -> None:
    """Named snapshots of a directory tree."""


@snapshot.command(name="create")
@click.argument("directory")
@click.argument("name")
@handles_errors
def snapshot_create(directory: str, name: str) -> None:
    """Name the latest version of every file under DIRECTORY."""
    from vcfront.snapshot import create_snapshot

    session = _open_session()
    named = create_snapshot(session, _path(directory), name)
    click.echo(f"Snapshot {name}: {len(named)} file(s)")


@snapshot.command(name="retrieve")
@click.argument("directory")
@click.argument("name")
@handles_errors
def snapshot_retrieve(directory: str, name: str) -> None:
    """Check out every file under DIRECTORY as of snapshot NAME."""
    from vcfront.snapshot import registered_files, retrieve_snapshot

    session = _open_session()
    root = _path(directory)
    retrieved = retrieve_snapshot(session, root, name)
    total = sum(1 for _ in registered_files(session, root))

    click.echo(f"Retrieved {len(retrieved)} of {total} file(s) as of {name}")
    if len(retrieved) < total:
        sys.exit(EXIT_PARTIAL)


@vcfront.command()
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.option("-n", "--limit", type=int, help="Show only the last N events")
@handles_errors
def events(json_output: bool, limit: Optional[int]) -> None:
    """Show the operation journal."""
    from vcfront.config import get_config
    from vcfront.render.json import render_events_json
    from vcfront.render.text import render_events

    config = get_config()
    entries = read_events(config.state_dir)
    if limit is not None:
        entries = entries[-limit:] if limit > 0 else []

    if json_output:
        click.echo(render_events_json(entries))
    else:
        click.echo(render_events(entries))


@vcfront.command()
@click.option("-s", "--search", "pattern", help="Show the newest message matching PATTERN")
@handles_errors
def comments(pattern: Optional[str]) -> None:
    """Show previously submitted log messages, newest first."""
    from vcfront.render.text import render_comments

    session = _open_session()
    ring = session.flow.ring

    if pattern is None:
        click.echo(render_comments(ring.entries))
        return

    found = ring.search(pattern)
    if found is None:
        raise UserInputError(f"No log message matches {pattern!r}")
    click.echo(found)


if __name__ == "__main__":
    vcfront()
