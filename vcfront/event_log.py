"""Event logging for version-control operations."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """Single event in log."""

    ts: str  # ISO-8601 timestamp
    cmd: str  # Operation: "checkout", "checkin", "steal", ...
    file: Optional[str] = None  # Workfile path (if applicable)
    version: Optional[str] = None  # Version or snapshot name (if applicable)
    result: Optional[Literal["ok", "error"]] = None  # Execution result
    error: Optional[str] = None  # Error details (if result="error")


def get_event_log_path(state_dir: Path) -> Path:
    """
    Get event log file path.

    Args:
        state_dir: Path to .vcfront directory

    Returns:
        Path to events.log file
    """
    return state_dir / "events.log"


def make_event(
    cmd: str,
    file: Optional[Path] = None,
    version: Optional[str] = None,
    error: Optional[str] = None,
) -> Event:
    """Build an event stamped now; result follows from error."""
    return Event(
        ts=datetime.now(timezone.utc).isoformat(),
        cmd=cmd,
        file=str(file) if file else None,
        version=version,
        result="error" if error else "ok",
        error=error,
    )


def append_event(event: Event, state_dir: Path) -> None:
    """
    Append event to log file (append-only).

    Args:
        event: Event to log
        state_dir: Path to .vcfront directory

    Raises:
        IOError: If unable to write to log file
    """
    event_log_path = get_event_log_path(state_dir)

    try:
        event_json = json.dumps(
            {
                "ts": event.ts,
                "cmd": event.cmd,
                "file": event.file,
                "version": event.version,
                "result": event.result,
                "error": event.error,
            },
            sort_keys=True,
        )

        event_log_path.parent.mkdir(parents=True, exist_ok=True)

        with open(event_log_path, "a", encoding="utf-8") as f:
            f.write(event_json + "\n")
            f.flush()

        logger.debug(f"Logged event: {event.cmd} {event.file or ''} {event.result or ''}")

    except IOError as e:
        logger.error(f"Failed to write event to {event_log_path}: {e}")
        raise


def read_events(state_dir: Path) -> list[Event]:
    """
    Read all events from log file.

    Args:
        state_dir: Path to .vcfront directory

    Returns:
        List of Event objects (empty if file doesn't exist)
    """
    event_log_path = get_event_log_path(state_dir)

    if not event_log_path.exists():
        logger.debug(f"Event log does not exist: {event_log_path}")
        return []

    events: list[Event] = []

    try:
        with open(event_log_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue

                try:
                    data = json.loads(line)
                    events.append(
                        Event(
                            ts=data.get("ts"),
                            cmd=data.get("cmd"),
                            file=data.get("file"),
                            version=data.get("version"),
                            result=data.get("result"),
                            error=data.get("error"),
                        )
                    )
                except json.JSONDecodeError as e:
                    logger.warning(f"Skipping corrupted event line: {e}")
                    continue

        logger.debug(f"Read {len(events)} events from log")

    except IOError as e:
        logger.error(f"Failed to read event log {event_log_path}: {e}")
        raise

    return events
