"""JSON renderer with stable schema and versioning."""

import json
from typing import Optional

from vcfront.event_log import Event
from vcfront.status import FileStatus

JSON_VERSION = 1


def render_status_json(statuses: list[FileStatus]) -> str:
    """
    Render directory status as JSON.

    Schema version 1:
      {
        "command": "status",
        "version": 1,
        "files": [{"path", "state", "owner", "version"}, ...]
      }

    Args:
        statuses: FileStatus list to render

    Returns:
        JSON string with stable key ordering
    """
    output = {
        "command": "status",
        "version": JSON_VERSION,
        "files": [
            {
                "path": s.path,
                "state": s.state,
                "owner": s.owner,
                "version": s.version,
            }
            for s in statuses
        ],
    }
    return json.dumps(output, indent=2, sort_keys=True)


def render_state_json(
    file: str, state: str, owner: Optional[str], indicator: Optional[str]
) -> str:
    """
    Render one file's state as JSON.

    Schema version 1: {"command": "state", "version": 1, "file", "state",
    "owner", "indicator"}
    """
    output = {
        "command": "state",
        "version": JSON_VERSION,
        "file": file,
        "state": state,
        "owner": owner,
        "indicator": indicator,
    }
    return json.dumps(output, indent=2, sort_keys=True)


def render_events_json(events: list[Event]) -> str:
    """Render journalled events as JSON (schema version 1)."""
    output = {
        "command": "events",
        "version": JSON_VERSION,
        "events": [
            {
                "ts": e.ts,
                "cmd": e.cmd,
                "file": e.file,
                "version": e.version,
                "result": e.result,
                "error": e.error,
            }
            for e in events
        ],
    }
    return json.dumps(output, indent=2, sort_keys=True)
