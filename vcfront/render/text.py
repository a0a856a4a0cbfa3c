"""Text renderers for CLI output."""

from datetime import datetime, timezone
from typing import Optional

from vcfront.event_log import Event
from vcfront.status import FileStatus


def format_datetime(iso_string: str) -> str:
    """
    Format ISO datetime for human-readable output.

    Args:
        iso_string: ISO 8601 datetime string

    Returns:
        Formatted datetime string (e.g., "2026-01-22 10:41:12 UTC")
    """
    try:
        dt = datetime.fromisoformat(iso_string)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.strftime("%Y-%m-%d %H:%M:%S %Z")
    except (ValueError, TypeError):
        return iso_string


def render_table(headers: list[str], rows: list[list[str]]) -> str:
    """
    Render rows as a left-aligned table with a dashed header rule.

    Args:
        headers: Column titles
        rows: Cell values, one list per row

    Returns:
        Formatted table string
    """
    col_widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    separator = "  "
    lines = []

    header_line = separator.join(f"{headers[i]:<{col_widths[i]}}" for i in range(len(headers)))
    lines.append(header_line)

    separator_line = separator.join("-" * col_widths[i] for i in range(len(headers)))
    lines.append(separator_line)

    for row in rows:
        row_line = separator.join(f"{str(row[i]):<{col_widths[i]}}" for i in range(len(row)))
        lines.append(row_line.rstrip())

    return "\n".join(lines)


def render_status_table(statuses: list[FileStatus]) -> str:
    """
    Render file statuses as a table.

    Columns: FILE, STATE, OWNER, VERSION
    """
    if not statuses:
        return "No locked files"

    headers = ["FILE", "STATE", "OWNER", "VERSION"]
    rows = [[s.path, s.state, s.owner or "-", s.version or "-"] for s in statuses]
    return render_table(headers, rows)


def render_state(file: str, state: str, indicator: Optional[str]) -> str:
    """Render one file's state and lock-state indicator."""
    if indicator is None:
        return f"{file}: {state}"
    return f"{file}: {state} [{indicator}]"


def render_events(events: list[Event]) -> str:
    """
    Render journalled events as a table.

    Columns: TIME, CMD, FILE, VERSION, RESULT
    """
    if not events:
        return "No events"

    headers = ["TIME", "CMD", "FILE", "VERSION", "RESULT"]
    rows = [
        [
            format_datetime(e.ts),
            e.cmd,
            e.file or "-",
            e.version or "-",
            e.result or "-",
        ]
        for e in events
    ]
    return render_table(headers, rows)


def render_comments(entries: list[str]) -> str:
    """Render comment-ring entries, newest first, numbered from 1."""
    if not entries:
        return "Comment ring is empty"

    lines = []
    for i, entry in enumerate(entries, 1):
        first, _, rest = entry.partition("\n")
        lines.append(f"{i:>3}  {first}{' ...' if rest else ''}")
    return "\n".join(lines)
