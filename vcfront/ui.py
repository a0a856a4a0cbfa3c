"""Interaction collaborators: prompting, confirmation, notification."""

import logging
from pathlib import Path
from typing import Optional, Protocol

import click

logger = logging.getLogger(__name__)


class Interaction(Protocol):
    """What the core needs from whoever is driving it."""

    def prompt_for_text(self, title: str, initial: str = "") -> Optional[str]:
        """
        Collect free text (a log message, a version number).

        Args:
            title: What is being asked for
            initial: Text to seed the editing surface with

        Returns:
            Entered text, or None if the user abandoned the prompt
        """

    def confirm(self, question: str) -> bool:
        """Ask a yes/no question."""

    def notify(self, message: str) -> None:
        """Tell the user something."""

    def update_indicator(self, file: Path, indicator: Optional[str]) -> None:
        """Refresh the visible lock-state indicator of a file."""


class ClickInteraction:
    """Terminal interaction through click."""

    def __init__(self, use_editor: bool = True) -> None:
        self._use_editor = use_editor
        self.indicators: dict[Path, Optional[str]] = {}

    def prompt_for_text(self, title: str, initial: str = "") -> Optional[str]:
        if self._use_editor and "\n" in title:
            marker = "# Lines starting with '#' are ignored.\n"
            commented = "".join(f"# {line}\n" for line in title.splitlines())
            seeded = (initial or "") + "\n" + marker + commented
            edited = click.edit(seeded)
            if edited is None:
                return None
            lines = [line for line in edited.splitlines() if not line.startswith("#")]
            return "\n".join(lines).strip()
        try:
            return click.prompt(title, default=initial or "", show_default=False)
        except click.exceptions.Abort:
            return None

    def confirm(self, question: str) -> bool:
        return click.confirm(question, default=False)

    def notify(self, message: str) -> None:
        click.echo(message, err=True)

    def update_indicator(self, file: Path, indicator: Optional[str]) -> None:
        self.indicators[file] = indicator
        logger.debug(f"Indicator for {file}: {indicator}")
