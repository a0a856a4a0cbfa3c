"""Test fixtures and utilities."""

from pathlib import Path
from typing import Optional

import click.testing
import pytest
from fake_rcs import FakeRCS

from vcfront.config import Config
from vcfront.session import Session, open_session

IDENTITY = "tester"


class ScriptedInteraction:
    """
    Interaction that answers from queues and records what it was asked.

    An unexpected prompt or confirmation fails the test.
    """

    def __init__(
        self,
        texts: Optional[list[Optional[str]]] = None,
        confirms: Optional[list[bool]] = None,
    ):
        self.texts: list[Optional[str]] = list(texts or [])
        self.confirms: list[bool] = list(confirms or [])
        self.prompts: list[str] = []
        self.questions: list[str] = []
        self.notifications: list[str] = []
        self.indicators: dict[Path, Optional[str]] = {}

    def prompt_for_text(self, title: str, initial: str = "") -> Optional[str]:
        self.prompts.append(title)
        if not self.texts:
            raise AssertionError(f"Unexpected prompt: {title}")
        return self.texts.pop(0)

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        if not self.confirms:
            raise AssertionError(f"Unexpected confirmation: {question}")
        return self.confirms.pop(0)

    def notify(self, message: str) -> None:
        self.notifications.append(message)

    def update_indicator(self, file: Path, indicator: Optional[str]) -> None:
        self.indicators[file.absolute()] = indicator


@pytest.fixture
def runner() -> click.testing.CliRunner:
    """Click CliRunner for testing CLI commands."""
    return click.testing.CliRunner()


@pytest.fixture
def fake_rcs() -> FakeRCS:
    """In-process RCS tools acting as IDENTITY."""
    return FakeRCS(identity=IDENTITY)


@pytest.fixture
def ui() -> ScriptedInteraction:
    """Scripted interaction with empty answer queues."""
    return ScriptedInteraction()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """RCS config rooted at tmp_path, with an RCS/ directory for masters."""
    (tmp_path / "RCS").mkdir()
    return Config(root=tmp_path, state_dir=tmp_path / ".vcfront", backend_kind="RCS")


@pytest.fixture
def session(config: Config, ui: ScriptedInteraction, fake_rcs: FakeRCS) -> Session:
    """Session wired to the fake RCS tools and scripted interaction."""
    return open_session(config, ui=ui, runner=fake_rcs, identity=IDENTITY)


@pytest.fixture
def workfile(tmp_path: Path) -> Path:
    """An unregistered file with some content."""
    path = tmp_path / "notes.txt"
    path.write_text("first line\n")
    return path
