"""Test configuration loader."""

from pathlib import Path

import pytest

from vcfront.config import DEFAULT_COMMENT_RING_SIZE, Config, get_config
from vcfront.errors import ConfigError


def _write_config(root: Path, body: str) -> None:
    state_dir = root / ".vcfront"
    state_dir.mkdir(exist_ok=True)
    (state_dir / "config").write_text(body)


def test_get_config_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Without .vcfront/ the start directory is the root."""
    monkeypatch.delenv("VCFRONT_DIR", raising=False)
    monkeypatch.delenv("VCFRONT_BACKEND", raising=False)

    config = get_config(tmp_path)

    assert config.root == tmp_path.resolve()
    assert config.state_dir == tmp_path.resolve() / ".vcfront"
    assert config.backend_kind is None
    assert config.keep_workfiles is True
    assert config.mistrust_permissions is False
    assert config.comment_ring_size == DEFAULT_COMMENT_RING_SIZE
    assert config.max_comment_length is None
    assert config.event_log is True


def test_get_config_finds_root_from_subdirectory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Root is the nearest ancestor holding .vcfront/."""
    monkeypatch.delenv("VCFRONT_DIR", raising=False)
    (tmp_path / ".vcfront").mkdir()
    sub = tmp_path / "src" / "lib"
    sub.mkdir(parents=True)

    config = get_config(sub)

    assert config.root == tmp_path.resolve()


def test_config_file_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Values come from the DEFAULT section of .vcfront/config."""
    monkeypatch.delenv("VCFRONT_DIR", raising=False)
    monkeypatch.delenv("VCFRONT_BACKEND", raising=False)
    monkeypatch.delenv("VCFRONT_MISTRUST_PERMISSIONS", raising=False)
    _write_config(
        tmp_path,
        "[DEFAULT]\n"
        "BACKEND = sccs\n"
        "KEEP_WORKFILES = false\n"
        "MISTRUST_DIRS = */shared/*, /nfs/*\n"
        "CHECKOUT_CAREFULLY = yes\n"
        "MAX_COMMENT_LENGTH = 80\n"
        "CHECKIN_SWITCHES = -q -wtester\n"
        "CHECKIN_HOOK = notify-send checked-in\n",
    )

    config = get_config(tmp_path)

    assert config.backend_kind == "SCCS"
    assert config.keep_workfiles is False
    assert config.mistrust_dirs == ["*/shared/*", "/nfs/*"]
    assert config.checkout_carefully is True
    assert config.max_comment_length == 80
    assert config.checkin_switches == ["-q", "-wtester"]
    assert config.checkin_hook == "notify-send checked-in"


def test_config_env_vars_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Environment variables override the config file."""
    monkeypatch.delenv("VCFRONT_DIR", raising=False)
    _write_config(tmp_path, "[DEFAULT]\nBACKEND = SCCS\nMISTRUST_PERMISSIONS = false\n")
    monkeypatch.setenv("VCFRONT_BACKEND", "rcs")
    monkeypatch.setenv("VCFRONT_MISTRUST_PERMISSIONS", "1")

    config = get_config(tmp_path)

    assert config.backend_kind == "RCS"
    assert config.mistrust_permissions is True


def test_config_state_dir_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """VCFRONT_DIR relocates the state directory and its config file."""
    monkeypatch.delenv("VCFRONT_BACKEND", raising=False)
    custom = tmp_path / "custom-state"
    custom.mkdir()
    (custom / "config").write_text("[DEFAULT]\nBACKEND = sccs\n")
    monkeypatch.setenv("VCFRONT_DIR", str(custom))

    config = get_config(tmp_path)

    assert config.state_dir == custom
    assert config.backend_kind == "SCCS"


def test_invalid_backend_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """An unknown back-end kind is a configuration error."""
    monkeypatch.delenv("VCFRONT_DIR", raising=False)
    monkeypatch.setenv("VCFRONT_BACKEND", "cvs")

    with pytest.raises(ConfigError, match="Invalid back-end"):
        get_config(tmp_path)


def test_invalid_int_falls_back(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Bad integers log a warning and keep the default."""
    monkeypatch.delenv("VCFRONT_DIR", raising=False)
    monkeypatch.delenv("VCFRONT_BACKEND", raising=False)
    _write_config(tmp_path, "[DEFAULT]\nCOMMENT_RING_SIZE = lots\nMAX_COMMENT_LENGTH = -3\n")

    config = get_config(tmp_path)

    assert config.comment_ring_size == DEFAULT_COMMENT_RING_SIZE
    assert config.max_comment_length is None


def test_should_mistrust(tmp_path: Path):
    """Mistrust applies globally or to matching master directories."""
    config = Config(root=tmp_path, state_dir=tmp_path / ".vcfront", mistrust_dirs=["*/shared/*"])

    assert config.should_mistrust(Path("/home/me/shared/RCS")) is True
    assert config.should_mistrust(Path("/home/me/private/RCS")) is False

    config.mistrust_permissions = True
    assert config.should_mistrust(Path("/home/me/private/RCS")) is True

