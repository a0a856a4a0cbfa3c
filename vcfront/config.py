"""Configuration loader."""

import configparser
import fnmatch
import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from vcfront.errors import ConfigError
from vcfront.probes.repo import STATE_DIR_NAME, find_repo_root

DEFAULT_COMMENT_RING_SIZE = 32
VALID_BACKENDS = ("RCS", "SCCS")

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """vcfront configuration for one repository root."""

    root: Path
    state_dir: Path
    backend_kind: Optional[str] = None
    keep_workfiles: bool = True
    mistrust_permissions: bool = False
    mistrust_dirs: list[str] = field(default_factory=list)
    checkout_carefully: bool = False
    suppress_confirm: bool = False
    initial_comment: bool = False
    max_comment_length: Optional[int] = None
    comment_ring_size: int = DEFAULT_COMMENT_RING_SIZE
    register_switches: list[str] = field(default_factory=list)
    checkin_switches: list[str] = field(default_factory=list)
    diff_switches: list[str] = field(default_factory=list)
    checkin_hook: Optional[str] = None
    command_messages: bool = False
    event_log: bool = True

    def should_mistrust(self, master_dir: Path) -> bool:
        """
        Decide whether permission bits can stand in for lock state.

        Args:
            master_dir: Directory holding the file's master

        Returns:
            True if the fast path must be skipped for this directory
        """
        if self.mistrust_permissions:
            return True
        return any(fnmatch.fnmatch(str(master_dir), pattern) for pattern in self.mistrust_dirs)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_list(value: str) -> list[str]:
    """
    Parse comma-separated globs.

    Args:
        value: Comma-separated string (e.g., "*/shared/*,/nfs/*")

    Returns:
        List of trimmed, non-empty entries
    """
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def _parse_int(name: str, value: Optional[str], default: Optional[int]) -> Optional[int]:
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Invalid {name} value, using default: {default}")
        return default
    if parsed < 0:
        logger.warning(f"{name} must be >=0, using default: {default}")
        return default
    return parsed


def _parse_config_file(config_path: Path) -> dict[str, str]:
    """
    Parse INI-style config file.

    Returns:
        Dict of config values (flattened: DEFAULT keys upper-cased,
        other sections as section.key -> value)
    """
    if not config_path.exists():
        return {}

    parser = configparser.ConfigParser()
    try:
        parser.read(config_path)
    except configparser.Error as e:
        raise ConfigError(f"Cannot parse {config_path}: {e}") from e

    config = {}

    if "DEFAULT" in parser:
        for key, value in parser["DEFAULT"].items():
            config[key.upper()] = value

    for section in parser.sections():
        for key, value in parser[section].items():
            config[f"{section}.{key}"] = value

    return config


def get_config(start: Optional[Path] = None) -> Config:
    """
    Get current configuration.

    Resolves from:
    1. Repository root (nearest ancestor holding .vcfront/, else start)
    2. Config file (.vcfront/config)
    3. Environment variables (optional)

    Args:
        start: Directory to resolve the root from (default: cwd)

    Returns:
        Config object

    Raises:
        ConfigError: If the configured back-end is unknown
    """
    root = find_repo_root(start)
    state_dir = Path(os.environ.get("VCFRONT_DIR", root / STATE_DIR_NAME))
    file_config = _parse_config_file(state_dir / "config")

    def setting(key: str, env: Optional[str] = None) -> Optional[str]:
        if env and os.environ.get(env):
            return os.environ[env]
        return file_config.get(key)

    backend_kind = setting("BACKEND", "VCFRONT_BACKEND")
    if backend_kind:
        backend_kind = backend_kind.upper()
        if backend_kind not in VALID_BACKENDS:
            raise ConfigError(
                f"Invalid back-end: {backend_kind}. Must be one of: {', '.join(VALID_BACKENDS)}"
            )

    config = Config(root=root, state_dir=state_dir, backend_kind=backend_kind)

    for key, attr, env in (
        ("KEEP_WORKFILES", "keep_workfiles", None),
        ("MISTRUST_PERMISSIONS", "mistrust_permissions", "VCFRONT_MISTRUST_PERMISSIONS"),
        ("CHECKOUT_CAREFULLY", "checkout_carefully", None),
        ("SUPPRESS_CONFIRM", "suppress_confirm", None),
        ("INITIAL_COMMENT", "initial_comment", None),
        ("COMMAND_MESSAGES", "command_messages", None),
        ("EVENT_LOG", "event_log", "VCFRONT_EVENT_LOG"),
    ):
        value = setting(key, env)
        if value is not None:
            setattr(config, attr, _parse_bool(value))

    config.mistrust_dirs = _parse_list(setting("MISTRUST_DIRS") or "")
    config.max_comment_length = _parse_int(
        "MAX_COMMENT_LENGTH", setting("MAX_COMMENT_LENGTH"), None
    )
    config.comment_ring_size = (
        _parse_int("COMMENT_RING_SIZE", setting("COMMENT_RING_SIZE"), DEFAULT_COMMENT_RING_SIZE)
        or DEFAULT_COMMENT_RING_SIZE
    )

    config.register_switches = shlex.split(setting("REGISTER_SWITCHES") or "")
    config.checkin_switches = shlex.split(setting("CHECKIN_SWITCHES") or "")
    config.diff_switches = shlex.split(setting("DIFF_SWITCHES") or "")
    config.checkin_hook = setting("CHECKIN_HOOK") or None

    logger.debug(f"Repo root: {root}")
    logger.debug(f"State dir: {state_dir}")
    logger.debug(f"Back-end: {backend_kind or 'auto'}")
    logger.debug(f"Mistrust permissions: {config.mistrust_permissions} {config.mistrust_dirs}")

    return config
