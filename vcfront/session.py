"""Wiring of one repository root: back-end, adapter, cache, inference, operations."""

import logging
from dataclasses import dataclass
from typing import Optional

from vcfront.adapter import BackendCommandAdapter, Runner
from vcfront.backends import detect_backend
from vcfront.backends.protocol import Backend
from vcfront.cache import PropertyCache
from vcfront.commit import CommentRing, CommitFlow
from vcfront.config import Config, get_config
from vcfront.dispatcher import NextActionDispatcher
from vcfront.operations import Operations
from vcfront.probes.files import current_identity
from vcfront.state import StateInference
from vcfront.ui import ClickInteraction, Interaction

logger = logging.getLogger(__name__)

COMMENT_RING_FILENAME = "comments.json"


@dataclass
class Session:
    """Everything bound to one repository root, resolved once."""

    config: Config
    backend: Backend
    adapter: BackendCommandAdapter
    cache: PropertyCache
    inference: StateInference
    operations: Operations
    flow: CommitFlow
    dispatcher: NextActionDispatcher
    ui: Interaction
    identity: str


def open_session(
    config: Optional[Config] = None,
    ui: Optional[Interaction] = None,
    runner: Optional[Runner] = None,
    identity: Optional[str] = None,
) -> Session:
    """
    Open a session for a repository root.

    The back-end is selected here, once, and passed by reference to every
    component.

    Args:
        config: Config (resolved from the cwd if not provided)
        ui: Interaction (terminal prompts if not provided)
        runner: Subprocess runner for back-end commands
        identity: Login name to act as (current user if not provided)

    Returns:
        Session
    """
    config = config or get_config()
    backend = detect_backend(config.root, config.backend_kind)
    identity = identity or current_identity()
    ui = ui or ClickInteraction()

    adapter = BackendCommandAdapter(backend, runner, config.command_messages)
    cache = PropertyCache(backend, adapter, identity)
    inference = StateInference(config, backend, adapter, cache, identity)
    operations = Operations(config, backend, adapter, cache, inference, ui)

    ring_path = config.state_dir / COMMENT_RING_FILENAME
    ring = CommentRing.load(ring_path, config.comment_ring_size)
    flow = CommitFlow(config, backend, operations, ring, ring_path)
    dispatcher = NextActionDispatcher(config, cache, inference, operations, flow, ui)

    logger.debug(f"Session for {config.root}: {backend.kind} as {identity}")
    return Session(
        config=config,
        backend=backend,
        adapter=adapter,
        cache=cache,
        inference=inference,
        operations=operations,
        flow=flow,
        dispatcher=dispatcher,
        ui=ui,
        identity=identity,
    )
