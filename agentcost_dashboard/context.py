"""Wiring of storage, event bus, API client and session for one dashboard user.

Each browser session gets its own context. Sign-in state stays in that
context's own storage, while project settings live in a file every context on
the host shares.
"""

from __future__ import annotations

import logging
import os
import weakref
from dataclasses import dataclass, field
from pathlib import Path

from agentcost_dashboard.api_client import AgentCostClient
from agentcost_dashboard.config import DEFAULT_STORAGE_PATH, ENV_SESSION_PATH, ENV_STORAGE_PATH
from agentcost_dashboard.events import EventBus
from agentcost_dashboard.project_config import ConfigStore
from agentcost_dashboard.session import SessionManager
from agentcost_dashboard.storage import LocalStorage

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class DashboardContext:
    storage: LocalStorage
    settings_storage: LocalStorage
    bus: EventBus
    config_store: ConfigStore
    client: AgentCostClient
    session: SessionManager
    _finalizer: weakref.finalize | None = field(default=None, repr=False)

    def sync(self) -> None:
        """Pick up settings and sign-ins written by other dashboard processes."""
        self.settings_storage.sync()
        if self.storage.persistent:
            self.storage.sync()

    def close(self) -> None:
        if self._finalizer is not None:
            self._finalizer()
        else:
            _release(self.session, self.client)


def _release(session: SessionManager, client: AgentCostClient) -> None:
    session.close()
    client.close()
    logger.debug("Dashboard context released")


def storage_path() -> Path:
    configured = os.getenv(ENV_STORAGE_PATH, "").strip()
    return Path(configured).expanduser() if configured else DEFAULT_STORAGE_PATH


def session_path() -> Path | None:
    configured = os.getenv(ENV_SESSION_PATH, "").strip()
    return Path(configured).expanduser() if configured else None


def build_context(path: Path | None = None, *, session_file: Path | None = None) -> DashboardContext:
    """Build a context whose settings persist at ``path``.

    The sign-in is kept in memory unless ``session_file`` (or the
    ``AGENTCOST_SESSION_PATH`` environment variable) names a file for it.
    """
    bus = EventBus()
    settings_storage = LocalStorage(path or storage_path(), bus=bus)
    storage = LocalStorage(session_file or session_path(), bus=bus)
    config_store = ConfigStore(settings_storage, bus=bus)
    client = AgentCostClient(storage, config_store=config_store, bus=bus)
    session = SessionManager(client)
    session.initialize()

    context = DashboardContext(
        storage=storage,
        settings_storage=settings_storage,
        bus=bus,
        config_store=config_store,
        client=client,
        session=session,
    )
    # The refresh timer must not outlive the browser session that owns it.
    context._finalizer = weakref.finalize(context, _release, session, client)
    logger.info("Dashboard context ready (settings=%s, session=%s)", settings_storage.path, storage.path or "memory")
    return context
