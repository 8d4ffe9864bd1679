"""Persisted project configuration (API key, project id, refresh preferences)."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from typing import Any

from agentcost_dashboard.config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_AUTO_REFRESH,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    ENV_API_KEY,
    ENV_API_URL,
    EVENT_CONFIG_UPDATED,
    STORAGE_CONFIG_KEY,
)
from agentcost_dashboard.events import EventBus
from agentcost_dashboard.storage import LocalStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectConfig:
    api_key: str = ""
    project_id: str = ""
    auto_refresh: bool = DEFAULT_AUTO_REFRESH
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL_SECONDS
    base_url: str = ""

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ProjectConfig":
        auto_refresh = payload.get("autoRefresh")
        refresh_interval = payload.get("refreshInterval")
        return cls(
            api_key=str(payload.get("apiKey") or ""),
            project_id=str(payload.get("projectId") or ""),
            auto_refresh=auto_refresh if isinstance(auto_refresh, bool) else DEFAULT_AUTO_REFRESH,
            refresh_interval=(
                int(refresh_interval)
                if isinstance(refresh_interval, (int, float)) and not isinstance(refresh_interval, bool)
                else DEFAULT_REFRESH_INTERVAL_SECONDS
            ),
            base_url=str(payload.get("baseUrl") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "apiKey": self.api_key,
            "projectId": self.project_id,
            "autoRefresh": self.auto_refresh,
            "refreshInterval": self.refresh_interval,
        }
        if self.base_url:
            payload["baseUrl"] = self.base_url
        return payload


def default_api_key() -> str:
    return os.getenv(ENV_API_KEY, "").strip()


def default_base_url() -> str:
    return os.getenv(ENV_API_URL, "").strip() or DEFAULT_API_BASE_URL


class ConfigStore:
    """Reads and writes :class:`ProjectConfig` under the ``agentcost_config`` key."""

    def __init__(self, storage: LocalStorage, *, bus: EventBus | None = None) -> None:
        self.storage = storage
        self.bus = bus

    def load(self) -> ProjectConfig:
        raw = self.storage.get_item(STORAGE_CONFIG_KEY)
        if not raw:
            return ProjectConfig()

        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Stored configuration is not valid JSON; using defaults.")
            return ProjectConfig()

        if not isinstance(payload, dict):
            return ProjectConfig()
        return ProjectConfig.from_dict(payload)

    def save(self, config: ProjectConfig) -> None:
        self.storage.set_item(STORAGE_CONFIG_KEY, json.dumps(config.to_dict()))
        if self.bus is not None:
            self.bus.publish(EVENT_CONFIG_UPDATED, config.to_dict())

    def update(self, **changes: Any) -> ProjectConfig:
        config = replace(self.load(), **changes)
        self.save(config)
        return config

    def effective_api_key(self) -> str:
        return self.load().api_key or default_api_key()

    def effective_base_url(self) -> str:
        return (self.load().base_url or default_base_url()).rstrip("/")

    def clear(self) -> None:
        self.storage.remove_item(STORAGE_CONFIG_KEY)
        if self.bus is not None:
            self.bus.publish(EVENT_CONFIG_UPDATED, ProjectConfig().to_dict())
