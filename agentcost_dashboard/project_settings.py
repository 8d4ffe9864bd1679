"""Settings page state: connection config and the project behind the API key."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any

from agentcost_dashboard.api_client import AgentCostClient
from agentcost_dashboard.errors import APIError, parse_api_error
from agentcost_dashboard.models import ProjectInfo
from agentcost_dashboard.project_config import ProjectConfig

logger = logging.getLogger(__name__)

CREATE_PROJECT_FAILED_MESSAGE = "Failed to create project. Make sure you're logged in."


@dataclass(frozen=True)
class StatusMessage:
    kind: str
    text: str

    @property
    def is_error(self) -> bool:
        return self.kind == "error"


class SettingsController:
    """Edits a draft :class:`ProjectConfig` that only persists on :meth:`save`."""

    def __init__(self, client: AgentCostClient) -> None:
        self.client = client
        self.config_store = client.config_store
        self.config = ProjectConfig()
        self.project: ProjectInfo | None = None
        self.has_changes = False
        self.message: StatusMessage | None = None
        self.health_status: dict[str, Any] | None = None

    @property
    def api_key(self) -> str:
        if self.config.api_key:
            return self.config.api_key
        if self.project and self.project.api_key:
            return self.project.api_key
        return ""

    def load(self) -> ProjectConfig:
        self.config = self.config_store.load()
        self.has_changes = False
        self.fetch_project()
        return self.config

    def fetch_project(self) -> None:
        if not self.client.is_configured():
            self.project = None
            return
        try:
            self.project = self.client.get_project()
        except APIError as exc:
            logger.info("No project for the configured API key: %s", exc)
            self.project = None

    def update(self, **changes: Any) -> ProjectConfig:
        self.config = replace(self.config, **changes)
        self.has_changes = True
        return self.config

    def save(self) -> None:
        self.config_store.save(self.config)
        self.has_changes = False
        self.message = StatusMessage("success", "Configuration saved!")

    def create_project(self, name: str) -> bool:
        name = name.strip()
        if not name:
            return False

        try:
            project = self.client.create_project(name)
        except APIError as exc:
            logger.warning("Project creation failed: %s", exc)
            self.message = StatusMessage("error", CREATE_PROJECT_FAILED_MESSAGE)
            return False

        self.project = project
        self.config = replace(self.config, api_key=project.api_key or "", project_id=project.id)
        self.config_store.save(self.config)
        self.has_changes = False
        self.message = StatusMessage("success", "Project created and API key saved!")
        return True

    def delete_project(self, confirm_name: str) -> bool:
        if self.project is None or confirm_name != self.project.name:
            return False

        try:
            self.client.delete_project(self.project.id)
        except APIError as exc:
            logger.warning("Project deletion failed: %s", exc)
            self.message = StatusMessage("error", "Failed to delete project")
            return False

        self.config_store.clear()
        self.config = ProjectConfig()
        self.project = None
        self.has_changes = False
        self.message = StatusMessage("success", "Project deleted successfully")
        return True

    def rotate_api_key(self) -> bool:
        if self.project is None:
            return False

        try:
            payload = self.client.rotate_project_api_key(self.project.id)
        except APIError as exc:
            self.message = StatusMessage("error", parse_api_error(exc))
            return False

        new_key = (payload or {}).get("api_key")
        if not new_key:
            self.message = StatusMessage("error", "The server did not return a new API key.")
            return False

        self.config = replace(self.config, api_key=new_key)
        self.config_store.save(self.config)
        self.project = replace(self.project, api_key=new_key)
        self.message = StatusMessage("success", "API key rotated. Update your SDK configuration.")
        return True

    def health(self) -> bool:
        try:
            self.health_status = self.client.get_health()
        except APIError as exc:
            logger.warning("Health check failed: %s", exc)
            self.health_status = None
            self.message = StatusMessage("error", f"Connection failed: {exc}")
            return False
        self.message = StatusMessage("success", "Connected to the AgentCost API.")
        return True
