"""HTTP client for the AgentCost backend.

Every outbound call goes through :meth:`AgentCostClient.request`, which picks
one of three credential schemes per endpoint and retries a JWT call exactly
once after a successful token refresh.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any

import requests

from agentcost_dashboard.config import (
    ANALYTICS_AGENTS_ENDPOINT,
    ANALYTICS_FULL_ENDPOINT,
    ANALYTICS_MODELS_ENDPOINT,
    ANALYTICS_OVERVIEW_ENDPOINT,
    ANALYTICS_TIMESERIES_ENDPOINT,
    AUTH_LOGIN_ENDPOINT,
    AUTH_LOGOUT_ENDPOINT,
    AUTH_ME_ENDPOINT,
    AUTH_PASSWORD_RESET_ENDPOINT,
    AUTH_PASSWORD_RESET_REQUEST_ENDPOINT,
    AUTH_POLICIES_ACCEPT_ENDPOINT,
    AUTH_POLICIES_CURRENT_ENDPOINT,
    AUTH_POLICIES_STATUS_ENDPOINT,
    AUTH_REFRESH_ENDPOINT,
    AUTH_REGISTER_ENDPOINT,
    AUTH_VERIFY_EMAIL_ENDPOINT,
    DASHBOARD_STATS_LIMIT,
    DEFAULT_TIME_RANGE,
    EVENT_TOKEN_REFRESH_FAILED,
    EVENT_TOKENS_REFRESHED,
    EVENTS_COUNT_ENDPOINT,
    EVENTS_ENDPOINT,
    FEEDBACK_COMMENTS_ENDPOINT_TEMPLATE,
    FEEDBACK_ENDPOINT,
    FEEDBACK_SUMMARY_ENDPOINT,
    FEEDBACK_UPVOTE_ENDPOINT_TEMPLATE,
    HEALTH_ENDPOINT,
    INVITATION_ACCEPT_ENDPOINT_TEMPLATE,
    INVITATION_DECLINE_ENDPOINT_TEMPLATE,
    OPTIMIZATIONS_ENDPOINT,
    OPTIMIZATIONS_SUMMARY_ENDPOINT,
    PENDING_INVITATIONS_ENDPOINT,
    PROJECT_ENDPOINT_TEMPLATE,
    PROJECT_LEAVE_ENDPOINT_TEMPLATE,
    PROJECT_ME_ENDPOINT,
    PROJECT_MEMBER_ENDPOINT_TEMPLATE,
    PROJECT_MEMBERS_ENDPOINT_TEMPLATE,
    PROJECT_ROTATE_KEY_ENDPOINT_TEMPLATE,
    PROJECTS_ENDPOINT,
    RECOMMENDATION_DISMISS_ENDPOINT_TEMPLATE,
    RECOMMENDATION_IMPLEMENT_ENDPOINT_TEMPLATE,
    RECOMMENDATIONS_EFFECTIVENESS_ENDPOINT,
    RECOMMENDATIONS_ENDPOINT,
    RECOMMENDATIONS_GENERATE_ENDPOINT,
    REQUEST_TIMEOUT_SECONDS,
    STORAGE_ACCESS_TOKEN_KEY,
    STORAGE_REFRESH_TOKEN_KEY,
)
from agentcost_dashboard.errors import APIError
from agentcost_dashboard.events import EventBus
from agentcost_dashboard.models import (
    AgentStats,
    AnalyticsBundle,
    AnalyticsOverview,
    Event,
    FeedbackComment,
    FeedbackItem,
    ModelStats,
    OptimizationSuggestion,
    OptimizationSummary,
    PendingInvitation,
    PolicyCheckResponse,
    ProjectInfo,
    ProjectMember,
    Recommendation,
    RecommendationEffectiveness,
    Role,
    TimeSeriesPoint,
    User,
)
from agentcost_dashboard.project_config import ConfigStore
from agentcost_dashboard.storage import LocalStorage

logger = logging.getLogger(__name__)

_PROJECT_RESOURCE = re.compile(r"/v1/projects/[^/]+$")


class AuthType(str, Enum):
    NONE = "none"
    API_KEY = "api_key"
    JWT = "jwt"


def resolve_auth_type(endpoint: str) -> AuthType:
    """Pick the credential scheme an endpoint expects.

    API keys are project-scoped and cover analytics, events and
    optimizations; JWTs are user-scoped and cover account, project
    ownership and team management.
    """
    if "/health" in endpoint:
        return AuthType.NONE
    if "/auth/" in endpoint:
        return AuthType.JWT
    if endpoint.startswith(FEEDBACK_ENDPOINT) or endpoint.startswith("/v1/attachments"):
        return AuthType.JWT
    if endpoint == PROJECTS_ENDPOINT or endpoint.startswith(f"{PROJECTS_ENDPOINT}?"):
        return AuthType.JWT
    if "/members" in endpoint or "/invitations" in endpoint or "/leave" in endpoint:
        return AuthType.JWT
    if _PROJECT_RESOURCE.search(endpoint) and "/me" not in endpoint:
        return AuthType.JWT
    return AuthType.API_KEY


@dataclass(frozen=True)
class ClientConfiguration:
    api_key: str
    base_url: str
    auth_token: str | None


class AgentCostClient:
    """Backend client that resolves credentials from persisted storage on every call."""

    def __init__(
        self,
        storage: LocalStorage,
        *,
        config_store: ConfigStore | None = None,
        bus: EventBus | None = None,
        session: requests.Session | None = None,
        timeout_seconds: int = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.storage = storage
        self.bus = bus or EventBus()
        self.config_store = config_store or ConfigStore(storage, bus=self.bus)
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self._refresh_lock = threading.Lock()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "AgentCostClient":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def get_configuration(self) -> ClientConfiguration:
        return ClientConfiguration(
            api_key=self.config_store.effective_api_key(),
            base_url=self.config_store.effective_base_url(),
            auth_token=self.storage.get_item(STORAGE_ACCESS_TOKEN_KEY),
        )

    def is_configured(self) -> bool:
        return bool(self.get_configuration().api_key)

    def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        body: Any = None,
        params: dict[str, Any] | None = None,
        auth_override: AuthType | None = None,
        retry_on_unauthorized: bool = True,
    ) -> Any:
        config = self.get_configuration()
        auth_type = auth_override or resolve_auth_type(endpoint)

        headers = {"Content-Type": "application/json"}
        credential: str | None = None
        if auth_type is AuthType.API_KEY:
            credential = config.api_key
        elif auth_type is AuthType.JWT:
            credential = config.auth_token
        if credential:
            headers["Authorization"] = f"Bearer {credential}"

        url = f"{config.base_url}{endpoint}"
        try:
            response = self.session.request(
                method,
                url,
                json=body,
                params=params,
                headers=headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise APIError(f"Request failed: {exc}") from exc

        if response.status_code == 401 and auth_type is AuthType.JWT and retry_on_unauthorized:
            if self.refresh_session_tokens(stale_token=config.auth_token):
                return self.request(
                    endpoint,
                    method=method,
                    body=body,
                    params=params,
                    auth_override=auth_override,
                    retry_on_unauthorized=False,
                )

        if not 200 <= response.status_code < 300:
            raise APIError.from_response(response.status_code, response.reason or "", response.text or "")

        if response.status_code == 204:
            return None

        try:
            return response.json()
        except ValueError as exc:
            raise APIError(
                "Backend returned a non-JSON response",
                status_code=response.status_code,
                status_text=response.reason or "",
            ) from exc

    def refresh_session_tokens(
        self,
        *,
        stale_token: str | None = None,
        announce_failure: bool = True,
        announce_transport_failure: bool = True,
    ) -> bool:
        """Exchange the stored refresh token for new credentials.

        Refreshes are serialized. When ``stale_token`` is given and the stored
        access token already differs from it, another caller rotated the
        tokens while this one waited, so that result is reused.

        A failure is announced on the bus when ``announce_failure`` is set.
        Failures that never got an HTTP status (network errors, a missing
        refresh token) are only announced if ``announce_transport_failure``
        is set as well.
        """
        refreshed: dict[str, Any] | None = None
        failure: APIError | None = None

        with self._refresh_lock:
            current = self.storage.get_item(STORAGE_ACCESS_TOKEN_KEY)
            if stale_token is not None and current and current != stale_token:
                return True
            try:
                refreshed = self._rotate_tokens()
            except APIError as exc:
                failure = exc

        if failure is not None:
            logger.warning("Token refresh failed: %s", failure)
            if announce_failure and (failure.status_code is not None or announce_transport_failure):
                self.bus.publish(EVENT_TOKEN_REFRESH_FAILED, {"status_code": failure.status_code})
            return False

        self.bus.publish(EVENT_TOKENS_REFRESHED, refreshed or {})
        return True

    def _rotate_tokens(self) -> dict[str, Any]:
        refresh_token = self.storage.get_item(STORAGE_REFRESH_TOKEN_KEY)
        if not refresh_token:
            raise APIError("No refresh token available")

        payload = self.refresh(refresh_token)
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise APIError("Refresh response did not include an access token")

        new_refresh_token = payload.get("refresh_token")
        self.storage.set_item(STORAGE_ACCESS_TOKEN_KEY, access_token)
        if new_refresh_token:
            self.storage.set_item(STORAGE_REFRESH_TOKEN_KEY, new_refresh_token)
        return {"access_token": access_token, "refresh_token": new_refresh_token}

    # Health and analytics

    def get_health(self) -> dict[str, Any]:
        return self.request(HEALTH_ENDPOINT)

    def get_overview(self, range_: str = DEFAULT_TIME_RANGE) -> AnalyticsOverview:
        payload = self.request(ANALYTICS_OVERVIEW_ENDPOINT, params={"range": range_})
        return AnalyticsOverview.from_dict(payload or {})

    def get_agent_stats(self, range_: str = DEFAULT_TIME_RANGE, limit: int = DASHBOARD_STATS_LIMIT) -> list[AgentStats]:
        payload = self.request(ANALYTICS_AGENTS_ENDPOINT, params={"range": range_, "limit": limit})
        return [AgentStats.from_dict(row) for row in payload or []]

    def get_model_stats(self, range_: str = DEFAULT_TIME_RANGE, limit: int = DASHBOARD_STATS_LIMIT) -> list[ModelStats]:
        payload = self.request(ANALYTICS_MODELS_ENDPOINT, params={"range": range_, "limit": limit})
        return [ModelStats.from_dict(row) for row in payload or []]

    def get_time_series(self, range_: str = DEFAULT_TIME_RANGE) -> list[TimeSeriesPoint]:
        payload = self.request(ANALYTICS_TIMESERIES_ENDPOINT, params={"range": range_})
        return [TimeSeriesPoint.from_dict(row) for row in payload or []]

    def get_full_analytics(self, range_: str = DEFAULT_TIME_RANGE) -> AnalyticsBundle:
        payload = self.request(ANALYTICS_FULL_ENDPOINT, params={"range": range_}) or {}
        return AnalyticsBundle(
            overview=AnalyticsOverview.from_dict(payload.get("overview") or {}),
            agents=[AgentStats.from_dict(row) for row in payload.get("agents") or []],
            models=[ModelStats.from_dict(row) for row in payload.get("models") or []],
            timeseries=[TimeSeriesPoint.from_dict(row) for row in payload.get("timeseries") or []],
        )

    def get_events(self, limit: int = 100, offset: int = 0) -> list[Event]:
        payload = self.request(EVENTS_ENDPOINT, params={"limit": limit, "offset": offset})
        return [Event.from_dict(row) for row in payload or []]

    def get_event_count(self) -> int:
        payload = self.request(EVENTS_COUNT_ENDPOINT) or {}
        return int(payload.get("count", 0))

    # Projects

    def get_project(self) -> ProjectInfo:
        return ProjectInfo.from_dict(self.request(PROJECT_ME_ENDPOINT) or {})

    def create_project(self, name: str, description: str | None = None) -> ProjectInfo:
        payload = self.request(PROJECTS_ENDPOINT, method="POST", body={"name": name, "description": description})
        return ProjectInfo.from_dict(payload or {})

    def delete_project(self, project_id: str) -> dict[str, Any]:
        return self.request(PROJECT_ENDPOINT_TEMPLATE.format(project_id=project_id), method="DELETE") or {}

    def rotate_project_api_key(self, project_id: str) -> dict[str, Any]:
        return self.request(
            PROJECT_ROTATE_KEY_ENDPOINT_TEMPLATE.format(project_id=project_id),
            method="POST",
            auth_override=AuthType.JWT,
        )

    # Optimizations

    def get_optimizations(self) -> list[OptimizationSuggestion]:
        payload = self.request(OPTIMIZATIONS_ENDPOINT)
        return [OptimizationSuggestion.from_dict(row) for row in payload or []]

    def generate_optimization_recommendations(self) -> list[OptimizationSuggestion]:
        payload = self.request(RECOMMENDATIONS_GENERATE_ENDPOINT, method="POST")
        return [OptimizationSuggestion.from_dict(row) for row in payload or []]

    def get_optimization_summary(self) -> OptimizationSummary:
        return OptimizationSummary.from_dict(self.request(OPTIMIZATIONS_SUMMARY_ENDPOINT) or {})

    def get_pending_recommendations(self) -> list[Recommendation]:
        payload = self.request(RECOMMENDATIONS_ENDPOINT)
        return [Recommendation.from_dict(row) for row in payload or []]

    def mark_recommendation_implemented(self, recommendation_id: str) -> dict[str, Any]:
        return self.request(
            RECOMMENDATION_IMPLEMENT_ENDPOINT_TEMPLATE.format(recommendation_id=recommendation_id),
            method="POST",
        )

    def dismiss_recommendation(self, recommendation_id: str, feedback: str | None = None) -> dict[str, Any]:
        return self.request(
            RECOMMENDATION_DISMISS_ENDPOINT_TEMPLATE.format(recommendation_id=recommendation_id),
            method="POST",
            body={"feedback": feedback or None},
        )

    def get_recommendation_effectiveness(self) -> RecommendationEffectiveness:
        return RecommendationEffectiveness.from_dict(self.request(RECOMMENDATIONS_EFFECTIVENESS_ENDPOINT) or {})

    # Team management

    def get_project_members(self, project_id: str) -> list[ProjectMember]:
        payload = self.request(
            PROJECT_MEMBERS_ENDPOINT_TEMPLATE.format(project_id=project_id),
            auth_override=AuthType.JWT,
        ) or {}
        return [ProjectMember.from_dict(row) for row in payload.get("members") or []]

    def invite_member(self, project_id: str, email: str, role: Role) -> dict[str, Any]:
        return self.request(
            PROJECT_MEMBERS_ENDPOINT_TEMPLATE.format(project_id=project_id),
            method="POST",
            body={"email": email, "role": Role(role).value},
            auth_override=AuthType.JWT,
        )

    def update_member_role(self, project_id: str, user_id: str, role: Role) -> dict[str, Any]:
        return self.request(
            PROJECT_MEMBER_ENDPOINT_TEMPLATE.format(project_id=project_id, user_id=user_id),
            method="PATCH",
            body={"role": Role(role).value},
            auth_override=AuthType.JWT,
        )

    def remove_member(self, project_id: str, user_id: str) -> None:
        self.request(
            PROJECT_MEMBER_ENDPOINT_TEMPLATE.format(project_id=project_id, user_id=user_id),
            method="DELETE",
            auth_override=AuthType.JWT,
        )

    def leave_project(self, project_id: str) -> dict[str, Any]:
        return self.request(
            PROJECT_LEAVE_ENDPOINT_TEMPLATE.format(project_id=project_id),
            method="POST",
            auth_override=AuthType.JWT,
        )

    def get_pending_invitations(self) -> list[PendingInvitation]:
        payload = self.request(PENDING_INVITATIONS_ENDPOINT, auth_override=AuthType.JWT) or {}
        return [PendingInvitation.from_dict(row) for row in payload.get("invitations") or []]

    def accept_invitation(self, project_id: str) -> dict[str, Any]:
        return self.request(
            INVITATION_ACCEPT_ENDPOINT_TEMPLATE.format(project_id=project_id),
            method="POST",
            auth_override=AuthType.JWT,
        )

    def decline_invitation(self, project_id: str) -> dict[str, Any]:
        return self.request(
            INVITATION_DECLINE_ENDPOINT_TEMPLATE.format(project_id=project_id),
            method="POST",
            auth_override=AuthType.JWT,
        )

    # Authentication. Credential-exchange endpoints are unauthenticated so a
    # stale JWT never triggers a refresh loop on a wrong password.

    def login(self, email: str, password: str, remember_me: bool = False) -> dict[str, Any]:
        return self.request(
            AUTH_LOGIN_ENDPOINT,
            method="POST",
            body={"email": email, "password": password, "remember_me": remember_me},
            auth_override=AuthType.NONE,
        )

    def register(
        self,
        email: str,
        password: str,
        name: str | None = None,
        *,
        accept_terms: bool = False,
        accept_privacy: bool = False,
        terms_version: str | None = None,
        privacy_version: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "email": email,
            "password": password,
            "accept_terms": accept_terms,
            "accept_privacy": accept_privacy,
        }
        if name:
            body["name"] = name
        if terms_version:
            body["terms_version"] = terms_version
        if privacy_version:
            body["privacy_version"] = privacy_version
        return self.request(AUTH_REGISTER_ENDPOINT, method="POST", body=body, auth_override=AuthType.NONE)

    def refresh(self, refresh_token: str) -> dict[str, Any]:
        return self.request(
            AUTH_REFRESH_ENDPOINT,
            method="POST",
            body={"refresh_token": refresh_token},
            auth_override=AuthType.NONE,
        )

    def logout(self) -> None:
        self.request(AUTH_LOGOUT_ENDPOINT, method="POST", retry_on_unauthorized=False)

    def get_current_user(self) -> User:
        return User.from_dict(self.request(AUTH_ME_ENDPOINT) or {})

    def get_policy_status(self, *, retry_on_unauthorized: bool = True) -> PolicyCheckResponse:
        payload = self.request(AUTH_POLICIES_STATUS_ENDPOINT, retry_on_unauthorized=retry_on_unauthorized)
        return PolicyCheckResponse.from_dict(payload or {})

    def accept_policies(self, consents: list[dict[str, str]]) -> PolicyCheckResponse:
        payload = self.request(AUTH_POLICIES_ACCEPT_ENDPOINT, method="POST", body=consents)
        return PolicyCheckResponse.from_dict(payload or {})

    def get_current_policy_versions(self) -> dict[str, Any]:
        return self.request(AUTH_POLICIES_CURRENT_ENDPOINT, auth_override=AuthType.NONE) or {}

    def request_password_reset(self, email: str) -> None:
        self.request(
            AUTH_PASSWORD_RESET_REQUEST_ENDPOINT,
            method="POST",
            body={"email": email},
            auth_override=AuthType.NONE,
        )

    def reset_password(self, token: str, new_password: str) -> None:
        self.request(
            AUTH_PASSWORD_RESET_ENDPOINT,
            method="POST",
            body={"token": token, "new_password": new_password},
            auth_override=AuthType.NONE,
        )

    def verify_email(self, token: str) -> dict[str, Any] | None:
        return self.request(
            AUTH_VERIFY_EMAIL_ENDPOINT,
            method="POST",
            body={"token": token},
            auth_override=AuthType.NONE,
        )

    # Feedback

    def list_feedback(
        self,
        *,
        type_: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        sort_by: str | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> tuple[list[FeedbackItem], int]:
        params: dict[str, Any] = {}
        for key, value in (("type", type_), ("status", status), ("priority", priority)):
            if value and value != "all":
                params[key] = value
        if sort_by:
            params["sort_by"] = sort_by
        if search and search.strip():
            params["search"] = search.strip()
        if limit:
            params["limit"] = limit
        if offset:
            params["offset"] = offset

        payload = self.request(FEEDBACK_ENDPOINT, params=params or None, auth_override=AuthType.JWT) or {}
        items = [FeedbackItem.from_dict(row) for row in payload.get("items") or []]
        return items, int(payload.get("total", len(items)))

    def get_feedback_summary(self) -> dict[str, Any]:
        return self.request(FEEDBACK_SUMMARY_ENDPOINT, auth_override=AuthType.JWT) or {}

    def create_feedback(
        self,
        type_: str,
        title: str,
        description: str,
        *,
        model_name: str | None = None,
        model_provider: str | None = None,
        environment: str | None = None,
    ) -> dict[str, Any]:
        body = {
            "type": type_,
            "title": title,
            "description": description,
            "model_name": model_name,
            "model_provider": model_provider,
            "environment": environment,
        }
        return self.request(FEEDBACK_ENDPOINT, method="POST", body=body, auth_override=AuthType.JWT)

    def toggle_feedback_upvote(self, feedback_id: str) -> dict[str, Any]:
        return self.request(
            FEEDBACK_UPVOTE_ENDPOINT_TEMPLATE.format(feedback_id=feedback_id),
            method="POST",
            auth_override=AuthType.JWT,
        )

    def get_feedback_comments(self, feedback_id: str) -> list[FeedbackComment]:
        payload = self.request(
            FEEDBACK_COMMENTS_ENDPOINT_TEMPLATE.format(feedback_id=feedback_id),
            auth_override=AuthType.JWT,
        ) or {}
        return [FeedbackComment.from_dict(row) for row in payload.get("items") or []]

    def add_feedback_comment(self, feedback_id: str, comment: str, user_name: str | None = None) -> dict[str, Any]:
        return self.request(
            FEEDBACK_COMMENTS_ENDPOINT_TEMPLATE.format(feedback_id=feedback_id),
            method="POST",
            body={"comment": comment, "user_name": user_name},
            auth_override=AuthType.JWT,
        )
