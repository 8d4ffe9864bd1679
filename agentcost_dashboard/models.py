"""Typed projections of backend payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OptimizationType(str, Enum):
    MODEL_DOWNGRADE = "model_downgrade"
    CACHING = "caching"
    PROMPT_OPTIMIZATION = "prompt_optimization"
    BATCHING = "batching"
    ERROR_REDUCTION = "error_reduction"
    ANOMALY_ALERT = "anomaly_alert"
    LATENCY = "latency"


class RecommendationStatus(str, Enum):
    PENDING = "pending"
    IMPLEMENTED = "implemented"
    DISMISSED = "dismissed"
    EXPIRED = "expired"


class EmptyReason(str, Enum):
    NO_DATA = "no_data"
    INSUFFICIENT_DATA = "insufficient_data"
    NO_BASELINES = "no_baselines"
    OPTIMIZED = "optimized"


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


def _float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _role(value: Any) -> Role:
    try:
        return Role(str(value))
    except ValueError:
        return Role.VIEWER


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str | None = None
    avatar_url: str | None = None
    email_verified: bool = False
    is_active: bool = True
    created_at: str | None = None
    last_login_at: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "User":
        return cls(
            id=str(payload.get("id", "")),
            email=str(payload.get("email", "")),
            name=_opt_str(payload.get("name")),
            avatar_url=_opt_str(payload.get("avatar_url")),
            email_verified=bool(payload.get("email_verified", False)),
            is_active=bool(payload.get("is_active", True)),
            created_at=_opt_str(payload.get("created_at")),
            last_login_at=_opt_str(payload.get("last_login_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "avatar_url": self.avatar_url,
            "email_verified": self.email_verified,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "last_login_at": self.last_login_at,
        }

    @property
    def display_name(self) -> str:
        return self.name or self.email


@dataclass(frozen=True)
class AnalyticsOverview:
    total_cost: float = 0.0
    total_calls: int = 0
    total_tokens: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    avg_cost_per_call: float = 0.0
    avg_tokens_per_call: float = 0.0
    avg_latency_ms: float = 0.0
    success_rate: float = 0.0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AnalyticsOverview":
        return cls(
            total_cost=_float(payload.get("total_cost")),
            total_calls=_int(payload.get("total_calls")),
            total_tokens=_int(payload.get("total_tokens")),
            total_input_tokens=_int(payload.get("total_input_tokens")),
            total_output_tokens=_int(payload.get("total_output_tokens")),
            avg_cost_per_call=_float(payload.get("avg_cost_per_call")),
            avg_tokens_per_call=_float(payload.get("avg_tokens_per_call")),
            avg_latency_ms=_float(payload.get("avg_latency_ms")),
            success_rate=_float(payload.get("success_rate")),
        )


@dataclass(frozen=True)
class AgentStats:
    agent_name: str
    total_calls: int = 0
    total_cost: float = 0.0
    total_tokens: int = 0
    avg_latency_ms: float = 0.0
    success_rate: float = 0.0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AgentStats":
        return cls(
            agent_name=str(payload.get("agent_name") or "unknown"),
            total_calls=_int(payload.get("total_calls")),
            total_cost=_float(payload.get("total_cost")),
            total_tokens=_int(payload.get("total_tokens")),
            avg_latency_ms=_float(payload.get("avg_latency_ms")),
            success_rate=_float(payload.get("success_rate")),
        )


@dataclass(frozen=True)
class ModelStats:
    model: str
    total_calls: int = 0
    total_cost: float = 0.0
    total_tokens: int = 0
    avg_latency_ms: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ModelStats":
        return cls(
            model=str(payload.get("model") or "unknown"),
            total_calls=_int(payload.get("total_calls")),
            total_cost=_float(payload.get("total_cost")),
            total_tokens=_int(payload.get("total_tokens")),
            avg_latency_ms=_float(payload.get("avg_latency_ms")),
            input_tokens=_int(payload.get("input_tokens")),
            output_tokens=_int(payload.get("output_tokens")),
        )


@dataclass(frozen=True)
class TimeSeriesPoint:
    timestamp: str
    cost: float = 0.0
    calls: int = 0
    tokens: int = 0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "TimeSeriesPoint":
        return cls(
            timestamp=str(payload.get("timestamp", "")),
            cost=_float(payload.get("cost")),
            calls=_int(payload.get("calls")),
            tokens=_int(payload.get("tokens")),
        )


@dataclass(frozen=True)
class AnalyticsBundle:
    overview: AnalyticsOverview
    agents: list[AgentStats] = field(default_factory=list)
    models: list[ModelStats] = field(default_factory=list)
    timeseries: list[TimeSeriesPoint] = field(default_factory=list)


@dataclass(frozen=True)
class Event:
    id: str
    project_id: str
    agent_name: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0
    latency_ms: float = 0.0
    timestamp: str = ""
    success: bool = True
    error: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Event":
        return cls(
            id=str(payload.get("id", "")),
            project_id=str(payload.get("project_id", "")),
            agent_name=str(payload.get("agent_name") or "unknown"),
            model=str(payload.get("model") or "unknown"),
            input_tokens=_int(payload.get("input_tokens")),
            output_tokens=_int(payload.get("output_tokens")),
            total_tokens=_int(payload.get("total_tokens")),
            cost=_float(payload.get("cost")),
            latency_ms=_float(payload.get("latency_ms")),
            timestamp=str(payload.get("timestamp", "")),
            success=bool(payload.get("success", True)),
            error=_opt_str(payload.get("error")),
        )


@dataclass(frozen=True)
class OptimizationSuggestion:
    type: str
    title: str
    description: str
    estimated_savings_monthly: float | None = None
    estimated_savings_percent: float = 0.0
    priority: str = "low"
    action_items: list[str] = field(default_factory=list)
    agent_name: str | None = None
    model: str | None = None
    alternative_model: str | None = None
    metrics: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "OptimizationSuggestion":
        savings = payload.get("estimated_savings_monthly")
        metrics = payload.get("metrics")
        return cls(
            type=str(payload.get("type", "")),
            title=str(payload.get("title", "")),
            description=str(payload.get("description", "")),
            estimated_savings_monthly=None if savings is None else _float(savings),
            estimated_savings_percent=_float(payload.get("estimated_savings_percent")),
            priority=str(payload.get("priority") or "low"),
            action_items=[str(item) for item in payload.get("action_items") or []],
            agent_name=_opt_str(payload.get("agent_name")),
            model=_opt_str(payload.get("model")),
            alternative_model=_opt_str(payload.get("alternative_model")),
            metrics=metrics if isinstance(metrics, dict) else {},
        )


@dataclass(frozen=True)
class RecommendationEffectiveness:
    total_recommendations: int = 0
    implemented: int = 0
    dismissed: int = 0
    pending: int = 0
    expired: int = 0
    implementation_rate: float = 0.0
    estimated_savings_total: float = 0.0
    actual_savings_total: float = 0.0
    accuracy_percent: float = 0.0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RecommendationEffectiveness":
        return cls(
            total_recommendations=_int(payload.get("total_recommendations")),
            implemented=_int(payload.get("implemented")),
            dismissed=_int(payload.get("dismissed")),
            pending=_int(payload.get("pending")),
            expired=_int(payload.get("expired")),
            implementation_rate=_float(payload.get("implementation_rate")),
            estimated_savings_total=_float(
                payload.get("estimated_savings_total", payload.get("total_estimated_savings"))
            ),
            actual_savings_total=_float(
                payload.get("actual_savings_total", payload.get("total_actual_savings"))
            ),
            accuracy_percent=_float(payload.get("accuracy_percent", payload.get("savings_accuracy"))),
        )


@dataclass(frozen=True)
class OptimizationSummary:
    total_potential_savings_monthly: float = 0.0
    total_potential_savings_percent: float = 0.0
    current_monthly_spend: float = 0.0
    suggestion_count: int = 0
    high_priority_count: int = 0
    by_type: dict[str, dict[str, float]] = field(default_factory=dict)
    effectiveness: RecommendationEffectiveness | None = None
    suggestions: list[OptimizationSuggestion] = field(default_factory=list)
    has_data: bool | None = None
    has_baselines: bool | None = None
    event_count: int = 0
    empty_reason: EmptyReason | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "OptimizationSummary":
        effectiveness = payload.get("effectiveness")
        empty_reason = payload.get("empty_reason")
        try:
            reason = EmptyReason(empty_reason) if empty_reason else None
        except ValueError:
            reason = None
        by_type = payload.get("by_type")
        return cls(
            total_potential_savings_monthly=_float(payload.get("total_potential_savings_monthly")),
            total_potential_savings_percent=_float(payload.get("total_potential_savings_percent")),
            current_monthly_spend=_float(payload.get("current_monthly_spend")),
            suggestion_count=_int(payload.get("suggestion_count")),
            high_priority_count=_int(payload.get("high_priority_count")),
            by_type=by_type if isinstance(by_type, dict) else {},
            effectiveness=(
                RecommendationEffectiveness.from_dict(effectiveness)
                if isinstance(effectiveness, dict)
                else None
            ),
            suggestions=[
                OptimizationSuggestion.from_dict(item)
                for item in payload.get("suggestions") or []
                if isinstance(item, dict)
            ],
            has_data=payload.get("has_data"),
            has_baselines=payload.get("has_baselines"),
            event_count=_int(payload.get("event_count")),
            empty_reason=reason,
        )


@dataclass(frozen=True)
class Recommendation:
    id: str
    type: str
    title: str
    description: str = ""
    agent_name: str | None = None
    model: str | None = None
    alternative_model: str | None = None
    estimated_monthly_savings: float = 0.0
    estimated_savings_percent: float = 0.0
    created_at: str = ""
    expires_at: str = ""

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Recommendation":
        return cls(
            id=str(payload.get("id", "")),
            type=str(payload.get("type", "")),
            title=str(payload.get("title", "")),
            description=str(payload.get("description") or ""),
            agent_name=_opt_str(payload.get("agent_name")),
            model=_opt_str(payload.get("model")),
            alternative_model=_opt_str(payload.get("alternative_model")),
            estimated_monthly_savings=_float(payload.get("estimated_monthly_savings")),
            estimated_savings_percent=_float(payload.get("estimated_savings_percent")),
            created_at=str(payload.get("created_at", "")),
            expires_at=str(payload.get("expires_at", "")),
        )


@dataclass(frozen=True)
class ProjectInfo:
    id: str
    name: str
    description: str | None = None
    api_key: str | None = None
    key_prefix: str | None = None
    created_at: str = ""
    is_active: bool = True

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ProjectInfo":
        return cls(
            id=str(payload.get("id", "")),
            name=str(payload.get("name", "")),
            description=_opt_str(payload.get("description")),
            api_key=_opt_str(payload.get("api_key")),
            key_prefix=_opt_str(payload.get("key_prefix")),
            created_at=str(payload.get("created_at", "")),
            is_active=bool(payload.get("is_active", True)),
        )


@dataclass(frozen=True)
class ProjectMember:
    id: str
    user_id: str
    email: str
    role: Role
    name: str | None = None
    is_owner: bool = False
    is_pending: bool = False
    invited_at: str | None = None
    accepted_at: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ProjectMember":
        return cls(
            id=str(payload.get("id", "")),
            user_id=str(payload.get("user_id", "")),
            email=str(payload.get("email", "")),
            role=_role(payload.get("role")),
            name=_opt_str(payload.get("name")),
            is_owner=bool(payload.get("is_owner", False)),
            is_pending=bool(payload.get("is_pending", False)),
            invited_at=_opt_str(payload.get("invited_at")),
            accepted_at=_opt_str(payload.get("accepted_at")),
        )


@dataclass(frozen=True)
class PendingInvitation:
    project_id: str
    project_name: str
    role: Role
    invited_by_name: str | None = None
    invited_by_email: str | None = None
    invited_at: str = ""

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PendingInvitation":
        invited_by = payload.get("invited_by")
        if not isinstance(invited_by, dict):
            invited_by = {}
        return cls(
            project_id=str(payload.get("project_id", "")),
            project_name=str(payload.get("project_name", "")),
            role=_role(payload.get("role")),
            invited_by_name=_opt_str(invited_by.get("name")),
            invited_by_email=_opt_str(invited_by.get("email")),
            invited_at=str(payload.get("invited_at", "")),
        )

    @property
    def inviter(self) -> str:
        return self.invited_by_name or self.invited_by_email or "Unknown"


@dataclass(frozen=True)
class PolicyStatus:
    policy_type: str
    current_version: str
    accepted_version: str | None = None
    accepted_at: str | None = None
    is_current: bool = False

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PolicyStatus":
        return cls(
            policy_type=str(payload.get("policy_type", "")),
            current_version=str(payload.get("current_version", "")),
            accepted_version=_opt_str(payload.get("accepted_version")),
            accepted_at=_opt_str(payload.get("accepted_at")),
            is_current=bool(payload.get("is_current", False)),
        )


@dataclass(frozen=True)
class PolicyCheckResponse:
    policies_accepted: bool
    terms: PolicyStatus
    privacy: PolicyStatus

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "PolicyCheckResponse":
        return cls(
            policies_accepted=bool(payload.get("policies_accepted", False)),
            terms=PolicyStatus.from_dict(payload.get("terms") or {"policy_type": "terms"}),
            privacy=PolicyStatus.from_dict(payload.get("privacy") or {"policy_type": "privacy"}),
        )


@dataclass(frozen=True)
class FeedbackItem:
    id: str
    type: str
    title: str
    description: str
    status: str = "open"
    priority: str = "medium"
    upvotes: int = 0
    user_has_upvoted: bool = False
    comment_count: int = 0
    created_at: str = ""
    updated_at: str = ""
    user_name: str | None = None
    model_name: str | None = None
    model_provider: str | None = None
    admin_response: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "FeedbackItem":
        return cls(
            id=str(payload.get("id", "")),
            type=str(payload.get("type", "general")),
            title=str(payload.get("title", "")),
            description=str(payload.get("description", "")),
            status=str(payload.get("status") or "open"),
            priority=str(payload.get("priority") or "medium"),
            upvotes=_int(payload.get("upvotes")),
            user_has_upvoted=bool(payload.get("user_has_upvoted", False)),
            comment_count=_int(payload.get("comment_count")),
            created_at=str(payload.get("created_at", "")),
            updated_at=str(payload.get("updated_at", "")),
            user_name=_opt_str(payload.get("user_name")),
            model_name=_opt_str(payload.get("model_name")),
            model_provider=_opt_str(payload.get("model_provider")),
            admin_response=_opt_str(payload.get("admin_response")),
        )


@dataclass(frozen=True)
class FeedbackComment:
    id: str
    comment: str
    is_admin: bool = False
    created_at: str = ""
    user_name: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "FeedbackComment":
        return cls(
            id=str(payload.get("id", "")),
            comment=str(payload.get("comment", "")),
            is_admin=bool(payload.get("is_admin", False)),
            created_at=str(payload.get("created_at", "")),
            user_name=_opt_str(payload.get("user_name")),
        )
