"""Application configuration for the AgentCost dashboard."""

from __future__ import annotations

from pathlib import Path

DEFAULT_API_BASE_URL = "http://localhost:8000"

ENV_API_URL = "AGENTCOST_API_URL"
ENV_API_KEY = "AGENTCOST_API_KEY"
ENV_STORAGE_PATH = "AGENTCOST_STORAGE_PATH"
ENV_SESSION_PATH = "AGENTCOST_SESSION_PATH"

DEFAULT_STORAGE_PATH = Path.home() / ".agentcost" / "dashboard.json"

REQUEST_TIMEOUT_SECONDS = 30
FETCH_MAX_WORKERS = 4

# Persisted storage keys
STORAGE_CONFIG_KEY = "agentcost_config"
STORAGE_ACCESS_TOKEN_KEY = "access_token"
STORAGE_REFRESH_TOKEN_KEY = "refresh_token"
STORAGE_USER_KEY = "user"

# Event names
EVENT_TOKENS_REFRESHED = "tokens-refreshed"
EVENT_TOKEN_REFRESH_FAILED = "token-refresh-failed"
EVENT_CONFIG_UPDATED = "agentcost_config_updated"
EVENT_STORAGE = "storage"

TOKEN_REFRESH_INTERVAL_SECONDS = 45 * 60

DEFAULT_AUTO_REFRESH = False
DEFAULT_REFRESH_INTERVAL_SECONDS = 30
REFRESH_INTERVAL_OPTIONS = [15, 30, 60, 300]

TIME_RANGES = ["24h", "7d", "30d", "90d"]
TIME_RANGE_LABELS = {
    "24h": "Last 24 hours",
    "7d": "Last 7 days",
    "30d": "Last 30 days",
    "90d": "Last 90 days",
}
DEFAULT_TIME_RANGE = "7d"

DASHBOARD_STATS_LIMIT = 10
DETAIL_STATS_LIMIT = 50
EVENTS_PAGE_SIZE = 50
FEEDBACK_PAGE_SIZE = 20

MIN_PASSWORD_LENGTH = 8

# Auth endpoints
HEALTH_ENDPOINT = "/v1/health"
AUTH_LOGIN_ENDPOINT = "/v1/auth/login"
AUTH_REGISTER_ENDPOINT = "/v1/auth/register"
AUTH_LOGOUT_ENDPOINT = "/v1/auth/logout"
AUTH_REFRESH_ENDPOINT = "/v1/auth/refresh"
AUTH_ME_ENDPOINT = "/v1/auth/me"
AUTH_VERIFY_EMAIL_ENDPOINT = "/v1/auth/verify-email"
AUTH_PASSWORD_RESET_REQUEST_ENDPOINT = "/v1/auth/password/reset-request"
AUTH_PASSWORD_RESET_ENDPOINT = "/v1/auth/password/reset"
AUTH_POLICIES_STATUS_ENDPOINT = "/v1/auth/policies/status"
AUTH_POLICIES_ACCEPT_ENDPOINT = "/v1/auth/policies/accept"
AUTH_POLICIES_CURRENT_ENDPOINT = "/v1/auth/policies/current"

# Analytics endpoints
ANALYTICS_OVERVIEW_ENDPOINT = "/v1/analytics/overview"
ANALYTICS_AGENTS_ENDPOINT = "/v1/analytics/agents"
ANALYTICS_MODELS_ENDPOINT = "/v1/analytics/models"
ANALYTICS_TIMESERIES_ENDPOINT = "/v1/analytics/timeseries"
ANALYTICS_FULL_ENDPOINT = "/v1/analytics/full"
EVENTS_ENDPOINT = "/v1/events"
EVENTS_COUNT_ENDPOINT = "/v1/events/count"

# Optimization endpoints
OPTIMIZATIONS_ENDPOINT = "/v1/optimizations"
OPTIMIZATIONS_SUMMARY_ENDPOINT = "/v1/optimizations/summary"
RECOMMENDATIONS_ENDPOINT = "/v1/optimizations/recommendations"
RECOMMENDATIONS_GENERATE_ENDPOINT = "/v1/optimizations/recommendations/generate"
RECOMMENDATIONS_EFFECTIVENESS_ENDPOINT = "/v1/optimizations/recommendations/effectiveness"
RECOMMENDATION_IMPLEMENT_ENDPOINT_TEMPLATE = "/v1/optimizations/recommendations/{recommendation_id}/implement"
RECOMMENDATION_DISMISS_ENDPOINT_TEMPLATE = "/v1/optimizations/recommendations/{recommendation_id}/dismiss"

# Project and team endpoints
PROJECTS_ENDPOINT = "/v1/projects"
PROJECT_ME_ENDPOINT = "/v1/projects/me"
PROJECT_ENDPOINT_TEMPLATE = "/v1/projects/{project_id}"
PROJECT_ROTATE_KEY_ENDPOINT_TEMPLATE = "/v1/projects/{project_id}/api-key/rotate"
PROJECT_MEMBERS_ENDPOINT_TEMPLATE = "/v1/projects/{project_id}/members"
PROJECT_MEMBER_ENDPOINT_TEMPLATE = "/v1/projects/{project_id}/members/{user_id}"
PROJECT_LEAVE_ENDPOINT_TEMPLATE = "/v1/projects/{project_id}/leave"
PENDING_INVITATIONS_ENDPOINT = "/v1/projects/invitations/pending"
INVITATION_ACCEPT_ENDPOINT_TEMPLATE = "/v1/projects/{project_id}/invitations/accept"
INVITATION_DECLINE_ENDPOINT_TEMPLATE = "/v1/projects/{project_id}/invitations/decline"

# Feedback endpoints
FEEDBACK_ENDPOINT = "/v1/feedback"
FEEDBACK_SUMMARY_ENDPOINT = "/v1/feedback/summary"
FEEDBACK_UPVOTE_ENDPOINT_TEMPLATE = "/v1/feedback/{feedback_id}/upvote"
FEEDBACK_COMMENTS_ENDPOINT_TEMPLATE = "/v1/feedback/{feedback_id}/comments"

# Routes
ROUTE_LANDING = "/"
ROUTE_LOGIN = "/auth/login"
ROUTE_REGISTER = "/auth/register"
ROUTE_FORGOT_PASSWORD = "/auth/forgot-password"
ROUTE_RESET_PASSWORD = "/auth/reset-password"
ROUTE_VERIFY_EMAIL = "/auth/verify-email"
ROUTE_ACCEPT_POLICIES = "/auth/accept-policies"
ROUTE_DASHBOARD = "/dashboard"
ROUTE_AGENTS = "/agents"
ROUTE_MODELS = "/models"
ROUTE_EVENTS = "/events"
ROUTE_OPTIMIZATIONS = "/optimizations"
ROUTE_SETTINGS = "/settings"
ROUTE_TEAM = "/settings/team"
ROUTE_FEEDBACK = "/feedback"
ROUTE_DOCS = "/docs"
ROUTE_DOCS_SDK = "/docs/sdk"
ROUTE_DOCS_API = "/docs/api"
ROUTE_TERMS = "/terms"
ROUTE_PRIVACY = "/privacy"

PUBLIC_ROUTES = [
    ROUTE_LANDING,
    ROUTE_LOGIN,
    ROUTE_REGISTER,
    ROUTE_FORGOT_PASSWORD,
    ROUTE_RESET_PASSWORD,
    ROUTE_VERIFY_EMAIL,
    ROUTE_ACCEPT_POLICIES,
    ROUTE_DOCS,
    ROUTE_TERMS,
    ROUTE_PRIVACY,
]

AUTH_ONLY_ROUTES = [
    ROUTE_LOGIN,
    ROUTE_REGISTER,
    ROUTE_FORGOT_PASSWORD,
    ROUTE_RESET_PASSWORD,
    ROUTE_VERIFY_EMAIL,
]
