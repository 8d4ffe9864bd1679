import json

import pytest
import requests

from agentcost_dashboard.api_client import AgentCostClient, AuthType, resolve_auth_type
from agentcost_dashboard.config import (
    EVENT_TOKEN_REFRESH_FAILED,
    EVENT_TOKENS_REFRESHED,
    STORAGE_ACCESS_TOKEN_KEY,
    STORAGE_CONFIG_KEY,
    STORAGE_REFRESH_TOKEN_KEY,
)
from agentcost_dashboard.errors import APIError
from agentcost_dashboard.models import Role
from agentcost_dashboard.storage import LocalStorage

BASE_URL = "http://backend.test"


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str | None = None, reason: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is None else json.dumps(payload))
        self.reason = reason

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    def __init__(self, routes: dict[str, list[FakeResponse]]) -> None:
        self.routes = routes
        self.calls: list[dict] = []
        self.closed = False

    def request(self, method, url, *, json=None, params=None, headers=None, timeout=None):
        path = url[len(BASE_URL):]
        self.calls.append({"method": method, "path": path, "json": json, "params": params, "headers": headers})
        queue = self.routes.get(path)
        if not queue:
            raise AssertionError(f"unexpected request to {path}")
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def close(self) -> None:
        self.closed = True

    def paths(self) -> list[str]:
        return [call["path"] for call in self.calls]


def make_client(routes, *, api_key="sk_test", access_token=None, refresh_token=None):
    storage = LocalStorage()
    storage.set_item(STORAGE_CONFIG_KEY, json.dumps({"apiKey": api_key, "baseUrl": BASE_URL}))
    if access_token:
        storage.set_item(STORAGE_ACCESS_TOKEN_KEY, access_token)
    if refresh_token:
        storage.set_item(STORAGE_REFRESH_TOKEN_KEY, refresh_token)
    session = FakeSession(routes)
    return AgentCostClient(storage, session=session), session


def test_resolve_auth_type_follows_endpoint_rules() -> None:
    assert resolve_auth_type("/v1/health") is AuthType.NONE
    assert resolve_auth_type("/v1/auth/me") is AuthType.JWT
    assert resolve_auth_type("/v1/feedback?limit=20") is AuthType.JWT
    assert resolve_auth_type("/v1/projects") is AuthType.JWT
    assert resolve_auth_type("/v1/projects/p1/members") is AuthType.JWT
    assert resolve_auth_type("/v1/projects/invitations/pending") is AuthType.JWT
    assert resolve_auth_type("/v1/projects/p1/leave") is AuthType.JWT
    assert resolve_auth_type("/v1/projects/p1") is AuthType.JWT
    assert resolve_auth_type("/v1/projects/me") is AuthType.API_KEY
    assert resolve_auth_type("/v1/analytics/overview") is AuthType.API_KEY
    assert resolve_auth_type("/v1/optimizations/recommendations") is AuthType.API_KEY


def test_api_key_endpoint_sends_project_key() -> None:
    client, session = make_client(
        {"/v1/analytics/overview": [FakeResponse(200, {"total_cost": 1.5, "total_calls": 3})]},
        access_token="jwt-a",
    )

    overview = client.get_overview("24h")

    call = session.calls[0]
    assert call["headers"]["Authorization"] == "Bearer sk_test"
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["params"] == {"range": "24h"}
    assert overview.total_cost == 1.5
    assert overview.total_calls == 3


def test_missing_credential_omits_authorization_header() -> None:
    client, session = make_client({"/v1/auth/me": [FakeResponse(200, {"id": "u1", "email": "a@b.c"})]})

    client.get_current_user()

    assert "Authorization" not in session.calls[0]["headers"]
    assert session.calls[0]["headers"]["Content-Type"] == "application/json"


def test_health_is_unauthenticated() -> None:
    client, session = make_client({"/v1/health": [FakeResponse(200, {"status": "ok"})]})

    assert client.get_health() == {"status": "ok"}
    assert "Authorization" not in session.calls[0]["headers"]


def test_jwt_401_refreshes_once_and_retries_with_new_token() -> None:
    client, session = make_client(
        {
            "/v1/auth/me": [
                FakeResponse(401, {"detail": "expired"}, reason="Unauthorized"),
                FakeResponse(200, {"id": "u1", "email": "dev@example.com"}),
            ],
            "/v1/auth/refresh": [FakeResponse(200, {"access_token": "jwt-b", "refresh_token": "rt-b"})],
        },
        access_token="jwt-a",
        refresh_token="rt-a",
    )
    refreshed = []
    client.bus.subscribe(EVENT_TOKENS_REFRESHED, refreshed.append)

    user = client.get_current_user()

    assert user.email == "dev@example.com"
    assert session.paths() == ["/v1/auth/me", "/v1/auth/refresh", "/v1/auth/me"]
    assert session.calls[1]["json"] == {"refresh_token": "rt-a"}
    assert "Authorization" not in session.calls[1]["headers"]
    assert session.calls[2]["headers"]["Authorization"] == "Bearer jwt-b"
    assert client.storage.get_item(STORAGE_ACCESS_TOKEN_KEY) == "jwt-b"
    assert client.storage.get_item(STORAGE_REFRESH_TOKEN_KEY) == "rt-b"
    assert refreshed == [{"access_token": "jwt-b", "refresh_token": "rt-b"}]


def test_second_401_after_refresh_raises_without_looping() -> None:
    client, session = make_client(
        {
            "/v1/auth/me": [FakeResponse(401, text="", reason="Unauthorized")],
            "/v1/auth/refresh": [FakeResponse(200, {"access_token": "jwt-b"})],
        },
        access_token="jwt-a",
        refresh_token="rt-a",
    )

    with pytest.raises(APIError) as exc_info:
        client.get_current_user()

    assert exc_info.value.status_code == 401
    assert session.paths() == ["/v1/auth/me", "/v1/auth/refresh", "/v1/auth/me"]
    # Refresh token is kept when the server does not rotate it.
    assert client.storage.get_item(STORAGE_REFRESH_TOKEN_KEY) == "rt-a"


def test_failed_refresh_broadcasts_and_raises_original_401() -> None:
    client, session = make_client(
        {
            "/v1/auth/me": [FakeResponse(401, text="", reason="Unauthorized")],
            "/v1/auth/refresh": [FakeResponse(401, {"detail": "revoked"}, reason="Unauthorized")],
        },
        access_token="jwt-a",
        refresh_token="rt-a",
    )
    failures = []
    client.bus.subscribe(EVENT_TOKEN_REFRESH_FAILED, failures.append)

    with pytest.raises(APIError) as exc_info:
        client.get_current_user()

    assert exc_info.value.status_code == 401
    assert session.paths() == ["/v1/auth/me", "/v1/auth/refresh"]
    assert failures == [{"status_code": 401}]


def test_missing_refresh_token_broadcasts_failure() -> None:
    client, session = make_client({"/v1/auth/me": [FakeResponse(401, text="")]}, access_token="jwt-a")
    failures = []
    client.bus.subscribe(EVENT_TOKEN_REFRESH_FAILED, failures.append)

    with pytest.raises(APIError):
        client.get_current_user()

    assert session.paths() == ["/v1/auth/me"]
    assert len(failures) == 1


def test_api_key_401_is_not_refreshed() -> None:
    client, session = make_client(
        {"/v1/analytics/overview": [FakeResponse(401, {"detail": "Invalid API key"}, reason="Unauthorized")]},
        access_token="jwt-a",
        refresh_token="rt-a",
    )

    with pytest.raises(APIError) as exc_info:
        client.get_overview()

    assert session.paths() == ["/v1/analytics/overview"]
    assert str(exc_info.value) == 'API Error: 401 Unauthorized - {"detail": "Invalid API key"}'


def test_refresh_is_skipped_when_another_caller_already_rotated() -> None:
    client, session = make_client({}, access_token="jwt-new", refresh_token="rt-a")

    assert client.refresh_session_tokens(stale_token="jwt-old") is True
    assert session.calls == []


def test_no_content_response_returns_none() -> None:
    client, _ = make_client(
        {"/v1/projects/p1/members/u2": [FakeResponse(204, text="")]},
        access_token="jwt-a",
    )

    assert client.remove_member("p1", "u2") is None


def test_non_json_success_body_raises_api_error() -> None:
    client, _ = make_client({"/v1/health": [FakeResponse(200, text="<html>")]})

    with pytest.raises(APIError, match="non-JSON"):
        client.get_health()


def test_transport_failure_is_wrapped() -> None:
    client, session = make_client({})

    def boom(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    session.request = boom

    with pytest.raises(APIError) as exc_info:
        client.get_health()

    assert exc_info.value.status_code is None
    assert "connection refused" in str(exc_info.value)


def test_is_configured_tracks_saved_api_key(monkeypatch) -> None:
    monkeypatch.delenv("AGENTCOST_API_KEY", raising=False)
    client, _ = make_client({}, api_key="")
    assert client.is_configured() is False

    client.config_store.update(api_key="sk_live")
    assert client.is_configured() is True


def test_rotate_api_key_forces_jwt() -> None:
    client, session = make_client(
        {"/v1/projects/p1/api-key/rotate": [FakeResponse(200, {"api_key": "sk_new"})]},
        access_token="jwt-a",
    )

    assert client.rotate_project_api_key("p1") == {"api_key": "sk_new"}
    assert session.calls[0]["headers"]["Authorization"] == "Bearer jwt-a"


def test_dismiss_sends_feedback_or_null() -> None:
    client, session = make_client(
        {"/v1/optimizations/recommendations/r1/dismiss": [FakeResponse(200, {"status": "dismissed"})]}
    )

    client.dismiss_recommendation("r1", "Too risky")
    client.dismiss_recommendation("r1")

    assert session.calls[0]["json"] == {"feedback": "Too risky"}
    assert session.calls[1]["json"] == {"feedback": None}
    assert session.calls[0]["method"] == "POST"


def test_team_endpoints_unwrap_payloads() -> None:
    client, session = make_client(
        {
            "/v1/projects/p1/members": [
                FakeResponse(200, {"members": [{"id": "m1", "user_id": "u1", "email": "a@b.c", "role": "viewer"}]})
            ],
            "/v1/projects/invitations/pending": [
                FakeResponse(200, {"invitations": [{"project_id": "p2", "project_name": "Other", "role": "member"}]})
            ],
            "/v1/projects/p1/members/u1": [FakeResponse(200, {"role": "admin"})],
        },
        access_token="jwt-a",
    )

    members = client.get_project_members("p1")
    invitations = client.get_pending_invitations()
    client.update_member_role("p1", "u1", Role.ADMIN)

    assert members[0].role is Role.VIEWER
    assert invitations[0].project_name == "Other"
    assert session.calls[2]["method"] == "PATCH"
    assert session.calls[2]["json"] == {"role": "admin"}


def test_full_analytics_and_recommendation_reports_unwrap_payloads() -> None:
    client, session = make_client(
        {
            "/v1/analytics/full": [
                FakeResponse(
                    200,
                    {
                        "overview": {"total_cost": "12.5", "total_calls": 40},
                        "agents": [{"agent_name": "router", "total_cost": 10.0}],
                        "models": [{"model": "gpt-4o", "input_tokens": 900, "output_tokens": 100}],
                        "timeseries": [{"timestamp": "2026-01-01T00:00:00Z", "cost": 2.5, "calls": 8}],
                    },
                )
            ],
            "/v1/optimizations/recommendations/generate": [
                FakeResponse(200, [{"type": "caching", "title": "Cache prompts", "description": "", "priority": "high"}])
            ],
            "/v1/optimizations/recommendations/effectiveness": [
                FakeResponse(200, {"total_recommendations": 5, "implemented": 3, "total_estimated_savings": 80.0})
            ],
        }
    )

    bundle = client.get_full_analytics("7d")
    generated = client.generate_optimization_recommendations()
    effectiveness = client.get_recommendation_effectiveness()

    assert bundle.overview.total_cost == 12.5
    assert bundle.overview.total_calls == 40
    assert [agent.agent_name for agent in bundle.agents] == ["router"]
    assert bundle.models[0].input_tokens == 900
    assert bundle.timeseries[0].calls == 8
    assert session.calls[0]["params"] == {"range": "7d"}

    assert [(item.type, item.priority) for item in generated] == [("caching", "high")]
    assert session.calls[1]["method"] == "POST"

    assert effectiveness.total_recommendations == 5
    assert effectiveness.implemented == 3
    assert effectiveness.estimated_savings_total == 80.0


def test_full_analytics_tolerates_missing_sections() -> None:
    client, _ = make_client({"/v1/analytics/full": [FakeResponse(200, {})]})

    bundle = client.get_full_analytics()

    assert bundle.overview.total_cost == 0.0
    assert bundle.agents == []
    assert bundle.models == []
    assert bundle.timeseries == []


def test_login_is_unauthenticated_even_with_stale_token() -> None:
    client, session = make_client(
        {"/v1/auth/login": [FakeResponse(401, {"detail": "Invalid email or password"}, reason="Unauthorized")]},
        access_token="jwt-stale",
        refresh_token="rt-a",
    )

    with pytest.raises(APIError):
        client.login("dev@example.com", "wrong")

    assert session.paths() == ["/v1/auth/login"]
    assert "Authorization" not in session.calls[0]["headers"]


def test_register_sends_policy_versions() -> None:
    client, session = make_client({"/v1/auth/register": [FakeResponse(201, {"id": "u1"})]})

    client.register(
        "dev@example.com",
        "Secret123",
        "Dev",
        accept_terms=True,
        accept_privacy=True,
        terms_version="2.0",
        privacy_version="1.1",
    )

    body = session.calls[0]["json"]
    assert body["name"] == "Dev"
    assert body["terms_version"] == "2.0"
    assert body["privacy_version"] == "1.1"
    assert body["accept_terms"] is True


def test_close_closes_http_session() -> None:
    client, session = make_client({})
    with client:
        pass
    assert session.closed is True
