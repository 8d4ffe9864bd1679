"""Route guarding for the dashboard pages."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlsplit

from agentcost_dashboard.config import AUTH_ONLY_ROUTES, PUBLIC_ROUTES, ROUTE_DASHBOARD, ROUTE_LANDING, ROUTE_LOGIN
from agentcost_dashboard.session import AuthState


def split_route(route: str) -> tuple[str, dict[str, str]]:
    """``/auth/accept-policies?return=/dashboard`` -> path and query parameters."""
    parts = urlsplit(route)
    return parts.path or ROUTE_LANDING, dict(parse_qsl(parts.query))


def is_public_route(path: str) -> bool:
    path, _ = split_route(path)
    if path == ROUTE_LANDING:
        return True
    return any(route != ROUTE_LANDING and path.startswith(route) for route in PUBLIC_ROUTES)


def is_auth_only_route(path: str) -> bool:
    path, _ = split_route(path)
    return any(path.startswith(route) for route in AUTH_ONLY_ROUTES)


def resolve_redirect(path: str, authenticated: bool) -> str | None:
    """Where to send the user instead of ``path``, or None to stay."""
    if not authenticated and not is_public_route(path):
        return ROUTE_LOGIN
    if authenticated and is_auth_only_route(path):
        return ROUTE_DASHBOARD
    return None


def guard_route(state: AuthState, path: str) -> str | None:
    if state is AuthState.UNINITIALIZED:
        return None
    return resolve_redirect(path, state is AuthState.AUTHENTICATED)
