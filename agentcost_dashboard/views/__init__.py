"""Page registry: every dashboard route and the function that renders it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Callable

import streamlit as st

from agentcost_dashboard import config
from agentcost_dashboard.views import analytics, auth, docs, feedback, landing, optimizations, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageRoute:
    route: str
    title: str
    render: Callable[[], None]

    @property
    def url_path(self) -> str:
        return self.route.strip("/").replace("/", "-")


PAGES = [
    PageRoute(config.ROUTE_LANDING, "AgentCost", landing.render_landing_page),
    PageRoute(config.ROUTE_LOGIN, "Sign in", auth.render_login_page),
    PageRoute(config.ROUTE_REGISTER, "Create account", auth.render_register_page),
    PageRoute(config.ROUTE_FORGOT_PASSWORD, "Forgot password", auth.render_forgot_password_page),
    PageRoute(config.ROUTE_RESET_PASSWORD, "Reset password", auth.render_reset_password_page),
    PageRoute(config.ROUTE_VERIFY_EMAIL, "Verify email", auth.render_verify_email_page),
    PageRoute(config.ROUTE_ACCEPT_POLICIES, "Accept policies", auth.render_accept_policies_page),
    PageRoute(config.ROUTE_DASHBOARD, "Overview", analytics.render_dashboard_page),
    PageRoute(config.ROUTE_AGENTS, "Agents", analytics.render_agents_page),
    PageRoute(config.ROUTE_MODELS, "Models", analytics.render_models_page),
    PageRoute(config.ROUTE_EVENTS, "Events", analytics.render_events_page),
    PageRoute(config.ROUTE_OPTIMIZATIONS, "Optimizations", optimizations.render_optimizations_page),
    PageRoute(config.ROUTE_SETTINGS, "Settings", settings.render_settings_page),
    PageRoute(config.ROUTE_TEAM, "Team", settings.render_team_page),
    PageRoute(config.ROUTE_FEEDBACK, "Feedback", feedback.render_feedback_page),
    PageRoute(config.ROUTE_DOCS, "Documentation", docs.render_docs_page),
    PageRoute(config.ROUTE_DOCS_SDK, "SDK Documentation", docs.render_sdk_docs_page),
    PageRoute(config.ROUTE_DOCS_API, "API Reference", docs.render_api_docs_page),
    PageRoute(config.ROUTE_TERMS, "Terms of Service", docs.render_terms_page),
    PageRoute(config.ROUTE_PRIVACY, "Privacy Policy", docs.render_privacy_page),
]


def guarded(render: Callable[[], None]) -> Callable[[], None]:
    """Show unexpected failures as an inline error instead of a traceback page."""

    @wraps(render)
    def _render() -> None:
        try:
            render()
        except Exception as exc:
            logger.exception("Page %s failed", render.__name__)
            st.error(f"Unexpected error while rendering this page: {exc}")

    return _render
