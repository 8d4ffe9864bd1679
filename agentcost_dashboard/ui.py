"""UI helpers for Streamlit layout, navigation and shared widgets."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

import streamlit as st

from agentcost_dashboard.config import (
    DEFAULT_TIME_RANGE,
    ROUTE_AGENTS,
    ROUTE_DASHBOARD,
    ROUTE_DOCS_API,
    ROUTE_DOCS_SDK,
    ROUTE_EVENTS,
    ROUTE_FEEDBACK,
    ROUTE_MODELS,
    ROUTE_OPTIMIZATIONS,
    ROUTE_SETTINGS,
    TIME_RANGE_LABELS,
    TIME_RANGES,
)
from agentcost_dashboard.context import DashboardContext, build_context
from agentcost_dashboard.formatting import (
    format_currency,
    format_last_refresh,
    format_latency,
    format_number,
    format_percentage,
)
from agentcost_dashboard.models import AnalyticsOverview
from agentcost_dashboard.project_config import ProjectConfig
from agentcost_dashboard.routing import split_route

CONTEXT_KEY = "agentcost_context"
ROUTE_PARAMS_KEY = "agentcost_route_params"
TIME_RANGE_KEY = "agentcost_time_range"

NAV_ITEMS = [
    ("Overview", ROUTE_DASHBOARD),
    ("Agents", ROUTE_AGENTS),
    ("Models", ROUTE_MODELS),
    ("Events", ROUTE_EVENTS),
    ("Optimizations", ROUTE_OPTIMIZATIONS),
    ("Feedback", ROUTE_FEEDBACK),
    ("Settings", ROUTE_SETTINGS),
]

DOC_ITEMS = [
    ("SDK Documentation", ROUTE_DOCS_SDK),
    ("API Reference", ROUTE_DOCS_API),
]

_PAGES: dict[str, Any] = {}


def get_context() -> DashboardContext:
    """One context per browser session, created on first use."""
    if CONTEXT_KEY not in st.session_state:
        st.session_state[CONTEXT_KEY] = build_context()
    return st.session_state[CONTEXT_KEY]


def register_pages(pages: dict[str, Any]) -> None:
    _PAGES.clear()
    _PAGES.update(pages)


def navigate(route: str) -> None:
    """Switch to the page serving ``route``; query parameters ride along in session state."""
    path, params = split_route(route)
    st.session_state[ROUTE_PARAMS_KEY] = params
    st.switch_page(_PAGES[path])


def route_param(name: str, default: str | None = None) -> str | None:
    params = st.session_state.get(ROUTE_PARAMS_KEY) or {}
    if name in params:
        return params[name]
    value = st.query_params.get(name)
    return value if value else default


APP_CSS = """
<style>
    .block-container { max-width: 1320px; padding-top: 1.5rem; }
    section[data-testid="stSidebar"] { border-right: 1px solid #e2e8f0; background: #f8fafc; }
    div[data-testid="stMetric"] {
        background: #ffffff;
        border: 1px solid #e2e8f0;
        border-radius: 10px;
        padding: 12px 14px;
    }
    div[data-testid="stMetricValue"] { font-variant-numeric: tabular-nums; }
</style>
"""


def apply_app_styles() -> None:
    st.markdown(APP_CSS, unsafe_allow_html=True)


def render_header(title: str, caption: str | None = None) -> None:
    st.title(title)
    if caption:
        st.caption(caption)


def render_sidebar(context: DashboardContext) -> None:
    session = context.session
    st.sidebar.header("AgentCost")

    for label, route in NAV_ITEMS:
        st.sidebar.page_link(_PAGES[route], label=label)

    with st.sidebar.expander("Documentation", expanded=False):
        for label, route in DOC_ITEMS:
            st.page_link(_PAGES[route], label=label)

    if session.user is not None:
        st.sidebar.divider()
        st.sidebar.caption(f"Signed in as **{session.user.display_name}**")
        st.sidebar.caption(session.user.email)
        if st.sidebar.button("Log out"):
            navigate(session.logout())


def time_range_selector() -> str:
    current = st.session_state.get(TIME_RANGE_KEY, DEFAULT_TIME_RANGE)
    selected = st.segmented_control(
        "Time range",
        options=TIME_RANGES,
        format_func=lambda value: TIME_RANGE_LABELS[value],
        default=current,
        label_visibility="collapsed",
    )
    st.session_state[TIME_RANGE_KEY] = selected or current
    return st.session_state[TIME_RANGE_KEY]


def render_kpi_cards(overview: AnalyticsOverview) -> None:
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Cost", format_currency(overview.total_cost))
    c2.metric("Total Calls", format_number(overview.total_calls))
    c3.metric("Total Tokens", format_number(overview.total_tokens))
    c4.metric("Avg Latency", format_latency(overview.avg_latency_ms))

    c5, c6, c7, c8 = st.columns(4)
    c5.metric("Avg Cost / Call", format_currency(overview.avg_cost_per_call))
    c6.metric("Avg Tokens / Call", format_number(overview.avg_tokens_per_call))
    c7.metric("Input / Output Tokens", f"{format_number(overview.total_input_tokens)} / {format_number(overview.total_output_tokens)}")
    c8.metric("Success Rate", format_percentage(overview.success_rate))


def render_onboarding() -> None:
    st.title("Welcome to AgentCost")
    st.write(
        "The complete observability platform for your AI agents. Track costs, optimize performance, "
        "and gain insights into every LLM call."
    )

    c1, c2, c3 = st.columns(3)
    c1.markdown("**Cost Tracking**  \nReal-time cost monitoring for every API call across all your agents and models.")
    c2.markdown("**Rich Analytics**  \nDetailed breakdowns by agent, model, and time period with beautiful visualizations.")
    c3.markdown("**Smart Optimizations**  \nAI-powered suggestions to reduce costs without sacrificing quality.")

    st.subheader("Quick Setup Guide")
    st.caption("Takes less than 2 minutes")
    st.markdown(
        "1. **Create a Project**: go to Settings and create a new project for your application.\n"
        "2. **Copy Your API Key**: your unique API key will be shown once. Save it securely!\n"
        "3. **Save Configuration**: paste the API key in the settings page and click Save.\n"
        "4. **Integrate the SDK**: add 2 lines of code to start tracking your LLM costs."
    )
    if st.button("Go to Settings", type="primary"):
        navigate(ROUTE_SETTINGS)


def render_error(message: str, hint: str | None = None) -> None:
    st.error(message)
    if hint:
        st.caption(hint)


def render_refreshing(render: Callable[[], None], config: ProjectConfig, *, key: str) -> None:
    """Render ``render`` and, when auto-refresh is on, re-run it on the configured interval."""
    stamp_key = f"agentcost_last_refresh_{key}"

    def _run() -> None:
        render()
        st.session_state[stamp_key] = datetime.now()
        st.caption(f"Last refresh: {format_last_refresh(st.session_state.get(stamp_key))}")

    if config.auto_refresh and config.refresh_interval > 0:
        st.fragment(_run, run_every=config.refresh_interval)()
    else:
        _run()
