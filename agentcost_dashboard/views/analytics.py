"""Overview, agents, models and events pages."""

from __future__ import annotations

import streamlit as st

from agentcost_dashboard.charts import (
    agent_cost_chart,
    call_volume_chart,
    cost_trend_chart,
    model_cost_share_chart,
    model_tokens_chart,
)
from agentcost_dashboard.errors import APIError, is_unauthorized_api_key_error
from agentcost_dashboard.fetchers import fetch_agents, fetch_dashboard, fetch_events_page, fetch_models
from agentcost_dashboard.formatting import format_number
from agentcost_dashboard.transformers import (
    agents_display_table,
    build_agents_df,
    build_events_df,
    build_models_df,
    build_timeseries_df,
    events_display_table,
    models_display_table,
)
from agentcost_dashboard.ui import (
    get_context,
    render_error,
    render_header,
    render_kpi_cards,
    render_onboarding,
    render_refreshing,
    time_range_selector,
)

BACKEND_HINT = "Make sure the backend is running and your API key is valid."
EVENTS_PAGE_KEY = "agentcost_events_page"


def _handle_fetch_error(exc: APIError) -> None:
    if is_unauthorized_api_key_error(exc):
        render_onboarding()
    else:
        render_error(str(exc), BACKEND_HINT)


def render_dashboard_page() -> None:
    context = get_context()
    client = context.client
    if not client.is_configured():
        render_onboarding()
        return

    render_header("Overview", "Cost, volume and reliability across all your agents.")
    range_ = time_range_selector()

    def _render() -> None:
        with st.spinner("Loading analytics..."):
            try:
                bundle = fetch_dashboard(client, range_)
            except APIError as exc:
                _handle_fetch_error(exc)
                return

        render_kpi_cards(bundle.overview)

        timeseries = build_timeseries_df(bundle.timeseries)
        col1, col2 = st.columns(2)
        col1.plotly_chart(cost_trend_chart(timeseries), width="stretch")
        col2.plotly_chart(call_volume_chart(timeseries), width="stretch")

        agents = build_agents_df(bundle.agents)
        models = build_models_df(bundle.models)
        col3, col4 = st.columns(2)
        col3.plotly_chart(agent_cost_chart(agents), width="stretch")
        col4.plotly_chart(model_cost_share_chart(models), width="stretch")

        st.subheader("Top Agents")
        st.dataframe(agents_display_table(agents), width="stretch", hide_index=True)
        st.subheader("Top Models")
        st.dataframe(models_display_table(models), width="stretch", hide_index=True)

    render_refreshing(_render, context.config_store.load(), key="dashboard")


def render_agents_page() -> None:
    context = get_context()
    client = context.client
    if not client.is_configured():
        render_onboarding()
        return

    render_header("Agents", "Spend and performance per agent.")
    range_ = time_range_selector()

    def _render() -> None:
        try:
            agents = build_agents_df(fetch_agents(client, range_))
        except APIError as exc:
            _handle_fetch_error(exc)
            return

        if agents.empty:
            st.info("No agent activity in this time range.")
            return

        st.plotly_chart(agent_cost_chart(agents), width="stretch")
        st.dataframe(agents_display_table(agents), width="stretch", hide_index=True)

    render_refreshing(_render, context.config_store.load(), key="agents")


def render_models_page() -> None:
    context = get_context()
    client = context.client
    if not client.is_configured():
        render_onboarding()
        return

    render_header("Models", "Spend and token usage per model.")
    range_ = time_range_selector()

    def _render() -> None:
        try:
            models = build_models_df(fetch_models(client, range_))
        except APIError as exc:
            _handle_fetch_error(exc)
            return

        if models.empty:
            st.info("No model usage in this time range.")
            return

        col1, col2 = st.columns(2)
        col1.plotly_chart(model_cost_share_chart(models), width="stretch")
        col2.plotly_chart(model_tokens_chart(models), width="stretch")
        st.dataframe(models_display_table(models), width="stretch", hide_index=True)

    render_refreshing(_render, context.config_store.load(), key="models")


def render_events_page() -> None:
    context = get_context()
    client = context.client
    if not client.is_configured():
        render_onboarding()
        return

    render_header("Events", "Every tracked LLM call, newest first.")
    page = st.session_state.get(EVENTS_PAGE_KEY, 0)

    try:
        events_page = fetch_events_page(client, page)
    except APIError as exc:
        _handle_fetch_error(exc)
        return

    if events_page.total == 0:
        st.info("No events yet. Send your first tracked call with the SDK.")
        return

    st.dataframe(events_display_table(build_events_df(events_page.events)), width="stretch", hide_index=True)
    st.caption(
        f"Showing {events_page.first_row} to {events_page.last_row} of {format_number(events_page.total)} events"
    )

    prev_col, next_col, _ = st.columns([1, 1, 6])
    if prev_col.button("Previous", disabled=not events_page.has_previous):
        st.session_state[EVENTS_PAGE_KEY] = page - 1
        st.rerun()
    if next_col.button("Next", disabled=not events_page.has_next):
        st.session_state[EVENTS_PAGE_KEY] = page + 1
        st.rerun()
