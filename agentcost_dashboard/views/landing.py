"""Public landing page."""

from __future__ import annotations

import streamlit as st

from agentcost_dashboard.config import ROUTE_DASHBOARD, ROUTE_DOCS, ROUTE_LOGIN, ROUTE_REGISTER
from agentcost_dashboard.ui import get_context, navigate

FEATURES = [
    ("Cost Tracking", "Real-time cost monitoring for every API call across all your agents and models."),
    ("Rich Analytics", "Detailed breakdowns by agent, model, and time period with beautiful visualizations."),
    ("Smart Optimizations", "AI-powered suggestions to reduce costs without sacrificing quality."),
]

FAQS = [
    (
        "How long does it take to set up AgentCost?",
        "Under two minutes. Install the Python SDK with pip, add two lines to your application "
        "(import + init), and start the backend with Docker. Your existing LangChain code works "
        "completely unchanged.",
    ),
    (
        "Do I need to modify my existing LangChain code?",
        "No. AgentCost transparently intercepts LLM calls. You add an import and an init call at the "
        "top of your application and every LLM invocation is automatically tracked.",
    ),
    (
        "What overhead does the SDK add to my LLM calls?",
        "Near-zero. The SDK batches events and sends them in bulk, so individual LLM calls see less "
        "than 1ms of additional latency.",
    ),
    (
        "Is AgentCost self-hosted? Where does my data go?",
        "Fully self-hosted. You deploy the backend and database on your own infrastructure. No data "
        "is sent to any external service.",
    ),
    (
        "How are costs calculated?",
        "(input_tokens × input_price) + (output_tokens × output_price), using pricing data for "
        "1,900+ models.",
    ),
    (
        "Can I track costs per agent in a multi-agent system?",
        "Yes. Wrap calls in track_costs.agent('agent-name') to attribute them to a specific agent. "
        "The dashboard then shows per-agent breakdowns and optimization suggestions.",
    ),
]


def render_landing_page() -> None:
    session = get_context().session

    st.title("Know what every LLM call costs")
    st.write(
        "The complete observability platform for your AI agents. Track costs, optimize performance, "
        "and gain insights into every LLM call."
    )

    if session.is_authenticated:
        if st.button("Open dashboard", type="primary"):
            navigate(ROUTE_DASHBOARD)
    else:
        start_col, login_col, docs_col, _ = st.columns([1, 1, 1, 3])
        if start_col.button("Get started", type="primary"):
            navigate(ROUTE_REGISTER)
        if login_col.button("Sign in"):
            navigate(ROUTE_LOGIN)
        if docs_col.button("Docs"):
            navigate(ROUTE_DOCS)

    st.divider()
    for col, (title, body) in zip(st.columns(len(FEATURES)), FEATURES):
        col.markdown(f"**{title}**")
        col.caption(body)

    st.subheader("Two lines to start")
    st.code(
        'from agentcost import track_costs\n\ntrack_costs.init(api_key="your_api_key", project_id="my-project")',
        language="python",
    )

    st.subheader("Frequently asked questions")
    for question, answer in FAQS:
        with st.expander(question):
            st.write(answer)
