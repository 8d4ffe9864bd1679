"""Static documentation and legal pages."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from agentcost_dashboard.config import ROUTE_DOCS_API, ROUTE_DOCS_SDK
from agentcost_dashboard.ui import navigate, render_header

SDK_SECTIONS = [
    (
        "Installation",
        "Install the AgentCost SDK using pip:",
        "pip install agentcost",
        "bash",
    ),
    (
        "Quick Start",
        "Add just two lines of code to start tracking LLM costs:",
        """from agentcost import track_costs

# Initialize tracking
track_costs.init(
    api_key="your_api_key",
    project_id="my-project"
)

# Your existing code works unchanged
from langchain_openai import ChatOpenAI

llm = ChatOpenAI(model="gpt-4")
response = llm.invoke("Hello, world!")  # Automatically tracked""",
        "python",
    ),
    (
        "Configuration",
        "The SDK supports extensive configuration options:",
        """track_costs.init(
    api_key="sk_...",
    project_id="my-project",
    base_url="https://api.agentcost.dev",
    batch_size=10,
    flush_interval=5.0,
    debug=True,
    default_agent_name="my-agent",
    local_mode=False,
    enabled=True,
    custom_pricing={
        "my-custom-model": {"input": 0.001, "output": 0.002}
    },
    global_metadata={
        "environment": "production",
        "version": "1.0.0"
    }
)""",
        "python",
    ),
    (
        "Agent Tagging",
        "Tag LLM calls by agent for granular analytics:",
        """# Option 1: Set default agent
track_costs.set_agent_name("router-agent")

# Option 2: Context manager (recommended)
with track_costs.agent("technical-agent"):
    llm.invoke("How do I fix this bug?")

with track_costs.agent("billing-agent"):
    llm.invoke("What's my balance?")""",
        "python",
    ),
    (
        "Metadata",
        "Attach custom metadata for filtering and grouping:",
        """# Persistent metadata (attached to all subsequent events)
track_costs.add_metadata("user_id", "user_123")
track_costs.add_metadata("tenant_id", "acme_corp")

# Temporary metadata (context manager)
with track_costs.metadata(conversation_id="conv_456", step="routing"):
    llm.invoke("Route this query")""",
        "python",
    ),
    (
        "Local Mode",
        "Test without running a backend:",
        """track_costs.init(local_mode=True, debug=True)

llm.invoke("Hello!")

events = track_costs.get_local_events()
for event in events:
    print(f"Model: {event['model']}")
    print(f"Tokens: {event['total_tokens']}")
    print(f"Cost: ${event['cost']:.6f}")""",
        "python",
    ),
    (
        "Streaming Support",
        "Streaming calls are automatically tracked:",
        """for chunk in llm.stream("Tell me a story"):
    print(chunk.content, end="")
# Event recorded after stream completes""",
        "python",
    ),
    (
        "Shutdown",
        "Flush pending events before your process exits:",
        """track_costs.flush()
track_costs.shutdown()""",
        "python",
    ),
]

API_ENDPOINTS = [
    ("POST", "/v1/events/batch", "API key", "Ingest a batch of tracked LLM events"),
    ("GET", "/v1/events", "API key", "List recent events (limit, offset)"),
    ("GET", "/v1/events/count", "API key", "Total number of events"),
    ("GET", "/v1/analytics/overview", "API key", "Totals and averages for a time range"),
    ("GET", "/v1/analytics/agents", "API key", "Per-agent cost and volume"),
    ("GET", "/v1/analytics/models", "API key", "Per-model cost and tokens"),
    ("GET", "/v1/analytics/timeseries", "API key", "Cost and calls over time"),
    ("GET", "/v1/optimizations", "API key", "Current optimization suggestions"),
    ("GET", "/v1/optimizations/summary", "API key", "Savings summary and empty-state reason"),
    ("GET", "/v1/optimizations/recommendations", "API key", "Pending recommendations"),
    ("POST", "/v1/optimizations/recommendations/{id}/implement", "API key", "Mark a recommendation implemented"),
    ("POST", "/v1/optimizations/recommendations/{id}/dismiss", "API key", "Dismiss with optional feedback"),
    ("POST", "/v1/auth/register", "None", "Create an account"),
    ("POST", "/v1/auth/login", "None", "Exchange credentials for tokens"),
    ("POST", "/v1/auth/refresh", "None", "Rotate the access and refresh tokens"),
    ("GET", "/v1/auth/me", "JWT", "Current user profile"),
    ("GET", "/v1/projects/me", "JWT", "Project behind the configured API key"),
    ("POST", "/v1/projects", "JWT", "Create a project and its API key"),
    ("GET", "/v1/projects/{id}/members", "JWT", "List project members"),
    ("GET", "/v1/feedback", "JWT", "Browse product feedback"),
]

TERMS_SECTIONS = [
    (
        "Acceptance of Terms",
        "By creating an account or using AgentCost you agree to these Terms of Service. "
        "If you do not agree, do not use the service.",
    ),
    (
        "Use of the Service",
        "AgentCost records metadata about LLM calls made by your applications so you can analyze "
        "cost and performance. You are responsible for the data your applications send.",
    ),
    (
        "Accounts",
        "Keep your credentials and API keys confidential. Rotate an API key immediately if you "
        "believe it has been exposed.",
    ),
    (
        "Changes",
        "We may update these terms. When we do, you will be asked to accept the new version "
        "before continuing to use the dashboard.",
    ),
]

PRIVACY_SECTIONS = [
    (
        "What We Collect",
        "Account details (email, name) and the usage events your SDK sends: model, agent name, "
        "token counts, latency, cost and optional metadata. Prompt contents are not collected.",
    ),
    (
        "How We Use It",
        "To compute analytics and optimization recommendations for your projects. We do not "
        "sell your data.",
    ),
    (
        "Retention",
        "Events are kept while your project exists. Deleting a project removes its events.",
    ),
    (
        "Your Choices",
        "You can export or delete your data at any time by contacting us or deleting your project.",
    ),
]


def render_docs_page() -> None:
    render_header("Documentation", "Everything you need to integrate AgentCost.")
    c1, c2 = st.columns(2)
    with c1.container(border=True):
        st.markdown("**SDK Documentation**")
        st.caption("Install the Python SDK and start tracking in two lines.")
        if st.button("Read the SDK guide"):
            navigate(ROUTE_DOCS_SDK)
    with c2.container(border=True):
        st.markdown("**API Reference**")
        st.caption("REST endpoints exposed by the AgentCost backend.")
        if st.button("Browse the API"):
            navigate(ROUTE_DOCS_API)


def render_sdk_docs_page() -> None:
    render_header("SDK Documentation", "Track every LLM call with the AgentCost Python SDK.")
    for title, intro, code, language in SDK_SECTIONS:
        st.subheader(title)
        st.write(intro)
        st.code(code, language=language)


def render_api_docs_page() -> None:
    render_header("API Reference", "Base URL: your backend, e.g. http://localhost:8000")
    st.markdown(
        "Analytics and optimization endpoints authenticate with the project API key; account, "
        "project and feedback endpoints use the access token from login. Both are sent as "
        "`Authorization: Bearer <credential>`."
    )
    endpoints = pd.DataFrame(API_ENDPOINTS, columns=["Method", "Path", "Auth", "Description"])
    st.dataframe(endpoints, width="stretch", hide_index=True)


def _render_legal(title: str, sections: list[tuple[str, str]]) -> None:
    render_header(title)
    for heading, body in sections:
        st.subheader(heading)
        st.write(body)


def render_terms_page() -> None:
    _render_legal("Terms of Service", TERMS_SECTIONS)


def render_privacy_page() -> None:
    _render_legal("Privacy Policy", PRIVACY_SECTIONS)
