"""Cost optimization suggestions with the implement and dismiss workflow."""

from __future__ import annotations

import streamlit as st

from agentcost_dashboard.formatting import format_currency, format_date, format_percentage
from agentcost_dashboard.guidance import implementation_steps, tracking_info
from agentcost_dashboard.models import OptimizationSuggestion, OptimizationType, Recommendation
from agentcost_dashboard.recommendations import (
    Badge,
    OptimizationsController,
    confidence_badge,
    quality_impact_badge,
)
from agentcost_dashboard.ui import get_context, render_error, render_header, render_onboarding

CONTROLLER_KEY = "agentcost_optimizations"
DISMISS_TARGET_KEY = "agentcost_dismiss_target"
SHOW_IMPLEMENTATION_KEY = "agentcost_show_implementation"

QUICK_FEEDBACK_OPTIONS = [
    "Not applicable to my use case",
    "Quality concerns",
    "Already optimized",
    "Too risky",
]

PRIORITY_HEADINGS = {
    "high": ":red[High Priority]",
    "medium": ":orange[Medium Priority]",
    "low": ":green[Low Priority]",
}

# st.badge has no yellow.
_BADGE_COLORS = {"yellow": "orange"}


def _controller() -> OptimizationsController:
    client = get_context().client
    controller = st.session_state.get(CONTROLLER_KEY)
    if controller is None or controller.client is not client:
        controller = OptimizationsController(client)
        st.session_state[CONTROLLER_KEY] = controller
    return controller


def _render_badge(badge: Badge) -> None:
    st.badge(badge.label, color=_BADGE_COLORS.get(badge.color, badge.color))
    if badge.detail:
        st.caption(badge.detail)


@st.dialog("Dismiss Recommendation")
def _dismiss_dialog(controller: OptimizationsController, recommendation_id: str) -> None:
    st.write("Why doesn't this suggestion work for you? (optional)")
    quick = st.pills("Quick options", QUICK_FEEDBACK_OPTIONS, label_visibility="collapsed")
    feedback = st.text_area(
        "Feedback",
        value=quick or "",
        placeholder="Why doesn't this suggestion work for you? (optional)",
        label_visibility="collapsed",
    )
    st.caption("Your feedback helps us provide better recommendations in the future.")

    cancel_col, submit_col = st.columns(2)
    if cancel_col.button("Cancel", width="stretch"):
        st.rerun()
    if submit_col.button("Dismiss", type="primary", width="stretch"):
        controller.dismiss(recommendation_id, feedback)
        st.rerun()


@st.dialog("Recommendation Marked as Implemented", width="large", on_dismiss="rerun")
def _implementation_dialog(controller: OptimizationsController, rec: Recommendation) -> None:
    st.caption("Follow these steps to complete the optimization")
    st.subheader(rec.title)
    if rec.model and rec.alternative_model:
        st.markdown(f"`{rec.model}` → `{rec.alternative_model}`")
    st.metric("Estimated savings", f"{format_currency(rec.estimated_monthly_savings)}/month")

    steps = implementation_steps(rec)
    if steps:
        st.markdown("**Implementation Steps**")
    for number, step in enumerate(steps, start=1):
        st.markdown(f"**{number}. {step.title}**")
        st.write(step.description)
        if step.code:
            st.code(step.code, language=step.language or "python")

    st.info(tracking_info(rec))
    if rec.type == OptimizationType.MODEL_DOWNGRADE.value:
        st.link_button("View model capabilities documentation", "https://platform.openai.com/docs/models")

    if st.button("Done", type="primary"):
        controller.close_implementation_modal()
        st.rerun()


def _render_suggestion(
    controller: OptimizationsController,
    suggestion: OptimizationSuggestion,
    index: str,
) -> None:
    recommendation = controller.find_recommendation(suggestion)

    with st.container(border=True):
        st.markdown(f"**{suggestion.title}**")
        st.write(suggestion.description)

        c1, c2, c3 = st.columns(3)
        if suggestion.estimated_savings_monthly is not None:
            c1.metric("Est. Monthly Savings", format_currency(suggestion.estimated_savings_monthly))
        c2.metric("Savings", format_percentage(suggestion.estimated_savings_percent))
        if suggestion.agent_name:
            c3.metric("Agent", suggestion.agent_name)

        if suggestion.type == OptimizationType.MODEL_DOWNGRADE.value:
            if suggestion.model and suggestion.alternative_model:
                st.markdown(f"Switch model: `{suggestion.model}` → **`{suggestion.alternative_model}`**")
            _render_badge(confidence_badge(suggestion))

        quality = quality_impact_badge(suggestion)
        if quality is not None:
            _render_badge(quality)

        if suggestion.action_items:
            with st.expander(f"Action Items ({len(suggestion.action_items)})"):
                for item in suggestion.action_items:
                    st.markdown(f"- {item}")

        if recommendation is None:
            return

        implement_col, dismiss_col, expires_col = st.columns([1, 1, 3])
        if implement_col.button("Implement", key=f"implement-{index}", type="primary"):
            if controller.implement(recommendation):
                st.session_state[SHOW_IMPLEMENTATION_KEY] = True
            st.rerun()
        if dismiss_col.button("Dismiss", key=f"dismiss-{index}"):
            st.session_state[DISMISS_TARGET_KEY] = recommendation.id
            st.rerun()
        if recommendation.expires_at:
            expires_col.caption(f"Expires {format_date(recommendation.expires_at)}")


def _render_summary(controller: OptimizationsController) -> None:
    summary = controller.summary
    if summary is None:
        return

    pending = len(controller.recommendations)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric(
        "Potential Monthly Savings",
        format_currency(summary.total_potential_savings_monthly),
        help="If all suggestions applied",
    )
    c2.metric(
        "Savings Percentage",
        format_percentage(summary.total_potential_savings_percent),
        help=f"Of {format_currency(summary.current_monthly_spend)}/mo spend",
    )
    c3.metric(
        "Total Suggestions",
        str(summary.suggestion_count),
        help=f"{summary.high_priority_count} high priority",
    )
    c4.metric(
        "Pending Actions",
        str(pending),
        help="All reviewed!" if pending == 0 else "Awaiting your decision",
    )

    effectiveness = summary.effectiveness
    if effectiveness is not None and effectiveness.total_recommendations > 0:
        with st.container(border=True):
            st.markdown("**Recommendation Effectiveness**")
            e1, e2, e3, e4 = st.columns(4)
            e1.metric("Total", effectiveness.total_recommendations)
            e2.metric("Implemented", effectiveness.implemented)
            e3.metric("Dismissed", effectiveness.dismissed)
            e4.metric("Implementation Rate", format_percentage(effectiveness.implementation_rate))


def _render_how_it_works() -> None:
    with st.expander("How Optimization Suggestions Work"):
        st.markdown(
            "AgentCost analyzes your LLM usage patterns over the last 30 days to identify "
            "cost-saving opportunities:\n\n"
            "- **Model Downgrades:** Suggests cheaper models for simple tasks\n"
            "- **Caching:** Identifies repeated queries that can be cached\n"
            "- **Anomaly Alerts:** Detects unusual spending spikes\n"
            "- **Error Patterns:** Highlights agents with high failure rates\n"
            "- **Latency Issues:** Flags slow calls that may benefit from optimization"
        )
        st.caption("Your decisions help the system learn and provide better recommendations over time.")


def render_optimizations_page() -> None:
    controller = _controller()
    if not controller.client.is_configured():
        render_onboarding()
        return

    # Closing the dialog with its X reruns the page without pressing Done.
    showing_implementation = st.session_state.pop(SHOW_IMPLEMENTATION_KEY, False)
    if controller.implemented_recommendation and not showing_implementation:
        with st.spinner("Analyzing usage..."):
            controller.settle_implementation_modal(showing_implementation)

    # A rejected key is retried on every visit so a fixed key takes effect.
    if not controller.loaded or controller.show_onboarding:
        with st.spinner("Analyzing usage..."):
            controller.fetch()
    if controller.needs_onboarding:
        render_onboarding()
        return

    header_col, refresh_col = st.columns([5, 1])
    with header_col:
        render_header("Cost Optimizations", "AI-powered recommendations to reduce your LLM costs")
    if refresh_col.button("Refresh"):
        with st.spinner("Analyzing usage..."):
            controller.fetch()
        if controller.needs_onboarding:
            st.rerun()

    if controller.error:
        render_error(controller.error, "Make sure the backend is running and you have some event data.")

    if controller.success_message:
        st.toast(controller.success_message)
        controller.clear_success_message()

    _render_summary(controller)

    empty = controller.empty_state()
    if empty is not None:
        st.success(f"**{empty.title}**\n\n{empty.body}")
        if empty.hint:
            st.caption(empty.hint)

    for priority, suggestions in controller.grouped_suggestions().items():
        if not suggestions:
            continue
        st.subheader(f"{PRIORITY_HEADINGS[priority]} ({len(suggestions)})")
        for position, suggestion in enumerate(suggestions):
            _render_suggestion(controller, suggestion, f"{priority}-{position}")

    _render_how_it_works()

    # Popped before opening so closing the dialog with its X does not reopen it.
    dismiss_target = st.session_state.pop(DISMISS_TARGET_KEY, None)
    if dismiss_target:
        _dismiss_dialog(controller, dismiss_target)
    elif showing_implementation and controller.implemented_recommendation:
        _implementation_dialog(controller, controller.implemented_recommendation)
