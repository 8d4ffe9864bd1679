"""Feedback board page."""

from __future__ import annotations

import streamlit as st

from agentcost_dashboard.feedback import (
    FEEDBACK_PRIORITIES,
    FEEDBACK_STATUSES,
    FEEDBACK_TYPES,
    SORT_OPTIONS,
    FeedbackController,
)
from agentcost_dashboard.formatting import format_number, format_relative_time
from agentcost_dashboard.models import FeedbackItem
from agentcost_dashboard.ui import get_context, render_error, render_header

CONTROLLER_KEY = "agentcost_feedback"


def _controller() -> FeedbackController:
    client = get_context().client
    controller = st.session_state.get(CONTROLLER_KEY)
    if controller is None or controller.client is not client:
        controller = FeedbackController(client)
        st.session_state[CONTROLLER_KEY] = controller
    return controller


def _with_all(options: dict[str, str]) -> dict[str, str]:
    return {"all": "All", **options}


def _render_submit_form(controller: FeedbackController) -> None:
    with st.expander("Submit feedback"):
        with st.form("submit_feedback", clear_on_submit=True):
            type_ = st.selectbox("Type", list(FEEDBACK_TYPES), format_func=FEEDBACK_TYPES.get)
            title = st.text_input("Title")
            description = st.text_area("Description")
            model_name = st.text_input("Model (for model requests)")
            model_provider = st.text_input("Provider (for model requests)")
            if st.form_submit_button("Submit", type="primary"):
                controller.submit(
                    type_,
                    title,
                    description,
                    model_name=model_name,
                    model_provider=model_provider,
                )
                st.rerun()


def _render_filters(controller: FeedbackController) -> None:
    types = _with_all(FEEDBACK_TYPES)
    statuses = _with_all(FEEDBACK_STATUSES)
    priorities = _with_all({value: value.title() for value in FEEDBACK_PRIORITIES})

    c1, c2, c3, c4 = st.columns(4)
    type_ = c1.selectbox("Type", list(types), format_func=types.get, key="feedback_type")
    status = c2.selectbox("Status", list(statuses), format_func=statuses.get, key="feedback_status")
    priority = c3.selectbox("Priority", list(priorities), format_func=priorities.get, key="feedback_priority")
    sort_by = c4.selectbox("Sort", list(SORT_OPTIONS), format_func=str.title, key="feedback_sort")
    search = st.text_input("Search", key="feedback_search", placeholder="Search feedback...")

    controller.set_filters(type=type_, status=status, priority=priority, sort_by=sort_by, search=search)


def _render_item(controller: FeedbackController, item: FeedbackItem) -> None:
    user_name = get_context().session.user.display_name if get_context().session.user else None

    with st.container(border=True):
        vote_col, body_col = st.columns([1, 8])
        label = f"▲ {format_number(item.upvotes)}"
        if vote_col.button(label, key=f"upvote-{item.id}", type="primary" if item.user_has_upvoted else "secondary"):
            controller.toggle_upvote(item.id)
            st.rerun()

        body_col.markdown(f"**{item.title}**")
        body_col.caption(
            f"{FEEDBACK_TYPES.get(item.type, item.type)} · {FEEDBACK_STATUSES.get(item.status, item.status)} · "
            f"{item.priority} · {format_relative_time(item.created_at) if item.created_at else ''}"
        )
        body_col.write(item.description)
        if item.admin_response:
            body_col.info(item.admin_response)

        with body_col.expander(f"Comments ({item.comment_count})"):
            comments = controller.comments.get(item.id)
            if comments is None:
                comments = controller.load_comments(item.id)
            for comment in comments:
                author = comment.user_name or "Anonymous"
                if comment.is_admin:
                    author += " (team)"
                st.markdown(f"**{author}**: {comment.comment}")
            with st.form(f"comment-{item.id}", clear_on_submit=True):
                text = st.text_input("Add a comment", label_visibility="collapsed", placeholder="Add a comment")
                if st.form_submit_button("Comment"):
                    controller.add_comment(item.id, text, user_name)
                    st.rerun()


def render_feedback_page() -> None:
    controller = _controller()
    render_header("Feedback", "Request features, report bugs and vote on what we build next.")

    if controller.success_message:
        st.toast(controller.success_message)
        controller.success_message = None

    _render_submit_form(controller)
    _render_filters(controller)
    controller.fetch()

    if controller.error:
        render_error(controller.error)
        return

    if controller.summary:
        cols = st.columns(len(controller.summary) or 1)
        for col, (key, value) in zip(cols, controller.summary.items()):
            if isinstance(value, (int, float)):
                col.metric(key.replace("_", " ").title(), format_number(value))

    if not controller.items:
        st.info("No feedback matches these filters.")
        return

    for item in controller.items:
        _render_item(controller, item)

    prev_col, page_col, next_col = st.columns([1, 2, 1])
    if prev_col.button("Previous", disabled=controller.page == 0):
        controller.page -= 1
        st.rerun()
    page_col.caption(f"Page {controller.page + 1} of {controller.total_pages}")
    if next_col.button("Next", disabled=controller.page + 1 >= controller.total_pages):
        controller.page += 1
        st.rerun()
