"""Settings and team management pages."""

from __future__ import annotations

import streamlit as st

from agentcost_dashboard.config import REFRESH_INTERVAL_OPTIONS, ROUTE_TEAM
from agentcost_dashboard.formatting import format_date, mask_secret
from agentcost_dashboard.models import Role
from agentcost_dashboard.project_settings import SettingsController, StatusMessage
from agentcost_dashboard.project_config import default_base_url
from agentcost_dashboard.team import ROLE_DESCRIPTIONS, ROLE_LABELS, TeamController
from agentcost_dashboard.ui import get_context, navigate, render_error, render_header

SETTINGS_KEY = "agentcost_settings"
TEAM_KEY = "agentcost_team"
REVEAL_KEY_KEY = "agentcost_reveal_api_key"

ROLES = [Role.ADMIN, Role.MEMBER, Role.VIEWER]


def _settings_controller() -> SettingsController:
    client = get_context().client
    controller = st.session_state.get(SETTINGS_KEY)
    if controller is None or controller.client is not client:
        controller = SettingsController(client)
        controller.load()
        st.session_state[SETTINGS_KEY] = controller
    return controller


def _team_controller() -> TeamController:
    client = get_context().client
    controller = st.session_state.get(TEAM_KEY)
    if controller is None or controller.client is not client:
        controller = TeamController(client)
        controller.fetch()
        st.session_state[TEAM_KEY] = controller
    return controller


def _show_message(message: StatusMessage | None) -> None:
    if message is None:
        return
    if message.is_error:
        st.error(message.text)
    else:
        st.success(message.text)


def _render_project(controller: SettingsController) -> None:
    st.subheader("Project")
    project = controller.project

    if project is None:
        st.caption("Create a project to get an API key for the SDK.")
        with st.form("create_project", clear_on_submit=True):
            name = st.text_input("Project name", placeholder="my-agent-app")
            if st.form_submit_button("Create Project", type="primary") and name.strip():
                controller.create_project(name.strip())
                st.rerun()
        return

    c1, c2 = st.columns(2)
    c1.markdown(f"**{project.name}**")
    if project.description:
        c1.caption(project.description)
    if project.created_at:
        c2.caption(f"Created {format_date(project.created_at)}")
    c2.caption(f"Project ID: `{project.id}`")

    if st.button("Manage team"):
        navigate(ROUTE_TEAM)

    with st.expander("Danger zone"):
        st.warning("Deleting a project removes all of its events and recommendations.")
        confirm = st.text_input(f"Type **{project.name}** to confirm", key="delete_confirm")
        if st.button("Delete project", type="primary", disabled=confirm != project.name):
            controller.delete_project(confirm)
            st.rerun()


def _render_api_key(controller: SettingsController) -> None:
    st.subheader("API Key")
    api_key = controller.api_key
    if not api_key:
        st.caption("No API key configured.")
        return

    reveal = st.toggle("Show API key", key=REVEAL_KEY_KEY)
    st.code(api_key if reveal else mask_secret(api_key), language=None)

    if controller.project is not None and st.button("Rotate API key"):
        controller.rotate_api_key()
        st.rerun()


def _render_connection(controller: SettingsController) -> None:
    st.subheader("Connection")
    config = controller.config

    with st.form("connection_settings"):
        api_key = st.text_input("API key", value=config.api_key, type="password")
        base_url = st.text_input("API base URL", value=config.base_url, placeholder=default_base_url())
        auto_refresh = st.checkbox("Auto-refresh dashboards", value=config.auto_refresh)
        interval_options = sorted(set(REFRESH_INTERVAL_OPTIONS) | {config.refresh_interval})
        refresh_interval = st.selectbox(
            "Refresh interval",
            options=interval_options,
            index=interval_options.index(config.refresh_interval),
            format_func=lambda seconds: f"{seconds} seconds",
        )
        if st.form_submit_button("Save", type="primary"):
            controller.update(
                api_key=api_key.strip(),
                base_url=base_url.strip(),
                auto_refresh=auto_refresh,
                refresh_interval=refresh_interval,
            )
            controller.save()
            controller.fetch_project()
            st.rerun()

    if st.button("Test connection"):
        controller.health()
        st.rerun()
    if controller.health_status:
        st.json(controller.health_status, expanded=False)


def render_settings_page() -> None:
    controller = _settings_controller()
    render_header("Settings", "Connect the dashboard to your AgentCost project.")
    _show_message(controller.message)
    controller.message = None

    _render_connection(controller)
    st.divider()
    _render_api_key(controller)
    st.divider()
    _render_project(controller)


def _render_invitations(controller: TeamController) -> None:
    if not controller.pending_invitations:
        return

    st.subheader("Pending Invitations")
    for invitation in controller.pending_invitations:
        with st.container(border=True):
            st.markdown(f"**{invitation.project_name}** as {ROLE_LABELS[invitation.role]}")
            st.caption(f"Invited by {invitation.inviter}")
            accept_col, decline_col, _ = st.columns([1, 1, 4])
            if accept_col.button("Accept", key=f"accept-{invitation.project_id}", type="primary"):
                controller.accept_invitation(invitation.project_id)
                st.rerun()
            if decline_col.button("Decline", key=f"decline-{invitation.project_id}"):
                controller.decline_invitation(invitation.project_id)
                st.rerun()


def _render_invite_form(controller: TeamController) -> None:
    with st.form("invite_member", clear_on_submit=True):
        st.markdown("**Invite a teammate**")
        email = st.text_input("Email", placeholder="teammate@example.com")
        role = st.selectbox(
            "Role",
            options=ROLES,
            index=ROLES.index(Role.MEMBER),
            format_func=lambda value: ROLE_LABELS[value],
        )
        st.caption(ROLE_DESCRIPTIONS[role])
        if st.form_submit_button("Send invitation", type="primary"):
            controller.invite(email, role)
            st.rerun()
    if controller.invite_error:
        st.error(controller.invite_error)


def _render_members(controller: TeamController) -> None:
    st.subheader(f"Members ({len(controller.members)})")
    for member in controller.members:
        with st.container(border=True):
            info_col, role_col, action_col = st.columns([3, 2, 1])
            label = member.name or member.email
            if member.user_id == controller.current_user_id:
                label += " (you)"
            info_col.markdown(f"**{label}**")
            info_col.caption(member.email)
            if member.is_pending:
                info_col.caption("Invitation pending")

            if member.is_owner:
                role_col.markdown("Owner")
                continue

            if controller.can_edit_role(member.role) and member.user_id != controller.current_user_id:
                role = role_col.selectbox(
                    "Role",
                    options=ROLES,
                    index=ROLES.index(member.role),
                    format_func=lambda value: ROLE_LABELS[value],
                    key=f"role-{member.user_id}",
                    label_visibility="collapsed",
                )
                if role != member.role:
                    controller.update_role(member.user_id, role)
                    st.rerun()
                if action_col.button("Remove", key=f"remove-{member.user_id}"):
                    controller.remove_member(member.user_id)
                    st.rerun()
            else:
                role_col.markdown(ROLE_LABELS[member.role])


def render_team_page() -> None:
    controller = _team_controller()
    render_header("Team", controller.project_name or "Manage who can access this project.")

    if controller.success_message:
        st.toast(controller.success_message)
        controller.success_message = None
    if controller.error:
        render_error(controller.error)

    _render_invitations(controller)

    if controller.project_id is None:
        st.info("You are not a member of a project yet.")
        return

    if controller.can_manage_members:
        _render_invite_form(controller)
    _render_members(controller)

    me = next((m for m in controller.members if m.user_id == controller.current_user_id), None)
    if me is not None and not me.is_owner:
        st.divider()
        if st.button("Leave project"):
            controller.leave_project()
            st.rerun()
