"""Sign-in, registration, password and policy pages."""

from __future__ import annotations

import logging

import streamlit as st

from agentcost_dashboard.config import (
    ROUTE_DASHBOARD,
    ROUTE_FORGOT_PASSWORD,
    ROUTE_LOGIN,
    ROUTE_PRIVACY,
    ROUTE_REGISTER,
    ROUTE_TERMS,
)
from agentcost_dashboard.errors import APIError, parse_api_error
from agentcost_dashboard.session import (
    PASSWORD_REQUIREMENTS,
    can_submit_policies,
    validate_new_password,
    validate_registration,
)
from agentcost_dashboard.ui import get_context, navigate, route_param

logger = logging.getLogger(__name__)

POLICY_VERSIONS_KEY = "agentcost_policy_versions"
VERIFIED_TOKENS_KEY = "agentcost_verified_tokens"


def _password_checklist(password: str) -> None:
    for label, test in PASSWORD_REQUIREMENTS:
        mark = ":green[✓]" if test(password) else ":gray[○]"
        st.caption(f"{mark} {label}")


def render_login_page() -> None:
    session = get_context().session
    st.title("Welcome back")
    st.caption("Sign in to your AgentCost account")

    if route_param("verified") == "true":
        st.success("Email verified successfully. You can now sign in.")
    if route_param("password_reset") == "true":
        st.success("Password reset successfully. You can now sign in with your new password.")

    with st.form("login"):
        email = st.text_input("Email", placeholder="you@example.com")
        password = st.text_input("Password", type="password", placeholder="Enter your password")
        remember_me = st.checkbox("Remember me")
        submitted = st.form_submit_button("Sign in", type="primary", width="stretch")

    if submitted:
        try:
            destination = session.login(email.strip(), password, remember_me)
        except APIError as exc:
            st.error(parse_api_error(exc))
        else:
            navigate(destination)

    forgot_col, register_col = st.columns(2)
    if forgot_col.button("Forgot password?"):
        navigate(ROUTE_FORGOT_PASSWORD)
    if register_col.button("Create an account"):
        navigate(ROUTE_REGISTER)


def _policy_versions() -> dict[str, str]:
    if POLICY_VERSIONS_KEY not in st.session_state:
        try:
            versions = get_context().client.get_current_policy_versions()
        except APIError as exc:
            logger.warning("Failed to fetch policy versions, using defaults: %s", exc)
            versions = {}
        st.session_state[POLICY_VERSIONS_KEY] = versions
    return st.session_state[POLICY_VERSIONS_KEY]


def render_register_page() -> None:
    session = get_context().session

    if st.session_state.get("agentcost_registered_email"):
        st.title("Check your email")
        st.write(
            f"We've sent a verification link to **{st.session_state['agentcost_registered_email']}**. "
            "Verify your email to sign in."
        )
        if st.button("Back to sign in", type="primary"):
            st.session_state.pop("agentcost_registered_email", None)
            navigate(ROUTE_LOGIN)
        return

    st.title("Create your account")
    st.caption("Start tracking your LLM costs in minutes")
    versions = _policy_versions()

    name = st.text_input("Name", placeholder="Your name")
    email = st.text_input("Email", placeholder="you@example.com")
    password = st.text_input("Password", type="password", placeholder="Create a secure password")
    _password_checklist(password)
    confirm = st.text_input("Confirm password", type="password", placeholder="Confirm your password")
    accept_terms = st.checkbox(f"I agree to the [Terms of Service]({ROUTE_TERMS})")
    accept_privacy = st.checkbox(f"I agree to the [Privacy Policy]({ROUTE_PRIVACY})")

    if st.button("Create account", type="primary", width="stretch"):
        error = validate_registration(password, confirm, accept_terms=accept_terms, accept_privacy=accept_privacy)
        if error:
            st.error(error)
            return
        try:
            session.register(
                email.strip(),
                password,
                name.strip() or None,
                accept_terms=accept_terms,
                accept_privacy=accept_privacy,
                policy_versions=versions,
            )
        except APIError as exc:
            st.error(parse_api_error(exc))
            return
        st.session_state["agentcost_registered_email"] = email.strip()
        st.rerun()

    if st.button("Already have an account? Sign in"):
        navigate(ROUTE_LOGIN)


def render_forgot_password_page() -> None:
    client = get_context().client
    sent_to = st.session_state.get("agentcost_reset_requested")

    if sent_to:
        st.title("Check your email")
        st.write(
            f"If an account exists for **{sent_to}**, we've sent a password reset link. Please check your inbox."
        )
        if st.button("Back to sign in", type="primary"):
            st.session_state.pop("agentcost_reset_requested", None)
            navigate(ROUTE_LOGIN)
        return

    st.title("Reset your password")
    st.caption("Enter your email and we'll send you a reset link.")
    with st.form("forgot_password"):
        email = st.text_input("Email", placeholder="you@example.com")
        submitted = st.form_submit_button("Send Reset Link", type="primary", width="stretch")

    if submitted and email.strip():
        try:
            client.request_password_reset(email.strip())
        except APIError as exc:
            st.error(parse_api_error(exc))
            return
        st.session_state["agentcost_reset_requested"] = email.strip()
        st.rerun()

    if st.button("Back to sign in"):
        navigate(ROUTE_LOGIN)


def render_reset_password_page() -> None:
    client = get_context().client
    token = route_param("token")

    st.title("Set a new password")
    if not token:
        st.error("Invalid or missing reset token. Please request a new password reset.")
        if st.button("Request a new link"):
            navigate(ROUTE_FORGOT_PASSWORD)
        return

    password = st.text_input("New password", type="password", placeholder="Enter new password")
    _password_checklist(password)
    confirm = st.text_input("Confirm password", type="password", placeholder="Confirm new password")

    if st.button("Reset Password", type="primary", width="stretch"):
        error = validate_new_password(password, confirm)
        if error:
            st.error(error)
            return
        try:
            client.reset_password(token, password)
        except APIError as exc:
            st.error(parse_api_error(exc))
            return
        navigate(f"{ROUTE_LOGIN}?password_reset=true")


def render_verify_email_page() -> None:
    client = get_context().client
    token = route_param("token")

    st.title("Email verification")
    if not token:
        st.error("Invalid verification link. No token provided.")
        return

    # Verification tokens are single use; remember the outcome across reruns.
    outcomes = st.session_state.setdefault(VERIFIED_TOKENS_KEY, {})
    if token not in outcomes:
        with st.spinner("Verifying your email..."):
            try:
                client.verify_email(token)
                outcomes[token] = (True, "Your email has been verified successfully.")
            except APIError as exc:
                logger.warning("Email verification failed: %s", exc)
                detail = parse_api_error(exc) if exc.status_code else None
                outcomes[token] = (False, detail or "Verification failed. The link may have expired.")

    verified, message = outcomes[token]
    if verified:
        st.success(message)
        if st.button("Continue to sign in", type="primary"):
            navigate(f"{ROUTE_LOGIN}?verified=true")
    else:
        st.error(message)
        if st.button("Back to sign in"):
            navigate(ROUTE_LOGIN)


def render_accept_policies_page() -> None:
    session = get_context().session
    return_route = route_param("return", ROUTE_DASHBOARD) or ROUTE_DASHBOARD

    if not session.is_authenticated:
        navigate(ROUTE_LOGIN)

    st.title("We've updated our policies")
    st.caption("Please review and accept the latest versions to continue.")

    try:
        status = session.policy_status()
    except APIError as exc:
        if exc.status_code == 401:
            navigate(ROUTE_LOGIN)
        logger.warning("Failed to load policy status: %s", exc)
        st.error("Failed to load policy status. Please try again.")
        return

    if status.policies_accepted:
        navigate(return_route)

    accept_terms = status.terms.is_current
    accept_privacy = status.privacy.is_current
    if not status.terms.is_current:
        accept_terms = st.checkbox(
            f"I agree to the updated [Terms of Service]({ROUTE_TERMS}) (version {status.terms.current_version})"
        )
    if not status.privacy.is_current:
        accept_privacy = st.checkbox(
            f"I agree to the updated [Privacy Policy]({ROUTE_PRIVACY}) (version {status.privacy.current_version})"
        )

    submit_col, decline_col = st.columns(2)
    ready = can_submit_policies(status, accept_terms=accept_terms, accept_privacy=accept_privacy)
    if submit_col.button("Accept and Continue", type="primary", disabled=not ready, width="stretch"):
        try:
            accepted = session.accept_policies(status, accept_terms=accept_terms, accept_privacy=accept_privacy)
        except APIError as exc:
            st.error(parse_api_error(exc))
            return
        if accepted:
            navigate(return_route)
        st.error("Failed to accept all policies. Please try again.")
    if decline_col.button("Decline and sign out", width="stretch"):
        navigate(session.decline_policies())
