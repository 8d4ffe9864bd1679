"""Login session state and the background token refresh.

The session is owned by a single :class:`SessionManager` per dashboard user.
It never talks to the network directly: every call goes through the
:class:`~agentcost_dashboard.api_client.AgentCostClient`, and it learns about
token rotations the client performed on its own through the event bus.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from agentcost_dashboard.api_client import AgentCostClient
from agentcost_dashboard.config import (
    EVENT_STORAGE,
    EVENT_TOKEN_REFRESH_FAILED,
    EVENT_TOKENS_REFRESHED,
    MIN_PASSWORD_LENGTH,
    ROUTE_ACCEPT_POLICIES,
    ROUTE_DASHBOARD,
    ROUTE_LANDING,
    ROUTE_LOGIN,
    STORAGE_ACCESS_TOKEN_KEY,
    STORAGE_REFRESH_TOKEN_KEY,
    STORAGE_USER_KEY,
    TOKEN_REFRESH_INTERVAL_SECONDS,
)
from agentcost_dashboard.errors import APIError
from agentcost_dashboard.models import PolicyCheckResponse, User

logger = logging.getLogger(__name__)

_SESSION_KEYS = (STORAGE_ACCESS_TOKEN_KEY, STORAGE_REFRESH_TOKEN_KEY, STORAGE_USER_KEY)


class AuthState(str, Enum):
    UNINITIALIZED = "uninitialized"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Session:
    access_token: str
    user: User
    refresh_token: str | None = None


class TokenRefreshTimer:
    """Calls ``callback`` every ``interval_seconds`` on a daemon thread until cancelled."""

    def __init__(self, interval_seconds: float, callback: Callable[[], object]) -> None:
        self.interval_seconds = interval_seconds
        self.callback = callback
        self._timer: threading.Timer | None = None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._cancelled.is_set()

    def start(self) -> None:
        self._cancelled.clear()
        self._schedule()

    def cancel(self) -> None:
        self._cancelled.set()
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._timer = threading.Timer(self.interval_seconds, self._tick)
            self._timer.daemon = True
            self._timer.start()

    def _tick(self) -> None:
        if self._cancelled.is_set():
            return
        try:
            self.callback()
        except Exception:
            logger.exception("Scheduled token refresh raised")
        finally:
            self._schedule()


TimerFactory = Callable[[float, Callable[[], object]], TokenRefreshTimer]


class SessionManager:
    """Tracks whether the dashboard user is signed in.

    States move ``UNINITIALIZED -> ANONYMOUS | AUTHENTICATED`` once, in
    :meth:`initialize`, and then between ``ANONYMOUS`` and ``AUTHENTICATED``
    through :meth:`complete_login` and :meth:`logout`. Operations that end
    in navigation return the route to go to.
    """

    def __init__(
        self,
        client: AgentCostClient,
        *,
        refresh_interval_seconds: float = TOKEN_REFRESH_INTERVAL_SECONDS,
        timer_factory: TimerFactory = TokenRefreshTimer,
    ) -> None:
        self.client = client
        self.storage = client.storage
        self.state = AuthState.UNINITIALIZED
        self.session: Session | None = None
        self.refresh_interval_seconds = refresh_interval_seconds
        self._timer_factory = timer_factory
        self._timer: TokenRefreshTimer | None = None
        self._unsubscribe = [
            client.bus.subscribe(EVENT_TOKENS_REFRESHED, self._on_tokens_refreshed),
            client.bus.subscribe(EVENT_TOKEN_REFRESH_FAILED, self._on_token_refresh_failed),
            client.bus.subscribe(EVENT_STORAGE, self._on_storage_changed),
        ]

    @property
    def user(self) -> User | None:
        return self.session.user if self.session else None

    @property
    def token(self) -> str | None:
        return self.session.access_token if self.session else None

    @property
    def is_loading(self) -> bool:
        return self.state is AuthState.UNINITIALIZED

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def refresh_timer_running(self) -> bool:
        return self._timer is not None and self._timer.is_running

    def initialize(self) -> AuthState:
        if self.state is not AuthState.UNINITIALIZED:
            return self.state

        try:
            stored = self._read_stored_session()
        except ValueError as exc:
            logger.warning("Discarding unreadable stored session: %s", exc)
            self._clear_storage()
            stored = None

        if stored is not None:
            self._enter_authenticated(stored)
        else:
            self.state = AuthState.ANONYMOUS

        logger.info("Session initialized as %s", self.state.value)
        return self.state

    def close(self) -> None:
        self._stop_timer()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def login(self, email: str, password: str, remember_me: bool = False) -> str:
        """Sign in and return where to go next.

        Users whose accepted policies are outdated are sent through the
        acceptance page first. A failed policy check does not block login.
        """
        payload = self.client.login(email, password, remember_me)
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise APIError("Login response did not include an access token")

        user = User.from_dict(payload.get("user") or {})
        self.complete_login(access_token, payload.get("refresh_token"), user)

        try:
            status = self.client.get_policy_status(retry_on_unauthorized=False)
        except APIError as exc:
            logger.warning("Policy check failed after login: %s", exc)
            return ROUTE_DASHBOARD

        if not status.policies_accepted:
            return f"{ROUTE_ACCEPT_POLICIES}?return={ROUTE_DASHBOARD}"
        return ROUTE_DASHBOARD

    def complete_login(self, access_token: str, refresh_token: str | None, user: User) -> None:
        self.storage.set_item(STORAGE_ACCESS_TOKEN_KEY, access_token)
        if refresh_token:
            self.storage.set_item(STORAGE_REFRESH_TOKEN_KEY, refresh_token)
        else:
            self.storage.remove_item(STORAGE_REFRESH_TOKEN_KEY)
        self.storage.set_item(STORAGE_USER_KEY, json.dumps(user.to_dict()))

        self._stop_timer()
        self._enter_authenticated(Session(access_token=access_token, user=user, refresh_token=refresh_token))
        logger.info("Signed in as %s", user.email)

    def register(
        self,
        email: str,
        password: str,
        name: str | None = None,
        *,
        accept_terms: bool = False,
        accept_privacy: bool = False,
        policy_versions: dict[str, str] | None = None,
    ) -> None:
        # Accounts must verify their email before the first login.
        versions = policy_versions or {}
        self.client.register(
            email,
            password,
            name,
            accept_terms=accept_terms,
            accept_privacy=accept_privacy,
            terms_version=versions.get("terms_version"),
            privacy_version=versions.get("privacy_version"),
        )

    def logout(self) -> str:
        if self.session is not None:
            try:
                self.client.logout()
            except APIError as exc:
                logger.warning("Logout request failed: %s", exc)

        self._clear_storage()
        self._stop_timer()
        self.session = None
        self.state = AuthState.ANONYMOUS
        logger.info("Signed out")
        return ROUTE_LANDING

    def refresh_token(self) -> bool:
        """Rotate tokens now.

        A rejected refresh ends the session; a network failure only returns
        False and leaves the session for the next attempt.
        """
        if self.session is None or not self.session.refresh_token:
            return False
        return self.client.refresh_session_tokens(announce_transport_failure=False)

    def refresh_user(self) -> None:
        if self.session is None:
            return

        try:
            user = self.client.get_current_user()
        except APIError as exc:
            if exc.status_code == 401:
                if self.is_authenticated:
                    self.logout()
                return
            logger.warning("Could not refresh user profile: %s", exc)
            return

        self.storage.set_item(STORAGE_USER_KEY, json.dumps(user.to_dict()))
        if self.session is not None:
            self.session = replace(self.session, user=user)

    def policy_status(self) -> PolicyCheckResponse:
        return self.client.get_policy_status()

    def accept_policies(
        self,
        status: PolicyCheckResponse,
        *,
        accept_terms: bool,
        accept_privacy: bool,
    ) -> bool:
        """Record consent for the outdated policies; True once all are current."""
        consents: list[dict[str, str]] = []
        if not status.terms.is_current and accept_terms:
            consents.append({"policy_type": "terms", "policy_version": status.terms.current_version})
        if not status.privacy.is_current and accept_privacy:
            consents.append({"policy_type": "privacy", "policy_version": status.privacy.current_version})

        result = self.client.accept_policies(consents)
        return result.policies_accepted

    def decline_policies(self) -> str:
        self.logout()
        return ROUTE_LOGIN

    def _enter_authenticated(self, session: Session) -> None:
        self.session = session
        self.state = AuthState.AUTHENTICATED
        if session.refresh_token:
            self._start_timer()

    def _start_timer(self) -> None:
        self._timer = self._timer_factory(self.refresh_interval_seconds, self._scheduled_refresh)
        self._timer.start()

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _scheduled_refresh(self) -> None:
        if not self.client.refresh_session_tokens(announce_failure=False):
            logger.warning("Scheduled token refresh failed; keeping the current session")

    def _read_stored_session(self) -> Session | None:
        access_token = self.storage.get_item(STORAGE_ACCESS_TOKEN_KEY)
        raw_user = self.storage.get_item(STORAGE_USER_KEY)
        if not (access_token and raw_user):
            return None

        payload = json.loads(raw_user)
        if not isinstance(payload, dict):
            raise ValueError("stored user is not an object")
        return Session(
            access_token=access_token,
            user=User.from_dict(payload),
            refresh_token=self.storage.get_item(STORAGE_REFRESH_TOKEN_KEY),
        )

    def _clear_storage(self) -> None:
        for key in _SESSION_KEYS:
            self.storage.remove_item(key)

    def _on_tokens_refreshed(self, detail: dict) -> None:
        if self.session is None:
            return
        access_token = detail.get("access_token")
        if not access_token:
            return
        self.session = replace(
            self.session,
            access_token=access_token,
            refresh_token=detail.get("refresh_token") or self.session.refresh_token,
        )

    def _on_token_refresh_failed(self, detail: dict) -> None:
        if self.state is AuthState.AUTHENTICATED:
            logger.info("Token refresh failed, signing out")
            self.logout()

    def _on_storage_changed(self, detail: dict) -> None:
        # Another dashboard process signed in or out with the same storage file.
        if self.state is AuthState.UNINITIALIZED or detail.get("key") not in _SESSION_KEYS:
            return

        try:
            stored = self._read_stored_session()
        except ValueError:
            stored = None

        if stored is None:
            if self.state is AuthState.AUTHENTICATED:
                self._stop_timer()
                self.session = None
                self.state = AuthState.ANONYMOUS
            return

        if self.session is None or stored.refresh_token != self.session.refresh_token:
            self._stop_timer()
            self._enter_authenticated(stored)
        else:
            self.session = stored


def can_submit_policies(status: PolicyCheckResponse, *, accept_terms: bool, accept_privacy: bool) -> bool:
    """Every policy that is not current must be ticked."""
    return (status.terms.is_current or accept_terms) and (status.privacy.is_current or accept_privacy)


PASSWORD_REQUIREMENTS: list[tuple[str, Callable[[str], bool]]] = [
    (f"At least {MIN_PASSWORD_LENGTH} characters", lambda p: len(p) >= MIN_PASSWORD_LENGTH),
    ("One uppercase letter", lambda p: any(c.isupper() for c in p)),
    ("One lowercase letter", lambda p: any(c.islower() for c in p)),
    ("One number", lambda p: any(c.isdigit() for c in p)),
]


def unmet_password_requirements(password: str) -> list[str]:
    return [label for label, test in PASSWORD_REQUIREMENTS if not test(password)]


def validate_new_password(password: str, confirm_password: str) -> str | None:
    """Return the form error for a new password, or None when it is acceptable."""
    if unmet_password_requirements(password):
        return "Please meet all password requirements"
    if password != confirm_password:
        return "Passwords do not match"
    return None


def validate_registration(
    password: str,
    confirm_password: str,
    *,
    accept_terms: bool,
    accept_privacy: bool,
) -> str | None:
    error = validate_new_password(password, confirm_password)
    if error:
        return error
    if not (accept_terms and accept_privacy):
        return "You must accept both the Terms of Service and Privacy Policy to create an account"
    return None
