import gc
import json

from agentcost_dashboard.config import ENV_SESSION_PATH, ENV_STORAGE_PATH, STORAGE_CONFIG_KEY
from agentcost_dashboard.context import build_context, session_path, storage_path
from agentcost_dashboard.models import User
from agentcost_dashboard.session import AuthState

ALICE = User(id="u-alice", email="alice@example.com", name="Alice")


def test_build_context_shares_storage_and_bus(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(ENV_SESSION_PATH, raising=False)
    context = build_context(tmp_path / "dashboard.json")
    try:
        assert context.client.storage is context.storage
        assert context.client.bus is context.bus
        assert context.client.config_store is context.config_store
        assert context.config_store.storage is context.settings_storage
        assert context.storage.path is None
        assert context.session.state is AuthState.ANONYMOUS
    finally:
        context.close()


def test_storage_path_honours_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(ENV_STORAGE_PATH, str(tmp_path / "custom.json"))
    assert storage_path() == tmp_path / "custom.json"


def test_session_path_defaults_to_memory(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv(ENV_SESSION_PATH, raising=False)
    assert session_path() is None

    monkeypatch.setenv(ENV_SESSION_PATH, str(tmp_path / "session.json"))
    assert session_path() == tmp_path / "session.json"


def test_sign_in_stays_with_its_own_browser_session(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(ENV_SESSION_PATH, raising=False)
    path = tmp_path / "dashboard.json"
    alice = build_context(path)
    bob = build_context(path)
    try:
        alice.session.complete_login("alice-jwt", "alice-refresh", ALICE)
        bob.sync()

        assert alice.session.token == "alice-jwt"
        assert bob.session.state is AuthState.ANONYMOUS
        assert bob.session.token is None

        bob.session.logout()
        alice.sync()
        assert alice.session.is_authenticated
    finally:
        alice.close()
        bob.close()


def test_settings_written_by_one_session_keep_the_others(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(ENV_SESSION_PATH, raising=False)
    path = tmp_path / "dashboard.json"
    alice = build_context(path)
    bob = build_context(path)
    try:
        alice.storage.set_item("access_token", "alice-jwt")
        alice.settings_storage.set_item("theme", "dark")
        bob.config_store.update(api_key="sk_bob")

        stored = json.loads(path.read_text(encoding="utf-8"))
        assert sorted(stored) == ["agentcost_config", "theme"]
        assert json.loads(stored[STORAGE_CONFIG_KEY])["api_key"] == "sk_bob"

        alice.sync()
        assert alice.config_store.load().api_key == "sk_bob"
    finally:
        alice.close()
        bob.close()


def test_releasing_context_stops_refresh_timer(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(ENV_SESSION_PATH, raising=False)
    context = build_context(tmp_path / "dashboard.json")
    context.session.complete_login("jwt", "refresh", ALICE)
    session = context.session
    assert session.refresh_timer_running

    del context
    gc.collect()

    assert not session.refresh_timer_running


def test_close_is_idempotent(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(ENV_SESSION_PATH, raising=False)
    context = build_context(tmp_path / "dashboard.json")
    context.session.complete_login("jwt", "refresh", ALICE)

    context.close()
    context.close()

    assert not context.session.refresh_timer_running
