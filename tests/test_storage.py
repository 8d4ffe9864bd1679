import json
import os

from agentcost_dashboard.config import EVENT_STORAGE
from agentcost_dashboard.events import EventBus
from agentcost_dashboard.storage import LocalStorage


def test_in_memory_storage_behaves_like_local_storage() -> None:
    storage = LocalStorage()

    storage.set_item("count", 3)
    assert storage.get_item("count") == "3"
    assert storage.get_item("missing") is None

    storage.remove_item("count")
    storage.remove_item("count")
    assert storage.keys() == []


def test_values_survive_a_new_instance(tmp_path) -> None:
    path = tmp_path / "dashboard.json"
    LocalStorage(path).set_item("access_token", "abc")

    assert LocalStorage(path).get_item("access_token") == "abc"
    assert json.loads(path.read_text(encoding="utf-8")) == {"access_token": "abc"}


def test_clear_empties_file(tmp_path) -> None:
    path = tmp_path / "dashboard.json"
    storage = LocalStorage(path)
    storage.set_item("a", "1")
    storage.clear()

    assert LocalStorage(path).keys() == []


def test_corrupt_file_starts_empty(tmp_path) -> None:
    path = tmp_path / "dashboard.json"
    path.write_text("{not json", encoding="utf-8")
    assert LocalStorage(path).keys() == []

    path.write_text("[1, 2]", encoding="utf-8")
    assert LocalStorage(path).keys() == []


def test_sync_publishes_changes_from_another_writer(tmp_path) -> None:
    path = tmp_path / "dashboard.json"
    bus = EventBus()
    received = []
    bus.subscribe(EVENT_STORAGE, received.append)

    mine = LocalStorage(path, bus=bus)
    mine.set_item("access_token", "old")
    mine.set_item("user", "{}")
    assert mine.sync() == []

    other = LocalStorage(path)
    other.set_item("access_token", "new")
    other.remove_item("user")
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))

    assert mine.sync() == ["access_token", "user"]
    assert mine.get_item("access_token") == "new"
    assert received == [
        {"key": "access_token", "old_value": "old", "new_value": "new"},
        {"key": "user", "old_value": "{}", "new_value": None},
    ]
    assert mine.sync() == []


def test_sync_without_file_is_noop() -> None:
    assert LocalStorage().sync() == []


def test_writers_sharing_a_file_keep_each_others_keys(tmp_path) -> None:
    path = tmp_path / "dashboard.json"
    bus = EventBus()
    received = []
    bus.subscribe(EVENT_STORAGE, received.append)
    first = LocalStorage(path, bus=bus)
    second = LocalStorage(path)

    first.set_item("agentcost_config", '{"api_key": "sk_first"}')
    second.set_item("theme", "dark")
    first.set_item("agentcost_config", '{"api_key": "sk_second"}')
    second.remove_item("missing")

    assert json.loads(path.read_text(encoding="utf-8")) == {
        "agentcost_config": '{"api_key": "sk_second"}',
        "theme": "dark",
    }
    assert second.get_item("agentcost_config") == '{"api_key": "sk_second"}'
    assert received == [{"key": "theme", "old_value": None, "new_value": "dark"}]
