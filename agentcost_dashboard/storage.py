"""Persisted string key/value storage backing the dashboard session and settings.

Values are strings, exactly like browser ``localStorage``; callers that keep
structured data serialize it to JSON themselves. The whole store is a single
JSON object on disk, and several processes may share it: every write first
merges whatever the others flushed. When ``path`` is ``None`` the store lives
in memory only, which is how each browser session keeps its sign-in.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from agentcost_dashboard.config import EVENT_STORAGE
from agentcost_dashboard.events import EventBus

logger = logging.getLogger(__name__)


class LocalStorage:
    def __init__(self, path: str | Path | None = None, *, bus: EventBus | None = None) -> None:
        self.path = Path(path).expanduser() if path is not None else None
        self.bus = bus
        self._lock = threading.Lock()
        self._data: dict[str, str] = {}
        self._stamp: tuple[int, int, int] | None = None
        with self._lock:
            self._reload_unlocked()

    @property
    def persistent(self) -> bool:
        return self.path is not None

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        # Writers sharing the file merge its latest contents before flushing.
        with self._lock:
            changes = self._reload_unlocked()
            self._data[key] = str(value)
            self._flush()
        self._announce(changes)

    def remove_item(self, key: str) -> None:
        with self._lock:
            changes = self._reload_unlocked()
            if self._data.pop(key, None) is not None:
                self._flush()
        self._announce(changes)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._flush()

    def sync(self) -> list[str]:
        """Reload the file if another process changed it.

        Returns the keys whose values differ and publishes one ``storage``
        event per changed key, mirroring the browser's cross-tab event.
        """
        with self._lock:
            changes = self._reload_unlocked()
        self._announce(changes)
        return [key for key, _, _ in changes]

    def _announce(self, changes: list[tuple[str, str | None, str | None]]) -> None:
        if self.bus is None:
            return
        for key, old_value, new_value in changes:
            self.bus.publish(EVENT_STORAGE, {"key": key, "old_value": old_value, "new_value": new_value})

    def _file_stamp(self) -> tuple[int, int, int] | None:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return stat.st_mtime_ns, stat.st_ino, stat.st_size

    def _reload_unlocked(self) -> list[tuple[str, str | None, str | None]]:
        """Pick up the file's contents if it changed since the last read or write."""
        if self.path is None:
            return []

        stamp = self._file_stamp()
        if stamp is None or stamp == self._stamp:
            return []

        previous = self._data
        self._data = self._read_file()
        self._stamp = stamp
        return [
            (key, previous.get(key), self._data.get(key))
            for key in sorted(set(previous) | set(self._data))
            if previous.get(key) != self._data.get(key)
        ]

    def _read_file(self) -> dict[str, str]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Storage file %s unreadable (%s); starting empty.", self.path, exc)
            return {}

        if not isinstance(raw, dict):
            logger.warning("Storage file %s does not hold an object; starting empty.", self.path)
            return {}

        return {str(key): str(value) for key, value in raw.items() if value is not None}

    def _flush(self) -> None:
        if self.path is None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        self._stamp = self._file_stamp()
