# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Client-held login session.

The server keeps no session table: after login the client stores

    {"user": <safe account projection>, "expiry": <epoch ms>}

and discards it once ``expiry`` has passed.  Older clients stored the bare
user object; such records are upgraded in place on first read instead of
being thrown away.

A stolen record stays valid until it expires – there is no server-side
revocation.
"""

import json
import time
from pathlib import Path
from typing import Callable, Optional

SESSION_KEY = "user"
DEFAULT_TTL_MS = 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Stores – minimal string key/value, the shape of browser localStorage
# ---------------------------------------------------------------------------


class MemoryStore:
    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Keeps every key in one JSON object on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}

    def _save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


# ---------------------------------------------------------------------------
# Session manager
# ---------------------------------------------------------------------------


class SessionManager:
    def __init__(
        self,
        store,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store
        self.ttl_ms = ttl_ms
        self.clock = clock

    def _persist(self, record: dict) -> None:
        self.store.set(SESSION_KEY, json.dumps(record))

    def issue(self, user: dict, **extra) -> dict:
        """Start a session for *user*; extra keys (e.g. token) ride along."""
        record = {"user": user, "expiry": self.clock() + self.ttl_ms, **extra}
        self._persist(record)
        return record

    def read_record(self) -> Optional[dict]:
        """
        The full stored record, or None.  Expired and unreadable records are
        removed; a legacy bare-user record is wrapped with a fresh expiry and
        written back first.
        """
        raw = self.store.get(SESSION_KEY)
        if raw is None:
            return None

        try:
            record = json.loads(raw)
        except ValueError:
            self.destroy()
            return None
        if not isinstance(record, dict):
            self.destroy()
            return None

        if "expiry" not in record:
            record = {"user": record, "expiry": self.clock() + self.ttl_ms}
            self._persist(record)
            return record

        if not isinstance(record["expiry"], (int, float)) or self.clock() > record["expiry"]:
            self.destroy()
            return None
        return record

    def read(self) -> Optional[dict]:
        """The signed-in user, or None when there is no valid session."""
        record = self.read_record()
        return record.get("user") if record else None

    def destroy(self) -> None:
        self.store.remove(SESSION_KEY)
