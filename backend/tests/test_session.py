"""Client-held session records: issue, expiry, legacy upgrade, destroy."""

import json

from core.session import (
    DEFAULT_TTL_MS,
    SESSION_KEY,
    JsonFileStore,
    MemoryStore,
    SessionManager,
)

HOUR_MS = 60 * 60 * 1000
ANA = {"_id": "a" * 32, "name": "Ana", "email": "ana@x.com", "isAdmin": False}


class FakeClock:
    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def _manager(store=None, clock=None):
    return SessionManager(store or MemoryStore(), clock=clock or FakeClock())


def test_default_ttl_is_24_hours():
    assert DEFAULT_TTL_MS == 24 * HOUR_MS


def test_issue_stores_user_and_expiry():
    clock = FakeClock()
    store = MemoryStore()
    sessions = SessionManager(store, clock=clock)

    record = sessions.issue(ANA)

    assert record == {"user": ANA, "expiry": clock.now + DEFAULT_TTL_MS}
    assert json.loads(store.get(SESSION_KEY)) == record
    assert sessions.read() == ANA


def test_issue_keeps_extra_keys():
    sessions = _manager()

    sessions.issue(ANA, token="abc")

    assert sessions.read_record()["token"] == "abc"


def test_session_valid_until_expiry_then_gone():
    clock = FakeClock()
    store = MemoryStore()
    sessions = SessionManager(store, clock=clock)
    sessions.issue(ANA)

    clock.advance(DEFAULT_TTL_MS)
    assert sessions.read() == ANA

    clock.advance(1)
    assert sessions.read() is None
    assert store.get(SESSION_KEY) is None


def test_no_session_reads_none():
    assert _manager().read() is None


def test_legacy_record_is_upgraded_not_discarded():
    clock = FakeClock()
    store = MemoryStore()
    store.set(SESSION_KEY, json.dumps(ANA))
    sessions = SessionManager(store, clock=clock)

    assert sessions.read() == ANA

    stored = json.loads(store.get(SESSION_KEY))
    assert stored == {"user": ANA, "expiry": clock.now + DEFAULT_TTL_MS}


def test_upgraded_legacy_record_expires_24_hours_after_upgrade():
    clock = FakeClock()
    store = MemoryStore()
    store.set(SESSION_KEY, json.dumps(ANA))
    sessions = SessionManager(store, clock=clock)
    sessions.read()

    clock.advance(23 * HOUR_MS)
    assert sessions.read() == ANA

    clock.advance(HOUR_MS + 1)
    assert sessions.read() is None


def test_corrupt_record_is_removed():
    store = MemoryStore()
    store.set(SESSION_KEY, "{not json")
    sessions = _manager(store)

    assert sessions.read() is None
    assert store.get(SESSION_KEY) is None


def test_non_object_record_is_removed():
    store = MemoryStore()
    store.set(SESSION_KEY, json.dumps(["Ana"]))
    sessions = _manager(store)

    assert sessions.read() is None
    assert store.get(SESSION_KEY) is None


def test_bad_expiry_is_removed():
    store = MemoryStore()
    store.set(SESSION_KEY, json.dumps({"user": ANA, "expiry": "tomorrow"}))
    sessions = _manager(store)

    assert sessions.read() is None
    assert store.get(SESSION_KEY) is None


def test_destroy_signs_out():
    sessions = _manager()
    sessions.issue(ANA)

    sessions.destroy()

    assert sessions.read() is None


def test_json_file_store_persists_across_managers(tmp_path):
    path = tmp_path / "nested" / "session.json"
    clock = FakeClock()

    SessionManager(JsonFileStore(path), clock=clock).issue(ANA, token="t")
    again = SessionManager(JsonFileStore(path), clock=clock)

    assert again.read() == ANA
    assert again.read_record()["token"] == "t"

    again.destroy()
    assert json.loads(path.read_text()) == {}


def test_json_file_store_tolerates_garbage_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("garbage")

    store = JsonFileStore(path)

    assert store.get(SESSION_KEY) is None
    store.set("other", "1")
    assert store.get("other") == "1"
