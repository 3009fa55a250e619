import sys
import time
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest

from bkm.auth.actions import Auth
from bkm.auth.session import SessionManager, SessionStore
from bkm.auth.users import YamlUserStore


class FakeRedis:
    """In-memory stand-in for redis.asyncio.Redis (get / set ex= / delete)."""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.calls = 0

    async def set(self, key, value, ex=None):
        self.calls += 1
        exp = time.monotonic() + ex if ex else None
        self.store[key] = (value, exp)
        self.ttls[key] = ex

    async def get(self, key):
        self.calls += 1
        entry = self.store.get(key)
        if entry is None:
            return None
        value, exp = entry
        if exp is not None and time.monotonic() > exp:
            del self.store[key]
            return None
        return value

    async def delete(self, *keys):
        self.calls += 1
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    def expire_all(self):
        for key, (value, _) in list(self.store.items()):
            self.store[key] = (value, time.monotonic() - 1)


class BrokenRedis(FakeRedis):
    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ex=None):
        raise ConnectionError("redis down")

    async def delete(self, *keys):
        raise ConnectionError("redis down")


class MemoryCookies:
    """Cookie jar that records the options of every cookie it sets."""

    def __init__(self):
        self.jar = {}
        self.options = {}

    def get(self, name):
        return self.jar.get(name)

    def set(self, name, value, **opts):
        self.jar[name] = value
        self.options[name] = opts

    def delete(self, name):
        self.jar.pop(name, None)


@pytest.fixture(autouse=True)
def cheap_argon2(monkeypatch):
    # Keep Argon2 fast in tests; production defaults are far higher.
    monkeypatch.setenv("BKM_ARGON2_TIME_COST", "1")
    monkeypatch.setenv("BKM_ARGON2_MEMORY_COST", "1024")
    monkeypatch.setenv("BKM_ARGON2_PARALLELISM", "1")


@pytest.fixture()
def redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def users_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "users.yml"


@pytest.fixture()
def users(users_path: Path) -> YamlUserStore:
    return YamlUserStore(users_path)


@pytest.fixture()
def sessions(redis) -> SessionManager:
    return SessionManager(SessionStore(redis))


@pytest.fixture()
def cookies() -> MemoryCookies:
    return MemoryCookies()


@pytest.fixture()
def auth(users, sessions, cookies) -> Auth:
    return Auth(users, sessions, cookies)
