import asyncio

from conftest import FakeRedis
from fastapi import FastAPI

from bkm.app import lifespan
from bkm.auth.session import SessionStore
from bkm.infra.redis_client import RedisHandle


def test_client_is_created_lazily_and_reused():
    handle = RedisHandle("redis://localhost:6379/15")
    assert handle._client is None
    client = handle.client
    assert handle.client is client


def test_aclose_releases_client():
    handle = RedisHandle("redis://localhost:6379/15")
    first = handle.client
    asyncio.run(handle.aclose())
    assert handle._client is None
    assert handle.client is not first
    asyncio.run(handle.aclose())


def test_aclose_without_client_is_noop():
    asyncio.run(RedisHandle().aclose())


def test_handle_forwards_session_commands():
    handle = RedisHandle()
    handle._client = FakeRedis()
    store = SessionStore(handle)

    asyncio.run(store.set("abc", "user-1"))
    assert asyncio.run(store.get("abc")) == "user-1"
    assert handle._client.ttls["session:abc"] == store.ttl_seconds
    asyncio.run(store.delete("abc"))
    assert asyncio.run(store.get("abc")) is None


def test_app_startup_does_not_create_client():
    app = FastAPI()

    async def start_and_stop():
        async with lifespan(app):
            return app.state.sessions.store.client._client

    assert asyncio.run(start_and_stop()) is None
