# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from typing import Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL = os.getenv("BKM_REDIS_URL", "redis://localhost:6379/0")


class RedisHandle:
    """Lazily created Redis client owned by the application lifespan.

    The client (and its connection pool) is created by the first command, not
    at startup, and released by ``aclose``. ``get``/``set``/``delete`` forward
    to it, so the handle itself can back a SessionStore.
    """

    def __init__(self, url: str = DEFAULT_REDIS_URL):
        self.url = url
        self._client: Optional[Redis] = None

    @property
    def client(self) -> Redis:
        if self._client is None:
            logger.info("creating redis client")
            self._client = Redis.from_url(self.url, decode_responses=True)
        return self._client

    async def get(self, key: str):
        return await self.client.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        return await self.client.set(key, value, ex=ex)

    async def delete(self, *keys: str) -> int:
        return await self.client.delete(*keys)

    async def aclose(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()
