# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server-side sessions kept in a key-value store (Redis).

Each active session is stored as ``session:{session_id} -> user_id`` with a
fixed TTL; the store expires entries on its own. The browser only ever holds
the opaque session id in an HttpOnly cookie.
"""

from __future__ import annotations

import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Protocol

COOKIE_NAME = os.getenv("BKM_COOKIE_NAME", "session-id")
SESSION_TTL_SECONDS = int(os.getenv("BKM_SESSION_TTL", str(60 * 60 * 24 * 7)))  # 7 days
SESSION_PREFIX = "session:"
SESSION_ID_BYTES = 512


class CookieJar(Protocol):
    def get(self, name: str) -> Optional[str]: ...

    def set(
        self,
        name: str,
        value: str,
        *,
        secure: bool,
        httponly: bool,
        samesite: str,
        expires: datetime,
    ) -> None: ...

    def delete(self, name: str) -> None: ...


def cookie_settings() -> dict:
    return {"httponly": True, "samesite": "lax", "secure": True}


class SessionStore:
    """Thin adapter over an async key-value client (redis.asyncio.Redis)."""

    def __init__(self, client: Any, *, prefix: str = SESSION_PREFIX, ttl_seconds: int = SESSION_TTL_SECONDS):
        self.client = client
        self.prefix = prefix
        self.ttl_seconds = ttl_seconds

    def key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    async def set(self, session_id: str, user_id: str) -> None:
        await self.client.set(self.key(session_id), user_id, ex=self.ttl_seconds)

    async def get(self, session_id: str) -> Optional[str]:
        value = await self.client.get(self.key(session_id))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    async def delete(self, session_id: str) -> None:
        await self.client.delete(self.key(session_id))


class SessionManager:
    def __init__(self, store: SessionStore, *, cookie_name: str = COOKIE_NAME):
        self.store = store
        self.cookie_name = cookie_name

    async def create_session(self, user_id: str, cookies: CookieJar) -> None:
        """Open a brand-new session for user_id and hand its id to the client.

        Other sessions of the same user are left untouched.
        """
        session_id = secrets.token_hex(SESSION_ID_BYTES)
        await self.store.set(session_id, user_id)
        expires = datetime.now(timezone.utc) + timedelta(seconds=self.store.ttl_seconds)
        cookies.set(self.cookie_name, session_id, expires=expires, **cookie_settings())

    async def get_user_from_session(self, cookies: CookieJar) -> Optional[str]:
        session_id = cookies.get(self.cookie_name)
        if not session_id:
            return None
        return await self.store.get(session_id)

    async def remove_session(self, cookies: CookieJar) -> None:
        session_id = cookies.get(self.cookie_name)
        if not session_id:
            return
        await self.store.delete(session_id)
        cookies.delete(self.cookie_name)
