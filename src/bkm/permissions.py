# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from bkm.auth.actions import Auth
from bkm.auth.cookies import RequestCookies


def get_auth(request: Request) -> Auth:
    """Per-request Auth; the current-user memo lives and dies with the request."""
    auth = getattr(request.state, "auth", None)
    if auth is None:
        state = request.app.state
        auth = Auth(state.users, state.sessions, RequestCookies(request))
        request.state.auth = auth
    return auth


async def current_user_optional(auth: Auth = Depends(get_auth)) -> Optional[dict]:
    res = await auth.get_current_user(userdata=True)
    return res["user"] if res else None


async def require_user(auth: Auth = Depends(get_auth)) -> dict:
    res = await auth.get_current_user(redirect=True, userdata=True)
    return res["user"]
