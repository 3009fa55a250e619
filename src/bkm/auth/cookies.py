# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from fastapi import Request
from starlette.responses import Response


class RequestCookies:
    """Cookie accessor for one request.

    Reads see the incoming cookies plus anything written earlier in the same
    request. Writes are queued and copied onto the outgoing response by
    ``apply``.
    """

    def __init__(self, request: Request):
        self._values: Dict[str, Optional[str]] = dict(request.cookies)
        self._pending: List[Tuple[str, str, dict]] = []

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name) or None

    def set(
        self,
        name: str,
        value: str,
        *,
        secure: bool,
        httponly: bool,
        samesite: str,
        expires: datetime,
    ) -> None:
        self._values[name] = value
        self._pending.append(
            ("set", name, {"value": value, "secure": secure, "httponly": httponly, "samesite": samesite, "expires": expires})
        )

    def delete(self, name: str) -> None:
        self._values[name] = None
        self._pending.append(("delete", name, {}))

    def apply(self, response: Response) -> Response:
        for op, name, opts in self._pending:
            if op == "set":
                response.set_cookie(name, path="/", **opts)
            else:
                response.delete_cookie(name, path="/", secure=True, httponly=True, samesite="lax")
        self._pending.clear()
        return response
