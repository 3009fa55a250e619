# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Sign-up, sign-in, logout and current-user resolution.

``Auth`` is built once per request: the user store and session manager are
process-wide and injected, the cookie jar and the current-user memo belong to
the request. Every public method returns one of its documented outcomes and
never lets a store or hashing error escape, except ``get_current_user`` with
``redirect=True``, which raises ``SignInRedirect``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException
from pydantic import ValidationError

from bkm.auth.forms import SignInForm, SignUpForm
from bkm.auth.passwords import compare_password, generate_salt, hash_password
from bkm.auth.session import CookieJar, SessionManager
from bkm.auth.users import SENSITIVE_FIELDS, DuplicateEmailError, UserStore

logger = logging.getLogger(__name__)

SIGN_IN_PATH = "/sign-in"

INVALID_FORM = "Invalid form data."
INVALID_CREDENTIALS = "Invalid credentials."
EMAIL_TAKEN = "Email is already registered."
CREATE_FAILED = "Failed to create user."
SIGN_UP_FAILED = "Internal server error during sign-up."
SIGN_IN_FAILED = "Internal server error during sign-in."


class SignInRedirect(HTTPException):
    """Abort the request and send the client to the sign-in page."""

    def __init__(self, location: str = SIGN_IN_PATH):
        super().__init__(status_code=303, headers={"Location": location})
        self.location = location


class Auth:
    def __init__(self, users: UserStore, sessions: SessionManager, cookies: CookieJar):
        self.users = users
        self.sessions = sessions
        self.cookies = cookies
        self._memo: Dict[bool, Optional[dict]] = {}

    async def sign_up(self, form: Any) -> dict:
        try:
            data = SignUpForm.model_validate(form)
        except ValidationError:
            return {"error": INVALID_FORM}

        try:
            if await self.users.find_by_email(data.email, fields=("id",)):
                return {"error": EMAIL_TAKEN}
            salt = generate_salt()
            password_hash = await hash_password(data.password, salt)
            user = await self.users.create(
                {"name": data.name, "email": data.email, "password_hash": password_hash, "salt": salt}
            )
            if not user:
                return {"error": CREATE_FAILED}
            await self.sessions.create_session(str(user["id"]), self.cookies)
        except DuplicateEmailError:
            return {"error": EMAIL_TAKEN}
        except Exception:
            logger.exception("sign-up failed")
            return {"error": SIGN_UP_FAILED}

        self._memo.clear()
        logger.info("user signed up: %s", user["id"])
        return {"ok": True}

    async def sign_in(self, form: Any) -> dict:
        try:
            data = SignInForm.model_validate(form)
        except ValidationError:
            return {"error": INVALID_FORM}

        try:
            user = await self.users.find_by_email(data.email, fields=("id", "salt", "password_hash"))
            if not user:
                return {"error": INVALID_CREDENTIALS}
            if not await compare_password(data.password, user.get("salt", ""), user.get("password_hash", "")):
                logger.warning("invalid password for user %s", user["id"])
                return {"error": INVALID_CREDENTIALS}
            await self.sessions.create_session(str(user["id"]), self.cookies)
        except Exception:
            logger.exception("sign-in failed")
            return {"error": SIGN_IN_FAILED}

        self._memo.clear()
        # the session is live from here on; audit fields are best-effort
        try:
            await self.users.record_login(str(user["id"]))
        except Exception:
            logger.exception("could not record login for user %s", user["id"])
        return {"ok": True}

    async def log_out(self) -> None:
        self._memo.clear()
        try:
            await self.sessions.remove_session(self.cookies)
        except Exception:
            logger.exception("logout failed")
            self.cookies.delete(self.sessions.cookie_name)

    async def get_current_user(self, *, redirect: bool = False, userdata: bool = False) -> Optional[dict]:
        """Return ``{"user": ...}`` for the signed-in client, else None.

        With ``userdata`` the full record (minus secrets) is returned, otherwise
        only the user id. Results are memoized for the lifetime of this object.
        """
        if userdata not in self._memo:
            self._memo[userdata] = await self._resolve_user(userdata)
        result = self._memo[userdata]
        if result is None and redirect:
            raise SignInRedirect()
        return result

    async def _resolve_user(self, userdata: bool) -> Optional[dict]:
        try:
            user_id = await self.sessions.get_user_from_session(self.cookies)
            if not user_id:
                return None
            if not userdata:
                return {"user": user_id}
            # a session may outlive its user record
            user = await self.users.find_by_id(user_id, exclude=SENSITIVE_FIELDS)
            if not user:
                return None
            return {"user": user}
        except Exception:
            logger.exception("current user lookup failed")
            return None
