# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Form
from fastapi.responses import JSONResponse, RedirectResponse

from bkm.auth.actions import (
    CREATE_FAILED,
    EMAIL_TAKEN,
    INVALID_CREDENTIALS,
    INVALID_FORM,
    SIGN_IN_FAILED,
    SIGN_IN_PATH,
    SIGN_UP_FAILED,
    Auth,
)
from bkm.auth.session import SessionManager, SessionStore
from bkm.auth.users import DEFAULT_USERS_PATH, YamlUserStore
from bkm.infra.redis_client import RedisHandle
from bkm.permissions import current_user_optional, get_auth, require_user

ERROR_STATUS = {
    INVALID_FORM: 400,
    INVALID_CREDENTIALS: 401,
    EMAIL_TAKEN: 409,
    CREATE_FAILED: 500,
    SIGN_UP_FAILED: 500,
    SIGN_IN_FAILED: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    redis = RedisHandle()
    app.state.users = YamlUserStore(DEFAULT_USERS_PATH)
    app.state.sessions = SessionManager(SessionStore(redis))
    try:
        yield
    finally:
        await redis.aclose()


app = FastAPI(lifespan=lifespan)


def _result(auth: Auth, res: dict) -> JSONResponse:
    status = 200 if res.get("ok") else ERROR_STATUS.get(res.get("error"), 500)
    return auth.cookies.apply(JSONResponse(res, status_code=status))


# ------------------ Routes ------------------


@app.get("/sign-in")
async def sign_in_get(user=Depends(current_user_optional)):
    if user:
        return RedirectResponse(url="/", status_code=303)
    return {"page": "sign-in"}


@app.post("/sign-in")
async def sign_in_post(
    email: str = Form(""),
    password: str = Form(""),
    auth: Auth = Depends(get_auth),
):
    res = await auth.sign_in({"email": email, "password": password})
    return _result(auth, res)


@app.get("/sign-up")
async def sign_up_get(user=Depends(current_user_optional)):
    if user:
        return RedirectResponse(url="/", status_code=303)
    return {"page": "sign-up"}


@app.post("/sign-up")
async def sign_up_post(
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    auth: Auth = Depends(get_auth),
):
    res = await auth.sign_up({"name": name, "email": email, "password": password})
    return _result(auth, res)


@app.post("/logout")
async def logout_post(auth: Auth = Depends(get_auth)):
    await auth.log_out()
    return auth.cookies.apply(RedirectResponse(url=SIGN_IN_PATH, status_code=303))


@app.get("/me")
async def me(user=Depends(current_user_optional)):
    if not user:
        return JSONResponse({"user": None}, status_code=401)
    return {"user": user}


@app.get("/")
async def home(user=Depends(require_user)):
    return {"user": user}
