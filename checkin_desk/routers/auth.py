from __future__ import annotations

"""
EMBED_SUMMARY: start.gg OAuth login/callback/logout and cookie-backed session endpoints.
EMBED_TAGS: auth, oauth, startgg, cookies, session
"""

import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse

from ..config import get_settings
from ..deps import (
    ACCESS_TOKEN_COOKIE,
    AUTH_COOKIES,
    REFRESH_TOKEN_COOKIE,
    STATE_COOKIE,
    USER_COOKIE,
    encode_user_cookie,
    read_user_cookie,
)
from ..schemas import SessionOut
from ..startgg import StartGGClient, get_startgg_client


router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger("startgg")

STATE_MAX_AGE = 60 * 10
ACCESS_DEFAULT_MAX_AGE = 60 * 60
REFRESH_MAX_AGE = 60 * 60 * 24 * 30


def _set_cookie(response, name: str, value: str, max_age: int) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=get_settings().secure_cookies,
    )


@router.get("/login")
def login(startgg: StartGGClient = Depends(get_startgg_client)):
    state = secrets.token_hex(16)
    response = RedirectResponse(startgg.build_authorize_url(state), status_code=307)
    _set_cookie(response, STATE_COOKIE, state, STATE_MAX_AGE)
    return response


@router.get("/callback")
def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    startgg: StartGGClient = Depends(get_startgg_client),
):
    if not code or not state:
        raise HTTPException(status_code=400, detail="Missing code/state")
    saved_state = request.cookies.get(STATE_COOKIE)
    if not saved_state or not secrets.compare_digest(saved_state, state):
        raise HTTPException(status_code=400, detail="State mismatch")

    token_response = startgg.exchange_code(code)
    access_token = token_response.get("access_token")
    if not access_token:
        raise HTTPException(status_code=400, detail="Token response did not include an access token")
    refresh_token = token_response.get("refresh_token")
    expires_in = int(token_response.get("expires_in") or ACCESS_DEFAULT_MAX_AGE)

    viewer = startgg.fetch_viewer(access_token)

    response = RedirectResponse("/", status_code=307)
    response.delete_cookie(STATE_COOKIE, path="/")
    _set_cookie(response, ACCESS_TOKEN_COOKIE, access_token, expires_in)
    if refresh_token:
        _set_cookie(response, REFRESH_TOKEN_COOKIE, refresh_token, REFRESH_MAX_AGE)
    if viewer:
        _set_cookie(response, USER_COOKIE, encode_user_cookie(viewer), expires_in)
    logger.info("oauth login complete user=%s", (viewer or {}).get("slug"))
    return response


@router.post("/logout")
def logout():
    response = JSONResponse({"ok": True})
    for name in AUTH_COOKIES:
        response.delete_cookie(name, path="/")
    return response


@router.get("/session", response_model=SessionOut)
def session(request: Request):
    return {
        "authenticated": bool(request.cookies.get(ACCESS_TOKEN_COOKIE)),
        "user": read_user_cookie(request),
    }
