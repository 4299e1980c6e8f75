from __future__ import annotations

import base64
import binascii
import json
from typing import Optional

from fastapi import Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db_session
from .rate_limit import rate_limit_check


ACCESS_TOKEN_COOKIE = "startgg_access_token"
REFRESH_TOKEN_COOKIE = "startgg_refresh_token"
USER_COOKIE = "startgg_user"
STATE_COOKIE = "startgg_oauth_state"
AUTH_COOKIES = (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, USER_COOKIE, STATE_COOKIE)

DEFAULT_OPERATOR = "operator"


def get_db() -> Session:
    yield from get_db_session()


def require_token(request: Request, authorization: Optional[str] = Header(default=None)) -> str:
    settings = get_settings()
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if token != settings.api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    rate_limit_check(request, token)
    return token


def encode_user_cookie(user: dict) -> str:
    # urlsafe, unpadded: stays a plain cookie token without quoting
    return base64.urlsafe_b64encode(json.dumps(user).encode("utf-8")).decode("ascii").rstrip("=")


def read_user_cookie(request: Request) -> Optional[dict]:
    encoded = request.cookies.get(USER_COOKIE)
    if not encoded:
        return None
    try:
        padded = encoded + "=" * (-len(encoded) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def require_access_token(request: Request) -> str:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in to start.gg")
    return token


def get_operator_id(request: Request) -> str:
    user = read_user_cookie(request) or {}
    operator = user.get("id") or user.get("slug")
    return str(operator) if operator else DEFAULT_OPERATOR
