from __future__ import annotations

import logging
import time
from typing import Tuple

from fastapi import HTTPException, Request, status

from .config import get_settings


logger = logging.getLogger("request")

WINDOW_SECONDS = 60

# (token, client ip) -> (window start, requests seen in that window)
_window_counts: dict[Tuple[str, str], Tuple[int, int]] = {}


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limit_check(request: Request, token: str) -> None:
    """Fixed one-minute window per token and client address."""
    settings = get_settings()
    if not settings.rate_limit_enabled:
        return
    now = int(time.time())
    window = now - now % WINDOW_SECONDS
    bucket = (token, _client_ip(request))
    started, count = _window_counts.get(bucket, (window, 0))
    if started != window:
        started, count = window, 0
    count += 1
    _window_counts[bucket] = (started, count)
    if count > settings.rate_limit_per_minute:
        retry_after = max(1, started + WINDOW_SECONDS - now)
        logger.warning("rate limit exceeded ip=%s path=%s count=%s", bucket[1], request.url.path, count)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            headers={"Retry-After": str(retry_after)},
        )
