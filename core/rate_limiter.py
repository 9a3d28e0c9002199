# core/rate_limiter.py

import time
from collections import defaultdict
from threading import Lock
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, Request

from core.logging_config import logger


# In-process sliding window; one instance per worker
_hits: Dict[str, List[float]] = defaultdict(list)
_lock = Lock()


def check_rate_limit(identifier: str, max_requests: int, window_seconds: int) -> Tuple[bool, int]:
    """
    Record one hit for `identifier`.

    Returns (allowed, remaining). A rejected hit is not recorded.
    """
    now = time.time()
    window_start = now - window_seconds

    with _lock:
        recent = [ts for ts in _hits[identifier] if ts > window_start]
        if len(recent) >= max_requests:
            _hits[identifier] = recent
            return False, 0

        recent.append(now)
        _hits[identifier] = recent
        return True, max_requests - len(recent)


def reset_rate_limits():
    with _lock:
        _hits.clear()


def get_rate_limit_identifier(request: Request, scope: str, key: Optional[str] = None) -> str:
    """
    `scope:key` when a key (email, user id) is known, else `scope:ip:<client>`.
    The first X-Forwarded-For entry wins behind a proxy.
    """
    if key:
        return f"{scope}:{key}"

    client_ip = request.client.host if request.client else "unknown"
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()

    return f"{scope}:ip:{client_ip}"


def require_rate_limit(identifier: str, max_requests: int, window_seconds: int) -> int:
    """Raise 429 when `identifier` is over its limit, else return the remaining budget."""
    allowed, remaining = check_rate_limit(identifier, max_requests, window_seconds)

    if not allowed:
        logger.warning(f"Rate limit exceeded for {identifier}")
        raise HTTPException(
            status_code=429,
            detail={
                "success": False,
                "error": f"Too many attempts. Try again in {window_seconds} seconds.",
                "code": "RATE_LIMITED",
            },
            headers={
                "X-RateLimit-Limit": str(max_requests),
                "X-RateLimit-Window": str(window_seconds),
                "Retry-After": str(window_seconds),
            },
        )

    return remaining
