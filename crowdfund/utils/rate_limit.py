"""
Simple in-memory rate limiter.

Configure via RATE_LIMIT_ENABLED (default: 1). Routes pick their own limits:
auth endpoints use RATE_LIMIT_AUTH_PER_MINUTE (default: 10), contact
submissions CONTACT_RATE_LIMIT_PER_HOUR (default: 5), OTP requests
OTP_RATE_LIMIT_PER_HOUR (default: 3).
"""

from __future__ import annotations
import os
import time
from collections import defaultdict
from functools import wraps
from threading import Lock

from flask import jsonify, request

_lock = Lock()
_counts: dict[str, list[float]] = defaultdict(list)
_window = 60  # seconds


def _clean_old(ts_list: list[float], window: int) -> None:
    now = time.time()
    cutoff = now - window
    while ts_list and ts_list[0] < cutoff:
        ts_list.pop(0)


def is_rate_limited(key: str, limit: int, window_seconds: int = _window) -> bool:
    """Return True if the key has exceeded the limit within the rolling window."""
    if limit <= 0:
        return False
    with _lock:
        _clean_old(_counts[key], window_seconds)
        if len(_counts[key]) >= limit:
            return True
        _counts[key].append(time.time())
        return False


def reset() -> None:
    with _lock:
        _counts.clear()


def rate_limit_key() -> str:
    """Get rate limit key from request (IP)."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def rate_limit_exceeded_response(message: str, window_seconds: int):
    return jsonify({"message": message, "retry_after": window_seconds}), 429


def rate_limit_decorator(
    limit_env: str,
    default_limit: int,
    *,
    window_seconds: int = _window,
    key_prefix: str = "",
    message: str = "Too many requests. Please try again later.",
):
    """
    Decorator to rate limit a route per source address.
    The limit is read from ``limit_env`` on every call so tests and operators
    can change it without a restart.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if os.getenv("RATE_LIMIT_ENABLED", "1") != "1":
                return fn(*args, **kwargs)
            limit = int(os.getenv(limit_env, str(default_limit)))
            prefix = key_prefix or fn.__name__
            key = f"{prefix}:{rate_limit_key()}"
            if is_rate_limited(key, limit, window_seconds=window_seconds):
                return rate_limit_exceeded_response(message, window_seconds)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
