"""
Expiring store for password-reset one-time codes, backed by Redis.

Codes are kept as SHA-256 hashes under ``otp:<email>`` with a TTL, so they
survive restarts, are shared between workers, and vanish on their own.
"""

from __future__ import annotations
import hashlib
import hmac
import os
import secrets

import redis

REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "600"))
_client = None


def r():
    global _client
    if _client is None:
        _client = redis.Redis.from_url(REDIS_URL, decode_responses=True)
    return _client


def _key(email: str) -> str:
    return f"otp:{email.strip().lower()}"


def _hash(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def generate_otp() -> str:
    return str(secrets.randbelow(900000) + 100000)


def save_otp(email: str, code: str, ttl: int = OTP_TTL_SECONDS) -> None:
    """Replace any pending code for this email."""
    r().setex(_key(email), ttl, _hash(code))


def verify_otp(email: str, code: str) -> bool:
    """Check a code; a matching code is consumed so it cannot be replayed."""
    stored = r().get(_key(email))
    if not stored or not code:
        return False
    if not hmac.compare_digest(stored, _hash(code.strip())):
        return False
    r().delete(_key(email))
    return True
