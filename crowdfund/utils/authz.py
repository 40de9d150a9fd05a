"""
Bearer-token guards for route handlers.

The token only carries the user id. Role and the forced-reset flag are
re-read from the users table on every request, so a demotion or a reset
requirement takes effect immediately for tokens already issued.
"""

from functools import wraps

from flask import g
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from crowdfund.models.user import get_user_by_id
from crowdfund.utils.errors import Forbidden, PasswordResetRequired, Unauthorized

ROLE_CAPABILITIES = {
    "user": {"campaign:create", "donate", "comment", "contact:own"},
    "admin": {
        "campaign:create",
        "donate",
        "comment",
        "contact:own",
        "campaign:moderate",
        "user:manage",
        "contact:triage",
        "stats:view",
    },
}


def _load_user():
    if get_jwt().get("purpose"):
        # reset tokens are only good for /auth/reset-password
        raise Unauthorized("Invalid token")
    user = get_user_by_id(get_jwt_identity())
    if user is None:
        raise Unauthorized("User not found")
    if user.get("require_password_reset"):
        raise PasswordResetRequired(requirePasswordReset=True, email=user["email"])
    g.current_user = user
    return user


def current_user():
    return g.get("current_user")


def require_auth(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        _load_user()
        return fn(*args, **kwargs)

    return wrapper


def optional_auth(fn):
    """
    Attach the caller when a usable bearer token is present. Expired or
    malformed tokens and flagged accounts are treated as anonymous.
    """

    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.current_user = None
        try:
            verify_jwt_in_request(optional=True)
            if get_jwt_identity():
                _load_user()
        except (JWTExtendedException, PyJWTError, Unauthorized, PasswordResetRequired):
            g.current_user = None
        return fn(*args, **kwargs)

    return wrapper


def can(user, capability: str) -> bool:
    return capability in ROLE_CAPABILITIES.get((user or {}).get("role"), set())


def require_capability(capability: str):
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = _load_user()
            if not can(user, capability):
                raise Forbidden(
                    "Admin access required", required=capability, have=user["role"]
                )
            return fn(*args, **kwargs)

        return wrapper

    return deco


require_admin = require_capability("user:manage")
