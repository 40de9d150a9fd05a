import logging
import os
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from crowdfund.models.user import (
    create_user,
    get_user_by_email,
    get_user_by_id,
    set_password,
)
from crowdfund.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserOut,
    VerifyOtpRequest,
    dump,
)
from crowdfund.tasks import send_password_reset_otp
from crowdfund.utils import otp_store
from crowdfund.utils.errors import Conflict, PasswordResetRequired, Unauthorized, UserNotFound

log = logging.getLogger(__name__)

RESET_PURPOSE = "password_reset"
RESET_TOKEN_MINUTES = 10


def hash_password(password: str) -> str:
    rounds = int(os.getenv("BCRYPT_ROUNDS", "12"))
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def _session(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "token": create_access_token(identity=str(user["id"])),
        "user": dump(UserOut, user),
    }


def register(req: RegisterRequest) -> Dict[str, Any]:
    if get_user_by_email(req.email):
        raise Conflict("Email already exists")
    user = create_user(
        email=req.email, password_hash=hash_password(req.password), name=req.name
    )
    log.info("[auth] registered user %s", user["id"])
    return _session(user)


def login(req: LoginRequest) -> Dict[str, Any]:
    user = get_user_by_email(req.email)
    if user and user.get("require_password_reset"):
        # flagged accounts never get a session, whatever the password
        raise PasswordResetRequired(
            requirePasswordReset=True,
            email=user["email"],
            redirectTo="/forgot-password",
        )
    if not user or not verify_password(req.password, user.get("password_hash")):
        raise Unauthorized("Invalid credentials")
    return _session(user)


def me(user_id: str) -> Dict[str, Any]:
    user = get_user_by_id(user_id)
    if not user:
        raise UserNotFound()
    return dump(UserOut, user)


def forgot_password(req: ForgotPasswordRequest) -> Dict[str, Any]:
    user = get_user_by_email(req.email)
    if user:
        code = otp_store.generate_otp()
        otp_store.save_otp(req.email, code)
        send_password_reset_otp(req.email, code)
        log.info("[auth] reset code issued for user %s", user["id"])
    return {"message": "If the email exists, an OTP has been sent"}


def verify_otp(req: VerifyOtpRequest) -> Dict[str, Any]:
    user = get_user_by_email(req.email)
    if not user or not otp_store.verify_otp(req.email, req.otp):
        raise Unauthorized("Invalid or expired OTP")
    token = create_access_token(
        identity=str(user["id"]),
        additional_claims={"purpose": RESET_PURPOSE, "email": user["email"]},
        expires_delta=timedelta(minutes=RESET_TOKEN_MINUTES),
    )
    return {"message": "OTP verified", "resetToken": token}


def _check_reset_token(token: Optional[str], user: Dict[str, Any]) -> None:
    if not token:
        raise Unauthorized("Reset token required")
    try:
        claims = decode_token(token)
    except (JWTExtendedException, PyJWTError):
        raise Unauthorized("Invalid or expired reset token")
    if (
        claims.get("purpose") != RESET_PURPOSE
        or claims.get("sub") != str(user["id"])
        or claims.get("email") != user["email"]
    ):
        raise Unauthorized("Invalid or expired reset token")


def reset_password(req: ResetPasswordRequest) -> Dict[str, Any]:
    user = get_user_by_email(req.email)
    if not user:
        raise UserNotFound()
    if os.getenv("PASSWORD_RESET_REQUIRE_OTP", "1") == "1":
        _check_reset_token(req.reset_token, user)
    set_password(user["id"], hash_password(req.new_password))
    log.info("[auth] password reset for user %s", user["id"])
    return {"message": "Password reset successful. Please log in."}
