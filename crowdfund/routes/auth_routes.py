from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity

from crowdfund.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyOtpRequest,
    from_json,
)
from crowdfund.services.auth_service import (
    forgot_password,
    login,
    me,
    register,
    reset_password,
    verify_otp,
)
from crowdfund.utils.authz import require_auth
from crowdfund.utils.rate_limit import rate_limit_decorator

auth_bp = Blueprint("auth", __name__)

_auth_limit = rate_limit_decorator(
    "RATE_LIMIT_AUTH_PER_MINUTE", 10, key_prefix="auth", window_seconds=60
)
_otp_limit = rate_limit_decorator(
    "OTP_RATE_LIMIT_PER_HOUR",
    3,
    key_prefix="otp",
    window_seconds=3600,
    message="Too many OTP requests. Please try again later.",
)


@auth_bp.post("/register")
@_auth_limit
def register_route():
    return jsonify(register(from_json(RegisterRequest))), 201


@auth_bp.post("/login")
@_auth_limit
def login_route():
    return jsonify(login(from_json(LoginRequest))), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify(me(get_jwt_identity())), 200


@auth_bp.post("/forgot-password")
@_otp_limit
def forgot_password_route():
    return jsonify(forgot_password(from_json(ForgotPasswordRequest))), 200


@auth_bp.post("/verify-otp")
@_auth_limit
def verify_otp_route():
    return jsonify(verify_otp(from_json(VerifyOtpRequest))), 200


@auth_bp.post("/reset-password")
@_auth_limit
def reset_password_route():
    return jsonify(reset_password(from_json(ResetPasswordRequest))), 200
