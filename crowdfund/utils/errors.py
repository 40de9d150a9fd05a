"""
API error types.

Every error raised from the service layer is an ApiError; the handler
registered in create_app turns it into a JSON body of the form
``{"message": ..., **extra}`` with the error's status code.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional


class ApiError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        errors: Optional[List[str]] = None,
        **extra: Any,
    ):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        body.update(self.extra)
        return body


# 400


class ValidationFailed(ApiError):
    status_code = 400
    message = "Validation failed"


class Conflict(ApiError):
    status_code = 400
    message = "Email already exists"


class InvalidAmount(ApiError):
    status_code = 400
    message = "Invalid donation amount"


class CampaignNotAcceptingDonations(ApiError):
    status_code = 400
    message = "Campaign is not accepting donations"


class SelfDonationForbidden(ApiError):
    status_code = 400
    message = "You cannot donate to your own campaign"


class InvalidModerationState(ApiError):
    status_code = 400
    message = "Can only moderate pending campaigns"


class LastAdminProtection(ApiError):
    status_code = 400
    message = "Cannot change role of the last admin"


class InvalidContactTransition(ApiError):
    status_code = 400
    message = "Invalid status transition"


# 401 / 403


class Unauthorized(ApiError):
    status_code = 401
    message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    message = "Forbidden"


class SelfRoleChangeForbidden(ApiError):
    status_code = 403
    message = "Cannot change your own role"


class PasswordResetRequired(ApiError):
    status_code = 403
    message = (
        "Your account role has been changed by an administrator. For security "
        "reasons, you need to reset your password before continuing. Please use "
        'the "Forgot Password" option on the login page.'
    )


# 404


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class UserNotFound(NotFound):
    message = "User not found"


class CampaignNotFound(NotFound):
    message = "Campaign not found"


class CommentNotFound(NotFound):
    message = "Comment not found"


class ContactNotFound(NotFound):
    message = "Contact submission not found"


# 429


class RateLimited(ApiError):
    status_code = 429
    message = "Too many requests. Please try again later."
