"""
Request and response schemas.

Request bodies are validated at the route boundary before any service code
runs; responses are dumped through the *Out models so the JSON shape (camelCase
keys, no password hashes, derived campaign fields) is fixed in one place.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from flask import request
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CATEGORIES = ("education", "medical", "environment", "technology", "community", "other")
# largest value a NUMERIC(12,2) money column holds
MAX_AMOUNT = 9_999_999_999.99
Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Password = Annotated[str, StringConstraints(min_length=8)]


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


def _email(v: str) -> str:
    v = (v or "").strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError("Invalid email format")
    return v


Email = Annotated[str, AfterValidator(_email)]


# --- auth ---


class RegisterRequest(ApiModel):
    email: Email
    password: Password
    name: Text


class LoginRequest(ApiModel):
    email: Text
    password: Text

    @field_validator("email")
    @classmethod
    def _lower(cls, v: str) -> str:
        return v.lower()


class ForgotPasswordRequest(ApiModel):
    email: Email


class VerifyOtpRequest(ApiModel):
    email: Email
    otp: Text


class ResetPasswordRequest(ApiModel):
    email: Email
    new_password: Password
    reset_token: Optional[str] = None


class CreateAdminRequest(RegisterRequest):
    pass


class ProfileUpdateRequest(ApiModel):
    name: Optional[Text] = None
    email: Optional[Email] = None
    avatar_url: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[Password] = None


# --- campaigns ---


class FundUtilizationPlan(ApiModel):
    title: Optional[str] = None
    description: Optional[str] = None
    timeline: Optional[str] = None
    budget: Optional[float] = Field(None, ge=0)


class CampaignCreateRequest(ApiModel):
    title: Text
    description: Text
    goal_amount: float = Field(..., gt=0, le=MAX_AMOUNT)
    deadline: datetime
    category: str
    fund_utilization_plan: Union[Text, FundUtilizationPlan]
    media_urls: List[str] = Field(default_factory=list)

    @field_validator("goal_amount")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Goal amount must be a positive number")
        return round(v, 2)

    @field_validator("category")
    @classmethod
    def _category(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in CATEGORIES:
            raise ValueError(f"Category must be one of: {', '.join(CATEGORIES)}")
        return v

    @field_validator("deadline")
    @classmethod
    def _future(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v <= datetime.now(timezone.utc):
            raise ValueError("Deadline must be in the future")
        return v

    def plan_payload(self) -> Any:
        if isinstance(self.fund_utilization_plan, FundUtilizationPlan):
            return self.fund_utilization_plan.model_dump(by_alias=True)
        return self.fund_utilization_plan


class CampaignListQuery(ApiModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    category: Optional[str] = None
    search: Optional[str] = None
    status: Literal["approved", "completed"] = "approved"
    include_completed: bool = False
    needs_funding: bool = False
    sort: Optional[Literal["urgency", "newest"]] = None

    @field_validator("category")
    @classmethod
    def _category(cls, v: Optional[str]) -> Optional[str]:
        if not v or v.lower() == "all":
            return None
        v = v.lower()
        if v not in CATEGORIES:
            raise ValueError(f"Category must be one of: {', '.join(CATEGORIES)}")
        return v


class AdminCampaignQuery(ApiModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=50)
    status: Optional[Literal["pending", "approved", "rejected", "completed"]] = None
    search: Optional[str] = None


class PageQuery(ApiModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=50)


class ContactListQuery(PageQuery):
    status: Optional[Literal["unread", "in-progress", "resolved"]] = None


class DonationRequest(ApiModel):
    # Positivity is a business rule checked by the donation service.
    amount: Any = None


class LegacyDonationRequest(DonationRequest):
    campaign_id: Text


class CommentRequest(ApiModel):
    text: Text


class ModerationRequest(ApiModel):
    status: Literal["approved", "rejected"]
    note: Optional[str] = None


class RoleChangeRequest(ApiModel):
    role: Literal["user", "admin"]


# --- contact ---


class ContactRequest(ApiModel):
    name: Text
    email: Email
    subject: Text
    message: Text


class ContactUpdateRequest(ApiModel):
    status: Optional[Literal["unread", "in-progress", "resolved"]] = None
    admin_response: Optional[str] = None


# --- responses ---


class UserOut(ApiModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    require_password_reset: bool = False
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class UserBrief(ApiModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class UserWithStatsOut(ApiModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    require_password_reset: bool = False
    created_at: Optional[datetime] = None
    campaigns_created: int = 0
    donations_made: int = 0
    total_donated: float = 0

    @computed_field(alias="stats")
    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "campaignsCreated": self.campaigns_created,
            "donationsMade": self.donations_made,
            "totalDonated": self.total_donated,
        }


class CommentOut(ApiModel):
    id: str
    campaign_id: str
    user_id: str
    text: str
    created_at: Optional[datetime] = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    author_avatar_url: Optional[str] = None


class CampaignOut(ApiModel):
    id: str
    title: str
    description: str
    category: str
    goal_amount: float
    raised_amount: float = 0
    deadline: datetime
    status: str
    creator_id: str
    creator: Optional[UserBrief] = None
    fund_utilization_plan: Any = None
    media_urls: List[str] = Field(default_factory=list)
    comment_ids: List[str] = Field(default_factory=list)
    moderation_note: Optional[str] = None
    moderated_by: Optional[str] = None
    moderated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    donation_count: Optional[int] = None
    avg_donation: Optional[float] = None
    comments: Optional[List[CommentOut]] = None

    @computed_field(alias="progress")
    @property
    def progress(self) -> float:
        if self.goal_amount <= 0:
            return 0.0
        return round(min(100.0, self.raised_amount / self.goal_amount * 100.0), 2)

    @computed_field(alias="isFunded")
    @property
    def is_funded(self) -> bool:
        return self.status == "completed" or self.raised_amount >= self.goal_amount

    @computed_field(alias="remainingAmount")
    @property
    def remaining_amount(self) -> float:
        return round(max(self.goal_amount - self.raised_amount, 0.0), 2)

    @computed_field(alias="daysLeft")
    @property
    def days_left(self) -> int:
        deadline = self.deadline
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)
        seconds = (deadline - datetime.now(timezone.utc)).total_seconds()
        return max(0, math.ceil(seconds / 86400))


class DonationOut(ApiModel):
    id: str
    campaign_id: str
    user_id: str
    amount: float
    created_at: Optional[datetime] = None
    campaign_title: Optional[str] = None
    campaign_description: Optional[str] = None
    campaign_media_urls: Optional[List[str]] = None
    donor_name: Optional[str] = None
    donor_email: Optional[str] = None


class ContactOut(ApiModel):
    id: str
    name: str
    email: str
    subject: str
    message: str
    status: str
    user_id: Optional[str] = None
    admin_response: Optional[str] = None
    responded_by: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sender_name: Optional[str] = None
    responder_name: Optional[str] = None
    responder_email: Optional[str] = None


def dump(model: type[ApiModel], data: Any) -> Dict[str, Any]:
    return model.model_validate(data).model_dump(by_alias=True, mode="json")


def dump_many(model: type[ApiModel], rows: List[Any]) -> List[Dict[str, Any]]:
    return [dump(model, r) for r in rows]


def from_json(model: type[ApiModel]) -> Any:
    return model.model_validate(request.get_json(force=True, silent=True) or {})


def from_args(model: type[ApiModel]) -> Any:
    return model.model_validate(request.args.to_dict())
