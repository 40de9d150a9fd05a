import logging
import math
import random
from typing import Any, Dict, List, Optional

from crowdfund.models.campaign import (
    attach_comment,
    detach_comment,
    get_campaign,
    insert_campaign,
    list_campaigns,
    lock_campaign,
    set_moderation,
)
from crowdfund.models.comment import (
    get_comment,
    insert_comment,
    remove_comment,
    select_comments,
)
from crowdfund.schemas import (
    AdminCampaignQuery,
    CampaignCreateRequest,
    CampaignListQuery,
    CampaignOut,
    CommentOut,
    ModerationRequest,
    dump,
    dump_many,
)
from crowdfund.utils.db import transaction
from crowdfund.utils.errors import (
    CampaignNotFound,
    CommentNotFound,
    Forbidden,
    InvalidModerationState,
    ValidationFailed,
)

log = logging.getLogger(__name__)

PUBLIC_STATUSES = ("approved", "completed")
MIN_REJECTION_NOTE = 10

_UNSPLASH = "https://images.unsplash.com/photo-{}?w=800"
CATEGORY_IMAGES = {
    "education": ["1503676260728-1c00da094a0b", "1509062522246-3755977927d7", "1524578271613-d550eacf6090"],
    "medical": ["1583324113626-70df0f4deaab", "1576091160550-2173dba999ef", "1579684385127-1ef15d508118"],
    "environment": ["1497436072909-60f360e1d4b1", "1441974231531-c6227db76b6e", "1472214103451-9374bd1c798e"],
    "technology": ["1518770660439-4636190af475", "1526374965328-7f61d4dc18c5", "1550751827-4bd374c3f58b"],
    "community": ["1511632765486-a01980e01a18", "1526958097901-5e6d742d3371", "1559660499-91e5a0cccd64"],
    "other": ["1507608616759-54f48f0af0ee", "1518199266791-5375a83190b7", "1510797215324-95aa89f43c33"],
}


def default_image(category: str) -> str:
    photos = CATEGORY_IMAGES.get(category) or CATEGORY_IMAGES["other"]
    return _UNSPLASH.format(random.choice(photos))


def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if total else 0,
    }


def create_campaign(creator: Dict[str, Any], req: CampaignCreateRequest) -> Dict[str, Any]:
    is_admin = creator["role"] == "admin"
    campaign = insert_campaign(
        title=req.title,
        description=req.description,
        category=req.category,
        goal_amount=req.goal_amount,
        deadline=req.deadline,
        creator_id=creator["id"],
        status="approved" if is_admin else "pending",
        fund_utilization_plan=req.plan_payload(),
        media_urls=req.media_urls or [default_image(req.category)],
    )
    log.info("[campaign] %s created by %s (%s)", campaign["id"], creator["id"], campaign["status"])
    if is_admin:
        message = "Campaign created successfully and automatically approved"
    else:
        message = "Campaign created successfully and pending approval"
    return {"message": message, "campaign": dump(CampaignOut, campaign)}


def list_public_campaigns(q: CampaignListQuery) -> Dict[str, Any]:
    status = "completed" if q.include_completed else q.status
    rows, total = list_campaigns(
        statuses=[status],
        page=q.page,
        limit=q.limit,
        category=q.category,
        search=q.search,
        needs_funding=q.needs_funding,
        sort=q.sort,
    )
    return {
        "campaigns": dump_many(CampaignOut, rows),
        "pagination": _pagination(q.page, q.limit, total),
    }


def get_campaign_for_viewer(campaign_id: str, viewer: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    campaign = get_campaign(campaign_id)
    if campaign is None:
        raise CampaignNotFound()
    if campaign["status"] not in PUBLIC_STATUSES:
        is_owner = viewer is not None and str(viewer["id"]) == str(campaign["creator_id"])
        if not is_owner:
            raise Forbidden(
                "Campaign not found or awaiting approval", status=campaign["status"]
            )
    campaign["comments"] = select_comments(campaign_id)
    return dump(CampaignOut, campaign)


def moderate(campaign_id: str, moderator_id: str, req: ModerationRequest) -> Dict[str, Any]:
    note = (req.note or "").strip() or None
    if req.status == "rejected" and len(note or "") < MIN_REJECTION_NOTE:
        raise ValidationFailed("A detailed note is required when rejecting a campaign")
    with transaction() as cur:
        campaign = lock_campaign(cur, campaign_id)
        if campaign is None:
            raise CampaignNotFound()
        if campaign["status"] != "pending":
            raise InvalidModerationState(status=campaign["status"])
        updated = set_moderation(
            cur, campaign_id, status=req.status, note=note, moderator_id=moderator_id
        )
    log.info("[moderation] %s %s by %s", campaign_id, req.status, moderator_id)
    return {
        "message": f"Campaign {req.status} successfully",
        "campaign": dump(CampaignOut, updated),
    }


# --- comments ---


def add_comment(campaign_id: str, user: Dict[str, Any], text: str) -> Dict[str, Any]:
    with transaction() as cur:
        if lock_campaign(cur, campaign_id) is None:
            raise CampaignNotFound()
        comment = insert_comment(cur, campaign_id=campaign_id, user_id=user["id"], text=text)
        attach_comment(cur, campaign_id, comment["id"])
    comment.update(
        author_name=user.get("name"),
        author_email=user.get("email"),
        author_avatar_url=user.get("avatar_url"),
    )
    return {"message": "Comment added successfully", "comment": dump(CommentOut, comment)}


def list_comments(campaign_id: str) -> List[Dict[str, Any]]:
    if get_campaign(campaign_id) is None:
        raise CampaignNotFound()
    return dump_many(CommentOut, select_comments(campaign_id))


def delete_comment(comment_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
    comment = get_comment(comment_id)
    if comment is None:
        raise CommentNotFound()
    if str(comment["user_id"]) != str(user["id"]):
        raise Forbidden("Not authorized to delete this comment")
    with transaction() as cur:
        if not remove_comment(cur, comment_id):
            raise CommentNotFound()
        detach_comment(cur, comment["campaign_id"], comment_id)
    return {"message": "Comment deleted successfully"}


# --- admin listings ---


def admin_list_campaigns(q: AdminCampaignQuery) -> Dict[str, Any]:
    rows, total = list_campaigns(
        statuses=[q.status] if q.status else None,
        page=q.page,
        limit=q.limit,
        search=q.search,
        search_description=True,
    )
    return {
        "campaigns": dump_many(CampaignOut, rows),
        "pagination": _pagination(q.page, q.limit, total),
    }


def pending_campaigns() -> List[Dict[str, Any]]:
    rows, _ = list_campaigns(statuses=["pending"], page=1, limit=100)
    return dump_many(CampaignOut, rows)


def recent_campaigns(limit: int = 5) -> List[Dict[str, Any]]:
    rows, _ = list_campaigns(page=1, limit=limit)
    return dump_many(CampaignOut, rows)
