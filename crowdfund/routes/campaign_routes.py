from flask import Blueprint, jsonify

from crowdfund.schemas import (
    CampaignCreateRequest,
    CampaignListQuery,
    CommentRequest,
    DonationRequest,
    from_args,
    from_json,
)
from crowdfund.services.campaign_service import (
    add_comment,
    create_campaign,
    delete_comment,
    get_campaign_for_viewer,
    list_comments,
    list_public_campaigns,
)
from crowdfund.services.donation_service import donate
from crowdfund.utils.authz import current_user, optional_auth, require_auth
from crowdfund.utils.ids import check_id

campaigns = Blueprint("campaigns", __name__)


# GET /api/campaigns?page=&limit=&category=&search=&status=&needsFunding=&sort=
@campaigns.get("/")
def list_public():
    return jsonify(list_public_campaigns(from_args(CampaignListQuery))), 200


# POST /api/campaigns/create  { title, description, goalAmount, deadline, category, fundUtilizationPlan, mediaUrls? }
@campaigns.post("/create")
@require_auth
def create():
    req = from_json(CampaignCreateRequest)
    return jsonify(create_campaign(current_user(), req)), 201


@campaigns.get("/<campaign_id>")
@optional_auth
def detail(campaign_id):
    campaign = get_campaign_for_viewer(check_id(campaign_id, "campaign"), current_user())
    return jsonify(campaign), 200


# POST /api/campaigns/<id>/donate  { amount }
@campaigns.post("/<campaign_id>/donate")
@require_auth
def donate_route(campaign_id):
    req = from_json(DonationRequest)
    resp = donate(check_id(campaign_id, "campaign"), current_user()["id"], req.amount)
    return jsonify(resp), 200


@campaigns.get("/<campaign_id>/comments")
def comments(campaign_id):
    return jsonify(list_comments(check_id(campaign_id, "campaign"))), 200


@campaigns.post("/<campaign_id>/comments")
@require_auth
def post_comment(campaign_id):
    req = from_json(CommentRequest)
    resp = add_comment(check_id(campaign_id, "campaign"), current_user(), req.text)
    return jsonify(resp), 201


@campaigns.delete("/comments/<comment_id>")
@require_auth
def remove_comment_route(comment_id):
    return jsonify(delete_comment(check_id(comment_id, "comment"), current_user())), 200
