from flask import Blueprint, jsonify, request

from crowdfund.schemas import (
    AdminCampaignQuery,
    CreateAdminRequest,
    ModerationRequest,
    RoleChangeRequest,
    from_args,
    from_json,
)
from crowdfund.services.campaign_service import (
    admin_list_campaigns,
    moderate,
    pending_campaigns,
    recent_campaigns,
)
from crowdfund.services.dashboard_service import admin_stats
from crowdfund.services.donation_service import reconcile_all_campaigns
from crowdfund.services.user_service import create_admin, list_users, set_user_role
from crowdfund.utils.authz import current_user, require_admin, require_capability
from crowdfund.utils.ids import check_id

admin_bp = Blueprint("admin", __name__)


@admin_bp.get("/users")
@require_admin
def users():
    return jsonify(list_users()), 200


# PATCH /api/admin/users/<id>/role  { role }
@admin_bp.patch("/users/<user_id>/role")
@require_admin
def change_role(user_id):
    req = from_json(RoleChangeRequest)
    resp = set_user_role(current_user()["id"], check_id(user_id, "user"), req.role)
    return jsonify(resp), 200


@admin_bp.post("/create-admin")
@require_admin
def new_admin():
    return jsonify(create_admin(from_json(CreateAdminRequest))), 201


@admin_bp.get("/campaigns")
@require_capability("campaign:moderate")
def all_campaigns():
    return jsonify(admin_list_campaigns(from_args(AdminCampaignQuery))), 200


@admin_bp.get("/campaigns/pending")
@require_capability("campaign:moderate")
def pending():
    return jsonify(pending_campaigns()), 200


@admin_bp.get("/campaigns/recent")
@require_capability("campaign:moderate")
def recent():
    limit = request.args.get("limit", 5, type=int)
    return jsonify(recent_campaigns(max(1, min(limit, 50)))), 200


# PATCH /api/admin/campaigns/<id>/moderate  { status: approved|rejected, note }
@admin_bp.patch("/campaigns/<campaign_id>/moderate")
@require_capability("campaign:moderate")
def moderate_route(campaign_id):
    req = from_json(ModerationRequest)
    resp = moderate(check_id(campaign_id, "campaign"), current_user()["id"], req)
    return jsonify(resp), 200


@admin_bp.post("/campaigns/recalculate")
@require_capability("campaign:moderate")
def recalculate():
    summary = reconcile_all_campaigns()
    return jsonify({"message": "All campaign amounts have been recalculated successfully", **summary}), 200


@admin_bp.get("/dashboard/stats")
@require_capability("stats:view")
def dashboard_stats():
    return jsonify(admin_stats()), 200
