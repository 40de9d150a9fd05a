from flask import Blueprint, jsonify

from crowdfund.services.dashboard_service import (
    campaign_stats,
    donation_history,
    user_dashboard,
)
from crowdfund.utils.authz import current_user, require_auth
from crowdfund.utils.ids import check_id

dashboard = Blueprint("dashboard", __name__)


@dashboard.get("/user")
@require_auth
def overview():
    return jsonify(user_dashboard(current_user())), 200


@dashboard.get("/donations")
@require_auth
def donations():
    return jsonify(donation_history(current_user())), 200


@dashboard.get("/campaigns/<campaign_id>/stats")
@require_auth
def stats(campaign_id):
    return jsonify(campaign_stats(check_id(campaign_id, "campaign"), current_user())), 200
