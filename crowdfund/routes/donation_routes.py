from flask import Blueprint, jsonify

from crowdfund.schemas import LegacyDonationRequest, from_json
from crowdfund.services.donation_service import donate
from crowdfund.utils.authz import current_user, require_auth
from crowdfund.utils.ids import check_id

donations_bp = Blueprint("donations", __name__)


# Older clients post here; same rules as POST /api/campaigns/<id>/donate.
@donations_bp.post("/donate")
@require_auth
def donate_legacy():
    req = from_json(LegacyDonationRequest)
    resp = donate(check_id(req.campaign_id, "campaign"), current_user()["id"], req.amount)
    return jsonify(resp), 200
