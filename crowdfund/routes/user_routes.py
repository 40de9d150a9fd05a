from flask import Blueprint, jsonify

from crowdfund.schemas import ProfileUpdateRequest, from_json
from crowdfund.services.user_service import get_profile, update_profile
from crowdfund.utils.authz import current_user, require_auth

user = Blueprint("user", __name__)


@user.get("/profile")
@require_auth
def profile():
    return jsonify(get_profile(current_user())), 200


@user.put("/profile")
@require_auth
def edit_profile():
    return jsonify(update_profile(current_user(), from_json(ProfileUpdateRequest))), 200
