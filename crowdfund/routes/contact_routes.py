"""
Contact form API. Anyone may submit (rate limited per source address);
signed-in senders get the message linked to their account. Admins triage.
"""

from flask import Blueprint, jsonify

from crowdfund.schemas import (
    ContactListQuery,
    ContactRequest,
    ContactUpdateRequest,
    PageQuery,
    from_args,
    from_json,
)
from crowdfund.services.contact_service import (
    admin_get,
    admin_list,
    list_user_messages,
    stats,
    submit,
    update_status,
)
from crowdfund.utils.authz import current_user, optional_auth, require_auth, require_capability
from crowdfund.utils.ids import check_id
from crowdfund.utils.rate_limit import rate_limit_decorator

contact_bp = Blueprint("contact", __name__)

CONTACT_WINDOW = 3600  # 1 hour in seconds


@contact_bp.post("/")
@rate_limit_decorator(
    "CONTACT_RATE_LIMIT_PER_HOUR",
    5,
    window_seconds=CONTACT_WINDOW,
    key_prefix="contact",
    message="Too many contact submissions. Please try again later.",
)
@optional_auth
def submit_contact():
    return jsonify(submit(from_json(ContactRequest), current_user())), 201


@contact_bp.get("/user/messages")
@require_auth
def my_messages():
    return jsonify(list_user_messages(current_user(), from_args(PageQuery))), 200


@contact_bp.get("/admin")
@require_capability("contact:triage")
def inbox():
    return jsonify(admin_list(from_args(ContactListQuery))), 200


@contact_bp.get("/admin/stats")
@require_capability("contact:triage")
def inbox_stats():
    return jsonify(stats()), 200


@contact_bp.get("/admin/<contact_id>")
@require_capability("contact:triage")
def show(contact_id):
    return jsonify(admin_get(check_id(contact_id, "contact"))), 200


# PUT /api/contact/admin/<id>  { status?, adminResponse? }
@contact_bp.put("/admin/<contact_id>")
@require_capability("contact:triage")
def triage(contact_id):
    req = from_json(ContactUpdateRequest)
    resp = update_status(check_id(contact_id, "contact"), current_user()["id"], req)
    return jsonify(resp), 200
