"""
Contact messages and their triage workflow.

    unread -> in-progress -> resolved
    unread -----------------> resolved

Resolved is terminal. Re-applying the current status is allowed so an admin
can add or amend a response without moving the message.
"""

import logging
import math
from typing import Any, Dict, Optional

from crowdfund.models.contact import (
    contact_counts,
    create_contact,
    get_contact,
    list_contacts,
    list_contacts_for_user,
    lock_contact,
    update_contact,
)
from crowdfund.schemas import (
    ContactListQuery,
    ContactOut,
    ContactRequest,
    ContactUpdateRequest,
    PageQuery,
    dump,
    dump_many,
)
from crowdfund.tasks import send_contact_confirmation
from crowdfund.utils.db import transaction
from crowdfund.utils.errors import (
    ContactNotFound,
    InvalidContactTransition,
    ValidationFailed,
)

log = logging.getLogger(__name__)

TRANSITIONS = {
    "unread": {"unread", "in-progress", "resolved"},
    "in-progress": {"in-progress", "resolved"},
    "resolved": {"resolved"},
}
USER_VIEW_ORDER = {"in-progress": 0, "unread": 1, "resolved": 2}


def submit(req: ContactRequest, user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    contact = create_contact(
        name=req.name,
        email=req.email,
        subject=req.subject,
        message=req.message,
        user_id=user["id"] if user else None,
    )
    log.info("[contact] %s received (user=%s)", contact["id"], contact["user_id"])
    try:
        send_contact_confirmation(contact)
    except Exception:
        # mail trouble must not lose the submission
        log.exception("[email] contact confirmation for %s failed", contact["id"])
    return {
        "message": "Message sent successfully",
        "referenceId": str(contact["id"]),
        "contact": dump(ContactOut, contact),
    }


def update_status(contact_id: str, admin_id: str, req: ContactUpdateRequest) -> Dict[str, Any]:
    response = (req.admin_response or "").strip() or None
    if req.status is None and response is None:
        raise ValidationFailed("Nothing to update: provide status or adminResponse")

    with transaction() as cur:
        contact = lock_contact(cur, contact_id)
        if contact is None:
            raise ContactNotFound()
        current = contact["status"]
        target = req.status or current
        if target not in TRANSITIONS[current]:
            raise InvalidContactTransition(
                f"Cannot move a message from {current} to {target}", status=current
            )
        if target == "resolved" and not (response or contact.get("admin_response")):
            raise ValidationFailed("A response is required to resolve a message")
        if response is not None:
            update_contact(
                cur, contact_id, status=target, admin_response=response, responded_by=admin_id
            )
        else:
            update_contact(cur, contact_id, status=target)

    log.info("[contact] %s %s -> %s by %s", contact_id, current, target, admin_id)
    return {
        "message": "Contact updated successfully",
        "contact": dump(ContactOut, get_contact(contact_id)),
    }


def list_user_messages(user: Dict[str, Any], q: PageQuery) -> Dict[str, Any]:
    rows = list_contacts_for_user(user["id"])
    # newest first from the query; stable sort keeps that within each status
    rows = sorted(rows, key=lambda r: USER_VIEW_ORDER.get(r["status"], 3))
    total = len(rows)
    start = (q.page - 1) * q.limit
    return {
        "messages": dump_many(ContactOut, rows[start:start + q.limit]),
        "total": total,
        "page": q.page,
        "totalPages": math.ceil(total / q.limit) if total else 0,
        "hasUnread": any(r["status"] == "unread" for r in rows),
        "hasInProgress": any(r["status"] == "in-progress" for r in rows),
    }


def admin_list(q: ContactListQuery) -> Dict[str, Any]:
    rows, total = list_contacts(page=q.page, limit=q.limit, status=q.status)
    return {
        "contacts": dump_many(ContactOut, rows),
        "pagination": {
            "page": q.page,
            "limit": q.limit,
            "total": total,
            "pages": math.ceil(total / q.limit) if total else 0,
        },
    }


def admin_get(contact_id: str) -> Dict[str, Any]:
    contact = get_contact(contact_id)
    if contact is None:
        raise ContactNotFound()
    return dump(ContactOut, contact)


def stats() -> Dict[str, int]:
    return contact_counts()
