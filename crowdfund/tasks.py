"""
Background email jobs for RQ (Redis Queue).

Run worker: rq worker -u $REDIS_URL default
Set USE_EMAIL_QUEUE=1 to enqueue; otherwise mail is sent inline.
"""

from __future__ import annotations
import html
import logging
import os
from typing import Any, Dict, Optional

from redis import Redis
from rq import Queue

from crowdfund.utils.email_sender import send_email
from crowdfund.utils.otp_store import REDIS_URL, OTP_TTL_SECONDS

log = logging.getLogger(__name__)


def deliver_email(
    to_email: str, subject: str, body_text: str, body_html: Optional[str] = None
) -> None:
    provider, detail = send_email(
        to_email=to_email, subject=subject, body_text=body_text, body_html=body_html
    )
    if provider is None:
        log.warning("[email] delivery to %s failed: %s", to_email, detail)


def enqueue_email(
    to_email: str, subject: str, body_text: str, body_html: Optional[str] = None
) -> bool:
    """
    Enqueue deliver_email for background processing.
    Returns True if enqueued, False if run synchronously (no queue).
    """
    if os.getenv("USE_EMAIL_QUEUE", "0") != "1":
        deliver_email(to_email, subject, body_text, body_html)
        return False

    try:
        conn = Redis.from_url(REDIS_URL, decode_responses=False)
        q = Queue("default", connection=conn)
        q.enqueue(
            deliver_email, to_email, subject, body_text, body_html, job_timeout="2m"
        )
        return True
    except Exception as e:
        log.warning("[email] RQ enqueue failed (%s), sending inline", e)
        deliver_email(to_email, subject, body_text, body_html)
        return False


def send_password_reset_otp(email: str, otp: str) -> bool:
    minutes = max(1, OTP_TTL_SECONDS // 60)
    subject = "Password Reset OTP - Crowdfund"
    text = (
        f"Your OTP for password reset is: {otp}\n\n"
        f"This OTP will expire in {minutes} minutes.\n"
        "If you didn't request this, please ignore this email.\n"
    )
    body_html = (
        "<h1>Password Reset Request</h1>"
        f"<p>Your OTP for password reset is: <strong>{otp}</strong></p>"
        f"<p>This OTP will expire in {minutes} minutes.</p>"
        "<p>If you didn't request this, please ignore this email.</p>"
    )
    return enqueue_email(email, subject, text, body_html)


def send_contact_confirmation(contact: Dict[str, Any]) -> bool:
    name = contact["name"]
    subject = contact["subject"]
    reference_id = str(contact["id"])
    text = (
        f"Hello {name}!\n\n"
        "Thank you for contacting us. We have received your message regarding:\n"
        f"{subject}\n\n"
        f"Your reference ID is: {reference_id}\n"
        "We will respond to your message as soon as possible.\n"
    )
    body_html = (
        f"<h1>Hello {html.escape(name)}!</h1>"
        "<p>Thank you for contacting us. We have received your message regarding:</p>"
        f"<p><strong>{html.escape(subject)}</strong></p>"
        f"<p>Your reference ID is: <strong>{reference_id}</strong></p>"
        "<p>We will respond to your message as soon as possible.</p>"
    )
    return enqueue_email(
        contact["email"], "Contact Form Submission Received", text, body_html
    )
