"""
Outbound email through SendGrid or Amazon SES.

Configure via env:
- EMAIL_PROVIDER: "sendgrid" | "ses" | "log" (default: sendgrid if
  SENDGRID_API_KEY is set, ses if AWS credentials/region are set, else log)
- SENDGRID_API_KEY for SendGrid; AWS_REGION (+ standard AWS creds) for SES
- FROM_EMAIL, FROM_NAME: sender identity

The "log" provider only writes the message summary to the console, which is
what local development and the test suite use.
"""

from __future__ import annotations
import logging
import os
from typing import Optional, Tuple

import boto3
from botocore.exceptions import ClientError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

log = logging.getLogger(__name__)

DEFAULT_FROM_EMAIL = os.getenv("FROM_EMAIL", "no-reply@crowdfund.local")
DEFAULT_FROM_NAME = os.getenv("FROM_NAME", "Crowdfund")


def _resolve_provider() -> str:
    provider = os.getenv("EMAIL_PROVIDER", "").strip().lower()
    if provider:
        return provider
    if os.getenv("SENDGRID_API_KEY"):
        return "sendgrid"
    if os.getenv("AWS_REGION") or os.getenv("AWS_ACCESS_KEY_ID"):
        return "ses"
    return "log"


def send_email(
    *,
    to_email: str,
    subject: str,
    body_text: str,
    body_html: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Returns (provider, provider_message_id) on success or (None, error) on
    failure. Never raises; callers decide whether a failure matters.
    """
    provider = _resolve_provider()
    if provider == "log":
        log.info("[email] (log only) to=%s subject=%r", to_email, subject)
        return "log", None
    if provider == "sendgrid":
        return _send_via_sendgrid(to_email, subject, body_text, body_html)
    if provider == "ses":
        return _send_via_ses(to_email, subject, body_text, body_html)
    return None, f"Unknown EMAIL_PROVIDER: {provider}"


def _send_via_sendgrid(
    to_email: str, subject: str, body_text: str, body_html: Optional[str]
) -> Tuple[Optional[str], Optional[str]]:
    try:
        api_key = os.getenv("SENDGRID_API_KEY", "").strip()
        if not api_key:
            return None, "SENDGRID_API_KEY not set"

        message = Mail(
            from_email=Email(DEFAULT_FROM_EMAIL, DEFAULT_FROM_NAME),
            to_emails=To(to_email),
            subject=subject,
            plain_text_content=Content("text/plain", body_text),
            html_content=Content("text/html", body_html or f"<pre>{body_text}</pre>"),
        )
        response = SendGridAPIClient(api_key).send(message)
        msg_id = None
        if response.headers:
            msg_id = response.headers.get("X-Message-Id")
        return "sendgrid", msg_id or str(response.status_code)
    except Exception as e:
        log.warning("[email] sendgrid send failed: %s", e)
        return None, str(e)


def _send_via_ses(
    to_email: str, subject: str, body_text: str, body_html: Optional[str]
) -> Tuple[Optional[str], Optional[str]]:
    try:
        client = boto3.client("ses", region_name=os.getenv("AWS_REGION", "us-east-1"))
        body = {"Text": {"Data": body_text, "Charset": "UTF-8"}}
        if body_html:
            body["Html"] = {"Data": body_html, "Charset": "UTF-8"}
        response = client.send_email(
            Source=f"{DEFAULT_FROM_NAME} <{DEFAULT_FROM_EMAIL}>",
            Destination={"ToAddresses": [to_email]},
            Message={"Subject": {"Data": subject, "Charset": "UTF-8"}, "Body": body},
        )
        return "ses", response.get("MessageId") or "unknown"
    except ClientError as e:
        msg = e.response.get("Error", {}).get("Message", str(e))
        log.warning("[email] ses send failed: %s", msg)
        return None, msg
    except Exception as e:
        log.warning("[email] ses send failed: %s", e)
        return None, str(e)
