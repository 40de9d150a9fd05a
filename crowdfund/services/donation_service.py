"""
Donations and fund aggregation.

The donations table is the ledger. A campaign's raised_amount is a cached
copy of SUM(donations.amount) and is only ever written from that sum, inside
the same transaction that holds the campaign row lock.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict

from crowdfund.models.campaign import lock_campaign, list_campaign_ids, set_funding
from crowdfund.models.donation import insert_donation, sum_for_campaign
from crowdfund.schemas import MAX_AMOUNT, CampaignOut, DonationOut, dump
from crowdfund.utils.db import transaction
from crowdfund.utils.errors import (
    CampaignNotAcceptingDonations,
    CampaignNotFound,
    InvalidAmount,
    SelfDonationForbidden,
)

log = logging.getLogger(__name__)


def parse_amount(raw: Any) -> float:
    """Accept numbers or numeric strings; reject anything not > 0 in cents."""
    if isinstance(raw, bool) or raw is None:
        raise InvalidAmount()
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidAmount()
    if not math.isfinite(value):
        raise InvalidAmount()
    value = round(value, 2)
    if value <= 0:
        raise InvalidAmount("Donation amount must be greater than 0")
    if value > MAX_AMOUNT:
        raise InvalidAmount("Donation amount is too large")
    return value


def _status_after(campaign: Dict[str, Any], raised: float) -> str:
    # approved -> completed is one-way; nothing else moves here
    if campaign["status"] == "approved" and raised >= campaign["goal_amount"]:
        return "completed"
    return campaign["status"]


def _expired(deadline: datetime) -> bool:
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    return deadline < datetime.now(timezone.utc)


def donate(campaign_id: str, user_id: str, amount: Any) -> Dict[str, Any]:
    value = parse_amount(amount)
    with transaction() as cur:
        campaign = lock_campaign(cur, campaign_id)
        if campaign is None:
            raise CampaignNotFound()
        if campaign["status"] != "approved":
            raise CampaignNotAcceptingDonations(status=campaign["status"])
        if _expired(campaign["deadline"]):
            raise CampaignNotAcceptingDonations(
                "Campaign has expired", status=campaign["status"]
            )
        if str(campaign["creator_id"]) == str(user_id):
            raise SelfDonationForbidden()
        if campaign["raised_amount"] + value > MAX_AMOUNT:
            raise InvalidAmount("Donation would exceed the maximum campaign total")

        donation = insert_donation(
            cur, campaign_id=campaign_id, user_id=user_id, amount=value
        )
        raised = sum_for_campaign(cur, campaign_id)
        updated = set_funding(cur, campaign_id, raised, _status_after(campaign, raised))

    log.info(
        "[donation] %s gave %.2f to %s (raised %.2f, %s)",
        user_id,
        value,
        campaign_id,
        raised,
        updated["status"],
    )
    return {
        "message": "Donation successful",
        "donation": dump(DonationOut, donation),
        "campaign": dump(CampaignOut, updated),
    }


def reconcile_campaign(campaign_id: str) -> bool:
    """Rewrite one campaign's total from the ledger. True if anything changed."""
    with transaction() as cur:
        campaign = lock_campaign(cur, campaign_id)
        if campaign is None:
            return False
        raised = sum_for_campaign(cur, campaign_id)
        status = _status_after(campaign, raised)
        if raised == campaign["raised_amount"] and status == campaign["status"]:
            return False
        set_funding(cur, campaign_id, raised, status)
    log.info("[donation] reconciled %s: raised=%.2f status=%s", campaign_id, raised, status)
    return True


def reconcile_all_campaigns() -> Dict[str, int]:
    ids = list_campaign_ids()
    updated = sum(1 for cid in ids if reconcile_campaign(cid))
    log.info("[donation] reconciliation done: %d campaigns, %d updated", len(ids), updated)
    return {"campaigns": len(ids), "updated": updated}
