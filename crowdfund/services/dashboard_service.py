from typing import Any, Dict

from crowdfund.models.campaign import campaign_counts, get_campaign, list_campaigns_by_creator
from crowdfund.models.contact import contact_counts
from crowdfund.models.donation import (
    campaign_donation_stats,
    donation_totals,
    list_donations_for_user,
    recent_for_campaign,
)
from crowdfund.models.user import user_counts
from crowdfund.schemas import CampaignOut, DonationOut, dump, dump_many
from crowdfund.utils.errors import CampaignNotFound, Forbidden


def user_dashboard(user: Dict[str, Any]) -> Dict[str, Any]:
    campaigns = list_campaigns_by_creator(user["id"])
    donations = list_donations_for_user(user["id"])
    return {
        "campaigns": dump_many(CampaignOut, campaigns),
        "donations": dump_many(DonationOut, donations),
        "totalDonations": round(sum(d["amount"] for d in donations), 2),
        "totalRaised": round(sum(c["raised_amount"] for c in campaigns), 2),
    }


def donation_history(user: Dict[str, Any]) -> Dict[str, Any]:
    donations = list_donations_for_user(user["id"])
    return {"donations": dump_many(DonationOut, donations), "count": len(donations)}


def campaign_stats(campaign_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
    campaign = get_campaign(campaign_id)
    if campaign is None:
        raise CampaignNotFound()
    if str(campaign["creator_id"]) != str(user["id"]):
        raise Forbidden("Not authorized to view these statistics")
    summary = dump(CampaignOut, campaign)
    return {
        "campaign": summary,
        "donations": campaign_donation_stats(campaign_id),
        "recentDonations": dump_many(DonationOut, recent_for_campaign(campaign_id, 5)),
        "progress": summary["progress"],
    }


def admin_stats() -> Dict[str, Any]:
    contacts = contact_counts()
    return {
        "users": user_counts(),
        "campaigns": campaign_counts(),
        "donations": donation_totals(),
        "contacts": {
            "total": contacts["total"],
            "unresolved": contacts["total"] - contacts["resolved"],
        },
    }
