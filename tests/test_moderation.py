import pytest

from crowdfund.schemas import ModerationRequest
from crowdfund.services.campaign_service import moderate
from crowdfund.utils.errors import InvalidModerationState, ValidationFailed


def test_approve_pending_campaign(db, make_campaign, admin):
    campaign = make_campaign(status="pending")

    resp = moderate(campaign["id"], admin["id"], ModerationRequest(status="approved"))

    assert resp["message"] == "Campaign approved successfully"
    row = db.campaigns[campaign["id"]]
    assert row["status"] == "approved"
    assert row["moderated_by"] == admin["id"]
    assert row["moderated_at"] is not None


def test_reject_requires_detailed_note(make_campaign, admin):
    campaign = make_campaign(status="pending")
    with pytest.raises(ValidationFailed):
        moderate(campaign["id"], admin["id"], ModerationRequest(status="rejected", note="  too short "))


def test_reject_with_note(db, make_campaign, admin):
    campaign = make_campaign(status="pending")
    note = "Missing proof of the medical bills"
    moderate(campaign["id"], admin["id"], ModerationRequest(status="rejected", note=note))
    assert db.campaigns[campaign["id"]]["status"] == "rejected"
    assert db.campaigns[campaign["id"]]["moderation_note"] == note


@pytest.mark.parametrize("status", ["approved", "rejected", "completed"])
def test_only_pending_campaigns_can_be_moderated(db, make_campaign, admin, status):
    campaign = make_campaign(status=status)
    with pytest.raises(InvalidModerationState):
        moderate(campaign["id"], admin["id"], ModerationRequest(status="approved"))
    assert db.campaigns[campaign["id"]]["status"] == status


def test_moderate_route_admin_only(client, make_campaign, donor, auth_headers):
    campaign = make_campaign(status="pending")
    resp = client.patch(
        f"/api/admin/campaigns/{campaign['id']}/moderate",
        json={"status": "approved"},
        headers=auth_headers(donor),
    )
    assert resp.status_code == 403


def test_moderate_route_rejects_unknown_decision(client, make_campaign, admin, auth_headers):
    campaign = make_campaign(status="pending")
    resp = client.patch(
        f"/api/admin/campaigns/{campaign['id']}/moderate",
        json={"status": "completed"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 400
    assert resp.get_json()["errors"]


def test_moderate_route_non_pending(client, make_campaign, admin, auth_headers):
    campaign = make_campaign(status="approved")
    resp = client.patch(
        f"/api/admin/campaigns/{campaign['id']}/moderate",
        json={"status": "rejected", "note": "Duplicate of another campaign"},
        headers=auth_headers(admin),
    )
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Can only moderate pending campaigns"


def test_demoted_admin_loses_moderation_immediately(
    client, db, make_campaign, admin, make_user, auth_headers
):
    other_admin = make_user(email="second@example.com", role="admin")
    headers = auth_headers(other_admin)
    db.users[other_admin["id"]]["role"] = "user"

    campaign = make_campaign(status="pending")
    resp = client.patch(
        f"/api/admin/campaigns/{campaign['id']}/moderate",
        json={"status": "approved"},
        headers=headers,
    )
    assert resp.status_code == 403
    assert db.campaigns[campaign["id"]]["status"] == "pending"


def test_recalculate_route(client, db, make_campaign, donor, admin, auth_headers):
    campaign = make_campaign(goal=10, raised=0)
    db.insert_donation(None, campaign_id=campaign["id"], user_id=donor["id"], amount=10)

    resp = client.post("/api/admin/campaigns/recalculate", headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.get_json()["updated"] == 1
    assert db.campaigns[campaign["id"]]["status"] == "completed"
