from datetime import datetime, timedelta, timezone

import pytest
from flask_jwt_extended import create_access_token

from crowdfund.services.campaign_service import CATEGORY_IMAGES, default_image


def _payload(**overrides):
    payload = {
        "title": "School roof",
        "description": "Fix the roof before the rains",
        "goalAmount": 2500,
        "deadline": (datetime.now(timezone.utc) + timedelta(days=20)).isoformat(),
        "category": "Education",
        "fundUtilizationPlan": {"title": "Roof", "timeline": "2 months", "budget": 2500},
    }
    payload.update(overrides)
    return payload


def test_user_campaign_starts_pending(client, creator, auth_headers):
    resp = client.post("/api/campaigns/create", json=_payload(), headers=auth_headers(creator))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["message"] == "Campaign created successfully and pending approval"
    campaign = body["campaign"]
    assert campaign["status"] == "pending"
    assert campaign["category"] == "education"
    assert campaign["raisedAmount"] == 0
    assert campaign["progress"] == 0
    assert campaign["fundUtilizationPlan"]["timeline"] == "2 months"
    assert len(campaign["mediaUrls"]) == 1


def test_admin_campaign_is_auto_approved(client, admin, auth_headers):
    resp = client.post(
        "/api/campaigns/create",
        json=_payload(fundUtilizationPlan="Buy tiles", mediaUrls=["https://img.example/roof.jpg"]),
        headers=auth_headers(admin),
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["campaign"]["status"] == "approved"
    assert body["campaign"]["mediaUrls"] == ["https://img.example/roof.jpg"]
    assert "automatically approved" in body["message"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"goalAmount": 0},
        {"goalAmount": -10},
        {"goalAmount": 1e15},
        {"deadline": "2001-01-01T00:00:00Z"},
        {"deadline": "next week"},
        {"category": "sports"},
        {"title": "   "},
    ],
)
def test_create_validation(client, creator, auth_headers, overrides):
    resp = client.post("/api/campaigns/create", json=_payload(**overrides), headers=auth_headers(creator))
    assert resp.status_code == 400
    assert resp.get_json()["errors"]


def test_default_image_matches_category():
    url = default_image("medical")
    assert any(photo in url for photo in CATEGORY_IMAGES["medical"])
    assert any(photo in default_image("unknown") for photo in CATEGORY_IMAGES["other"])


def test_public_list_only_shows_approved(client, make_campaign):
    make_campaign(status="approved", title="Open")
    make_campaign(status="pending", title="Waiting")
    make_campaign(status="completed", title="Done")

    body = client.get("/api/campaigns").get_json()
    assert [c["title"] for c in body["campaigns"]] == ["Open"]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}

    done = client.get("/api/campaigns?includeCompleted=true").get_json()
    assert [c["title"] for c in done["campaigns"]] == ["Done"]


def test_public_list_filters_and_paging(client, make_campaign):
    make_campaign(title="Water pump", category="environment", goal=100, raised=100)
    make_campaign(title="Water tank", category="environment", goal=100, raised=10)
    make_campaign(title="Laptops", category="technology")

    body = client.get("/api/campaigns?category=environment&needsFunding=true").get_json()
    assert [c["title"] for c in body["campaigns"]] == ["Water tank"]

    body = client.get("/api/campaigns?search=WATER&limit=1&page=2").get_json()
    assert body["pagination"] == {"page": 2, "limit": 1, "total": 2, "pages": 2}
    assert len(body["campaigns"]) == 1

    assert client.get("/api/campaigns?limit=0").status_code == 400
    assert client.get("/api/campaigns?category=all").status_code == 200


def test_urgency_sort(client, make_campaign):
    make_campaign(title="Almost", goal=100, raised=90)
    make_campaign(title="Barely", goal=100, raised=5)
    make_campaign(title="Half", goal=100, raised=50)
    body = client.get("/api/campaigns?sort=urgency").get_json()
    assert [c["title"] for c in body["campaigns"]] == ["Barely", "Half", "Almost"]


def test_detail_visibility(client, make_campaign, creator, donor, auth_headers):
    pending = make_campaign(status="pending")

    resp = client.get(f"/api/campaigns/{pending['id']}")
    assert resp.status_code == 403
    assert resp.get_json() == {"message": "Campaign not found or awaiting approval", "status": "pending"}

    assert client.get(f"/api/campaigns/{pending['id']}", headers=auth_headers(donor)).status_code == 403
    owner_view = client.get(f"/api/campaigns/{pending['id']}", headers=auth_headers(creator))
    assert owner_view.status_code == 200
    assert owner_view.get_json()["creator"]["name"] == "Creator"


def test_public_detail_ignores_expired_token(client, make_campaign, donor):
    campaign = make_campaign()
    expired = create_access_token(identity=str(donor["id"]), expires_delta=timedelta(seconds=-30))
    resp = client.get(f"/api/campaigns/{campaign['id']}", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 200


def test_detail_not_found_and_bad_id(client, db):
    assert client.get("/api/campaigns/00000000-0000-0000-0000-000000000000").status_code == 404
    resp = client.get("/api/campaigns/123")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invalid campaign ID format"


def test_comment_lifecycle(client, db, make_campaign, donor, creator, auth_headers):
    campaign = make_campaign()

    resp = client.post(
        f"/api/campaigns/{campaign['id']}/comments", json={"text": "  Go team  "}, headers=auth_headers(donor)
    )
    assert resp.status_code == 201
    comment = resp.get_json()["comment"]
    assert comment["text"] == "Go team"
    assert comment["authorName"] == "Donor"
    assert db.campaigns[campaign["id"]]["comment_ids"] == [comment["id"]]

    listed = client.get(f"/api/campaigns/{campaign['id']}/comments").get_json()
    assert [c["id"] for c in listed] == [comment["id"]]
    detail = client.get(f"/api/campaigns/{campaign['id']}").get_json()
    assert detail["commentIds"] == [comment["id"]]
    assert detail["comments"][0]["text"] == "Go team"

    forbidden = client.delete(f"/api/campaigns/comments/{comment['id']}", headers=auth_headers(creator))
    assert forbidden.status_code == 403

    resp = client.delete(f"/api/campaigns/comments/{comment['id']}", headers=auth_headers(donor))
    assert resp.status_code == 200
    assert db.comments == {}
    assert db.campaigns[campaign["id"]]["comment_ids"] == []

    gone = client.delete(f"/api/campaigns/comments/{comment['id']}", headers=auth_headers(donor))
    assert gone.status_code == 404


def test_comment_needs_text_and_campaign(client, make_campaign, donor, auth_headers):
    campaign = make_campaign()
    resp = client.post(f"/api/campaigns/{campaign['id']}/comments", json={"text": " "}, headers=auth_headers(donor))
    assert resp.status_code == 400
    missing = client.post(
        "/api/campaigns/00000000-0000-0000-0000-000000000000/comments",
        json={"text": "hi"},
        headers=auth_headers(donor),
    )
    assert missing.status_code == 404


def test_admin_campaign_listings(client, make_campaign, admin, auth_headers):
    make_campaign(status="pending", title="Needs review")
    make_campaign(status="approved", title="Live", description="community garden")
    headers = auth_headers(admin)

    pending = client.get("/api/admin/campaigns/pending", headers=headers).get_json()
    assert [c["title"] for c in pending] == ["Needs review"]

    found = client.get("/api/admin/campaigns?search=garden", headers=headers).get_json()
    assert [c["title"] for c in found["campaigns"]] == ["Live"]
    assert found["campaigns"][0]["donationCount"] == 0

    recent = client.get("/api/admin/campaigns/recent", headers=headers).get_json()
    assert [c["title"] for c in recent] == ["Live", "Needs review"]
