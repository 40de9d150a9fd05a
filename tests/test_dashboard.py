def test_user_dashboard_totals(client, db, make_campaign, creator, donor, auth_headers):
    mine = make_campaign(goal=500)
    other = make_campaign(goal=500, owner=donor)
    db.insert_donation(None, campaign_id=mine["id"], user_id=donor["id"], amount=20)
    db.campaigns[mine["id"]]["raised_amount"] = 20
    db.insert_donation(None, campaign_id=other["id"], user_id=creator["id"], amount=7.5)

    body = client.get("/api/dashboard/user", headers=auth_headers(creator)).get_json()
    assert [c["id"] for c in body["campaigns"]] == [mine["id"]]
    assert body["totalRaised"] == 20
    assert body["totalDonations"] == 7.5
    assert body["donations"][0]["campaignTitle"] == "Clean water"


def test_donation_history_newest_first(client, db, make_campaign, donor, auth_headers):
    campaign = make_campaign(goal=500)
    for amount in (1, 2, 3):
        db.insert_donation(None, campaign_id=campaign["id"], user_id=donor["id"], amount=amount)

    body = client.get("/api/dashboard/donations", headers=auth_headers(donor)).get_json()
    assert [d["amount"] for d in body["donations"]] == [3, 2, 1]
    assert body["count"] == 3


def test_campaign_stats_owner_only(client, db, make_campaign, creator, donor, auth_headers):
    campaign = make_campaign(goal=200, raised=50)
    for amount in (10, 40):
        db.insert_donation(None, campaign_id=campaign["id"], user_id=donor["id"], amount=amount)
    url = f"/api/dashboard/campaigns/{campaign['id']}/stats"

    assert client.get(url, headers=auth_headers(donor)).status_code == 403

    body = client.get(url, headers=auth_headers(creator)).get_json()
    assert body["donations"] == {"count": 2, "amount": 50, "average": 25}
    assert body["progress"] == 25
    assert body["recentDonations"][0]["donorName"] == "Donor"


def test_admin_stats(client, db, make_campaign, admin, donor, auth_headers):
    make_campaign(status="pending")
    live = make_campaign()
    db.insert_donation(None, campaign_id=live["id"], user_id=donor["id"], amount=12)
    db.create_contact(name="n", email="e@example.com", subject="s", message="m", user_id=None)

    assert client.get("/api/admin/dashboard/stats", headers=auth_headers(donor)).status_code == 403
    body = client.get("/api/admin/dashboard/stats", headers=auth_headers(admin)).get_json()
    assert body["users"] == {"total": 3, "admins": 1}
    assert body["campaigns"]["pending"] == 1
    assert body["campaigns"]["total"] == 2
    assert body["donations"] == {"count": 1, "amount": 12}
    assert body["contacts"] == {"total": 1, "unresolved": 1}


def test_profile_read_and_update(client, db, donor, auth_headers):
    headers = auth_headers(donor)
    assert client.get("/api/users/profile", headers=headers).get_json()["email"] == "donor@example.com"

    resp = client.put(
        "/api/users/profile", json={"name": "Dana", "avatarUrl": "https://img.example/a.png"}, headers=headers
    )
    assert resp.status_code == 200
    assert resp.get_json()["user"]["name"] == "Dana"
    assert db.users[donor["id"]]["avatar_url"] == "https://img.example/a.png"


def test_profile_password_change_needs_current(client, donor, make_user, auth_headers):
    make_user(email="taken@example.com")
    headers = auth_headers(donor)

    wrong = client.put(
        "/api/users/profile", json={"currentPassword": "nope-nope", "newPassword": "another-pass"}, headers=headers
    )
    assert wrong.status_code == 401

    taken = client.put("/api/users/profile", json={"email": "taken@example.com"}, headers=headers)
    assert taken.status_code == 400

    ok = client.put(
        "/api/users/profile", json={"currentPassword": "password123", "newPassword": "another-pass"}, headers=headers
    )
    assert ok.status_code == 200
    login = client.post("/api/auth/login", json={"email": "donor@example.com", "password": "another-pass"})
    assert login.status_code == 200
