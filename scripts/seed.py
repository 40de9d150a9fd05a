#!/usr/bin/env python3
"""
Seed database with demo data.

Usage: python scripts/seed.py [--force]
Requires: migrations applied (alembic upgrade head)

Creates an admin, a campaign creator and a donor (password demo123456 for
all three), one approved and one pending campaign, and a few donations.
"""
import os
import sys
from datetime import datetime, timedelta, timezone

# Ensure crowdfund is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from crowdfund.models.campaign import insert_campaign
from crowdfund.models.user import create_user, get_user_by_email
from crowdfund.services.auth_service import hash_password
from crowdfund.services.campaign_service import default_image
from crowdfund.services.donation_service import donate
from crowdfund.utils.db import transaction

DEMO_PASSWORD = "demo123456"
DEMO_USERS = [
    ("admin@example.com", "Demo Admin", "admin"),
    ("creator@example.com", "Demo Creator", "user"),
    ("donor@example.com", "Demo Donor", "user"),
]


def seed():
    if get_user_by_email("creator@example.com"):
        print("Already seeded (creator@example.com exists). Use --force to re-seed.")
        return

    pw_hash = hash_password(DEMO_PASSWORD)
    users = {
        role_email: create_user(email=role_email, password_hash=pw_hash, name=name, role=role)
        for role_email, name, role in DEMO_USERS
    }
    creator = users["creator@example.com"]
    donor = users["donor@example.com"]
    in_30_days = datetime.now(timezone.utc) + timedelta(days=30)

    school = insert_campaign(
        title="Help Build the School",
        description="Two new classrooms for the village school.",
        category="education",
        goal_amount=10000,
        deadline=in_30_days,
        creator_id=creator["id"],
        status="approved",
        fund_utilization_plan={
            "title": "Construction",
            "description": "Materials and labour",
            "timeline": "6 months",
            "budget": 10000,
        },
        media_urls=[default_image("education")],
    )
    insert_campaign(
        title="Community Garden",
        description="Raised beds and a tool shed for the neighbourhood.",
        category="community",
        goal_amount=5000,
        deadline=in_30_days,
        creator_id=creator["id"],
        status="pending",
        fund_utilization_plan="Beds, soil, seeds and a shed.",
        media_urls=[default_image("community")],
    )
    print(f"Created users: {', '.join(users)}")

    for amount in (250, 100, 75.5):
        donate(school["id"], donor["id"], amount)
    print(f"Created 3 donations for campaign {school['id']}")
    print(f"\nLogin with any demo account, password: {DEMO_PASSWORD}")


def force_seed():
    emails = [u[0] for u in DEMO_USERS]
    with transaction() as cur:
        cur.execute(
            "DELETE FROM contacts WHERE user_id IN (SELECT id FROM users WHERE email = ANY(%s))",
            (emails,),
        )
        cur.execute(
            "DELETE FROM campaigns WHERE creator_id IN (SELECT id FROM users WHERE email = ANY(%s))",
            (emails,),
        )
        cur.execute(
            "DELETE FROM donations WHERE user_id IN (SELECT id FROM users WHERE email = ANY(%s))",
            (emails,),
        )
        cur.execute(
            "DELETE FROM comments WHERE user_id IN (SELECT id FROM users WHERE email = ANY(%s))",
            (emails,),
        )
        cur.execute(
            "UPDATE campaigns SET moderated_by = NULL "
            "WHERE moderated_by IN (SELECT id FROM users WHERE email = ANY(%s))",
            (emails,),
        )
        cur.execute(
            "UPDATE contacts SET responded_by = NULL "
            "WHERE responded_by IN (SELECT id FROM users WHERE email = ANY(%s))",
            (emails,),
        )
        cur.execute("DELETE FROM users WHERE email = ANY(%s)", (emails,))
    print("Cleared demo data. Seeding...")
    seed()


if __name__ == "__main__":
    if "--force" in sys.argv:
        force_seed()
    else:
        seed()
