"""
Test configuration and fixtures.

The Flask app is real; the model layer is swapped for tests.fakes.FakeDB and
Redis for fakeredis, so no Postgres or Redis server is needed. tests/test_postgres.py is the
exception: it runs the real SQL when TEST_DATABASE_URL is set.
"""
import os
from datetime import datetime, timedelta, timezone

os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["EMAIL_PROVIDER"] = "log"
os.environ["USE_EMAIL_QUEUE"] = "0"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-0123456789"

import fakeredis
import pytest
from flask_jwt_extended import create_access_token

from crowdfund import create_app
from crowdfund.services import (
    auth_service,
    campaign_service,
    contact_service,
    dashboard_service,
    donation_service,
    user_service,
)
from crowdfund.services.auth_service import hash_password
from crowdfund.utils import authz, otp_store, rate_limit
from tests.fakes import MODEL_FUNCTIONS, FakeDB

PATCHED_MODULES = (
    auth_service,
    campaign_service,
    contact_service,
    dashboard_service,
    donation_service,
    user_service,
    authz,
)
PASSWORD = "password123"


@pytest.fixture
def db(monkeypatch):
    fake = FakeDB()
    for module in PATCHED_MODULES:
        for name in MODEL_FUNCTIONS:
            if hasattr(module, name):
                monkeypatch.setattr(module, name, getattr(fake, name))
    return fake


@pytest.fixture(autouse=True)
def redis_client(monkeypatch):
    client = fakeredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(otp_store, "_client", client)
    return client


@pytest.fixture(autouse=True)
def _fresh_rate_limits():
    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
def app(db):
    app = create_app({"TESTING": True})
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(db):
    def _make(email=None, role="user", name="Test User", password=PASSWORD):
        email = email or f"{role}{len(db.users) + 1}@example.com"
        return db.create_user(
            email=email, password_hash=hash_password(password), name=name, role=role
        )

    return _make


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role="admin", name="Admin")


@pytest.fixture
def creator(make_user):
    return make_user(email="creator@example.com", name="Creator")


@pytest.fixture
def donor(make_user):
    return make_user(email="donor@example.com", name="Donor")


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user["id"]))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_campaign(db, creator):
    def _make(status="approved", goal=100.0, raised=0.0, owner=None, days=30, **extra):
        row = db.insert_campaign(
            title=extra.pop("title", "Clean water"),
            description=extra.pop("description", "Wells for the village"),
            category=extra.pop("category", "community"),
            goal_amount=goal,
            deadline=datetime.now(timezone.utc) + timedelta(days=days),
            creator_id=(owner or creator)["id"],
            status=status,
            fund_utilization_plan="Drilling and pumps",
            media_urls=[],
        )
        db.campaigns[row["id"]]["raised_amount"] = raised
        db.campaigns[row["id"]].update(extra)
        return db.get_campaign(row["id"])

    return _make
