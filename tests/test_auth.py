from contextlib import contextmanager
from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token
from psycopg2.errors import UniqueViolation

from crowdfund.models import user as user_model
from crowdfund.services import auth_service
from crowdfund.utils import otp_store
from crowdfund.utils.errors import Conflict


def _register(client, **overrides):
    payload = {"email": "New@Example.com", "password": "password123", "name": "New User"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_register_returns_token_and_user(client, db):
    resp = _register(client, role="admin")
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["token"]
    assert body["user"]["email"] == "new@example.com"
    # role in the body is ignored
    assert body["user"]["role"] == "user"
    assert "passwordHash" not in body["user"]
    assert db.get_user_by_email("new@example.com")["password_hash"].startswith("$2")


def test_register_validation(client):
    resp = _register(client, email="nope", password="short", name="")
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["message"] == "Validation failed"
    assert len(body["errors"]) == 3


def test_register_duplicate_email(client, donor):
    resp = _register(client, email="DONOR@example.com")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Email already exists"


def test_login_and_me(client, donor):
    resp = client.post("/api/auth/login", json={"email": "donor@example.com", "password": "password123"})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["id"] == donor["id"]


def test_login_wrong_password(client, donor):
    resp = client.post("/api/auth/login", json={"email": "donor@example.com", "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid credentials"


def test_flagged_user_refused_even_with_wrong_password(client, db, donor):
    db.users[donor["id"]]["require_password_reset"] = True
    resp = client.post("/api/auth/login", json={"email": "donor@example.com", "password": "wrong-password"})
    assert resp.status_code == 403
    assert resp.get_json()["requirePasswordReset"] is True


def test_me_rejects_garbage_and_missing_tokens(client):
    assert client.get("/api/auth/me").status_code == 401
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert resp.status_code == 401


def test_me_for_deleted_user(client, app):
    token = create_access_token(identity="00000000-0000-0000-0000-000000000000")
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_full_password_reset_flow(client, db, donor, redis_client, monkeypatch):
    sent = {}
    monkeypatch.setattr(auth_service, "send_password_reset_otp", lambda email, otp: sent.update({email: otp}))
    db.users[donor["id"]]["require_password_reset"] = True

    resp = client.post("/api/auth/forgot-password", json={"email": "donor@example.com"})
    assert resp.status_code == 200
    code = sent["donor@example.com"]
    # stored hashed, with a TTL
    assert redis_client.get("otp:donor@example.com") != code
    assert 0 < redis_client.ttl("otp:donor@example.com") <= otp_store.OTP_TTL_SECONDS

    resp = client.post("/api/auth/verify-otp", json={"email": "donor@example.com", "otp": code})
    assert resp.status_code == 200
    reset_token = resp.get_json()["resetToken"]

    # single use
    again = client.post("/api/auth/verify-otp", json={"email": "donor@example.com", "otp": code})
    assert again.status_code == 401

    resp = client.post(
        "/api/auth/reset-password",
        json={"email": "donor@example.com", "newPassword": "brand-new-pass", "resetToken": reset_token},
    )
    assert resp.status_code == 200
    assert db.users[donor["id"]]["require_password_reset"] is False

    resp = client.post("/api/auth/login", json={"email": "donor@example.com", "password": "brand-new-pass"})
    assert resp.status_code == 200


def test_forgot_password_same_answer_for_unknown_email(client, donor, monkeypatch):
    monkeypatch.setattr(auth_service, "send_password_reset_otp", lambda email, otp: None)
    known = client.post("/api/auth/forgot-password", json={"email": "donor@example.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.get_json() == unknown.get_json()


def test_reset_requires_token_by_default(client, donor):
    resp = client.post(
        "/api/auth/reset-password", json={"email": "donor@example.com", "newPassword": "brand-new-pass"}
    )
    assert resp.status_code == 401


def test_reset_without_otp_when_disabled(client, db, donor, monkeypatch):
    monkeypatch.setenv("PASSWORD_RESET_REQUIRE_OTP", "0")
    db.users[donor["id"]]["require_password_reset"] = True
    resp = client.post(
        "/api/auth/reset-password", json={"email": "donor@example.com", "newPassword": "brand-new-pass"}
    )
    assert resp.status_code == 200
    assert db.users[donor["id"]]["require_password_reset"] is False


def test_reset_token_for_other_user_rejected(client, donor, make_user):
    other = make_user(email="other@example.com")
    token = create_access_token(
        identity=other["id"],
        additional_claims={"purpose": "password_reset", "email": other["email"]},
        expires_delta=timedelta(minutes=10),
    )
    resp = client.post(
        "/api/auth/reset-password",
        json={"email": "donor@example.com", "newPassword": "brand-new-pass", "resetToken": token},
    )
    assert resp.status_code == 401


def test_reset_token_is_not_a_session(client, donor):
    token = create_access_token(
        identity=donor["id"],
        additional_claims={"purpose": "password_reset", "email": donor["email"]},
    )
    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_auth_rate_limit(client, donor, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "1")
    monkeypatch.setenv("RATE_LIMIT_AUTH_PER_MINUTE", "2")
    creds = {"email": "donor@example.com", "password": "password123"}
    assert client.post("/api/auth/login", json=creds).status_code == 200
    assert client.post("/api/auth/login", json=creds).status_code == 200
    resp = client.post("/api/auth/login", json=creds)
    assert resp.status_code == 429
    assert resp.get_json()["retry_after"] == 60


@contextmanager
def _duplicate_key_transaction():
    class Cursor:
        def execute(self, sql, params):
            raise UniqueViolation("duplicate key value violates unique constraint")

    yield Cursor()


def test_unique_email_violation_is_a_conflict(monkeypatch):
    # the pre-insert lookup can miss a concurrent signup; the constraint still wins
    monkeypatch.setattr(user_model, "transaction", _duplicate_key_transaction)

    with pytest.raises(Conflict):
        user_model.create_user(email="race@example.com", password_hash="x", name="Race")
    with pytest.raises(Conflict):
        user_model.update_user("some-id", email="race@example.com")
