# Overview: Pytest coverage for tenant registration, login, sessions and auth enforcement.

"""
Authentication tests.

Verifies:
- Unauthenticated requests return 401
- Registration, login, logout and profile round trip
- Session absolute and idle timeouts
- Passwords are bcrypt-hashed and never returned
"""

from datetime import timedelta

import pytest

from shopledger.models import SecurityEvent, SessionToken, Tenant
from shopledger.services import auth_service, session_service
from shopledger.services.auth_service import PasswordValidationError
from shopledger.time_utils import utcnow
from conftest import TENANT_PASSWORD, auth_headers

REGISTRATION = {
    "name": "Corner Store",
    "email": "Owner@Corner.example",
    "password": "s3cretpass",
    "phone": "9811111111",
    "city": "Nagpur",
    "branch": "Station Road",
    "gstin": "27BBBBB1111B1Z5",
}


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/transactions"),
            ("POST", "/api/transactions"),
            ("GET", "/api/transactions/1"),
            ("PUT", "/api/transactions/1"),
            ("DELETE", "/api/transactions/1"),
            ("GET", "/api/transactions/date-range"),
            ("GET", "/api/transactions/summary"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/products/1"),
            ("PUT", "/api/products/1"),
            ("DELETE", "/api/products/1"),
            ("GET", "/api/admin/profile"),
            ("PUT", "/api/admin/profile"),
            ("POST", "/api/admin/logout"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["error"] == "Authentication required"

    def test_unknown_token(self, client, db_session):
        resp = client.get("/api/products", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"


# =============================================================================
# REGISTRATION AND LOGIN
# =============================================================================


class TestRegistration:

    def test_register(self, client, db_session):
        resp = client.post("/api/admin/register", json=REGISTRATION)

        assert resp.status_code == 201
        tenant = resp.json["tenant"]
        assert tenant["email"] == "owner@corner.example"
        assert "password" not in tenant
        assert "password_hash" not in tenant

        stored = db_session.query(Tenant).filter_by(email="owner@corner.example").one()
        assert stored.password_hash.startswith("$2")
        assert stored.password_hash != REGISTRATION["password"]

    def test_duplicate_email(self, client, db_session, tenant_a):
        payload = dict(REGISTRATION, email="OWNER_A@example.com")
        resp = client.post("/api/admin/register", json=payload)
        assert resp.status_code == 409

    @pytest.mark.parametrize("field", ["name", "email", "password", "phone", "city", "branch", "gstin"])
    def test_all_fields_required(self, client, db_session, field):
        payload = dict(REGISTRATION)
        del payload[field]
        resp = client.post("/api/admin/register", json=payload)
        assert resp.status_code == 400
        assert db_session.query(Tenant).count() == 0

    def test_weak_password(self, client, db_session):
        resp = client.post("/api/admin/register", json=dict(REGISTRATION, password="short"))
        assert resp.status_code == 400

    def test_bad_email(self, client, db_session):
        resp = client.post("/api/admin/register", json=dict(REGISTRATION, email="not-an-email"))
        assert resp.status_code == 400


class TestLogin:

    def test_login_and_use_token(self, client, db_session, tenant_a):
        resp = client.post("/api/admin/login", json={"email": "owner_a@example.com", "password": TENANT_PASSWORD})

        assert resp.status_code == 200
        token = resp.json["token"]
        assert resp.json["tenant"]["id"] == tenant_a.id

        profile = client.get("/api/admin/profile", headers=auth_headers(token))
        assert profile.status_code == 200
        assert profile.json["tenant"]["email"] == "owner_a@example.com"

    def test_email_is_case_insensitive(self, client, db_session, tenant_a):
        resp = client.post("/api/admin/login", json={"email": "Owner_A@Example.com", "password": TENANT_PASSWORD})
        assert resp.status_code == 200

    def test_wrong_password_logged(self, client, db_session, tenant_a):
        resp = client.post("/api/admin/login", json={"email": "owner_a@example.com", "password": "wrong-pass1"})

        assert resp.status_code == 401
        assert db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/admin/login", json={"email": "x@example.com"}).status_code == 400

    def test_logout_revokes_token(self, client, db_session, tenant_a):
        token = client.post(
            "/api/admin/login", json={"email": "owner_a@example.com", "password": TENANT_PASSWORD}
        ).json["token"]

        assert client.post("/api/admin/logout", headers=auth_headers(token)).status_code == 200
        assert client.get("/api/admin/profile", headers=auth_headers(token)).status_code == 401


class TestProfile:

    def test_update_profile(self, client, db_session, headers_a):
        resp = client.put("/api/admin/profile", json={"city": "Mumbai", "branch": "Dadar"}, headers=headers_a)

        assert resp.status_code == 200
        assert resp.json["tenant"]["city"] == "Mumbai"
        assert resp.json["tenant"]["branch"] == "Dadar"

    def test_email_not_writable(self, client, db_session, headers_a):
        resp = client.put("/api/admin/profile", json={"email": "new@example.com"}, headers=headers_a)
        assert resp.status_code == 400

    def test_empty_update(self, client, db_session, headers_a):
        resp = client.put("/api/admin/profile", json={}, headers=headers_a)
        assert resp.status_code == 400


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:

    def test_token_stored_hashed(self, db_session, tenant_a):
        session, token = session_service.create_session(tenant_a.id)
        assert session.token_hash == session_service.hash_token(token)
        assert db_session.query(SessionToken).filter_by(token_hash=token).count() == 0

    def test_validate_returns_tenant_context(self, db_session, tenant_a):
        _, token = session_service.create_session(tenant_a.id)

        context = session_service.validate_session(token)

        assert context is not None
        assert context.tenant_id == tenant_a.id
        assert context.tenant.id == tenant_a.id

    def test_absolute_expiry(self, db_session, tenant_a):
        session, token = session_service.create_session(tenant_a.id)
        session.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        assert session_service.validate_session(token) is None

    def test_idle_timeout_revokes(self, app, db_session, tenant_a):
        session, token = session_service.create_session(tenant_a.id)
        session.last_used_at = utcnow() - timedelta(minutes=app.config["SESSION_IDLE_MINUTES"] + 1)
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.refresh(session)
        assert session.is_revoked is True
        assert session.revoked_reason == "Idle timeout"

    def test_revoke(self, db_session, tenant_a):
        _, token = session_service.create_session(tenant_a.id)

        assert session_service.revoke_session(token) is True
        assert session_service.revoke_session(token) is False
        assert session_service.validate_session(token) is None


class TestPasswords:

    @pytest.mark.parametrize("password", ["short1", "allletters", "12345678"])
    def test_weak_passwords(self, password):
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength(password)

    def test_verify(self, db_session):
        hashed = auth_service.hash_password("goodpass1")
        assert auth_service.verify_password("goodpass1", hashed)
        assert not auth_service.verify_password("badpass1", hashed)
        assert not auth_service.verify_password("goodpass1", "not-a-hash")
