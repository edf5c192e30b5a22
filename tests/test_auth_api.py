from types import SimpleNamespace

import pytest
from passlib.hash import bcrypt

from cloudos.core.rbac import Role, UserStatus
from cloudos.models.session import UserSession
from cloudos.models.user import User
from tests.helpers import PASSWORD, bearer


def test_login_returns_token_and_counts_the_login(client, db, make_user):
    user = make_user(email="a@x.com", role=Role.SUPPORT, department="IT")
    assert user.login_count == 0

    resp = client.post("/api/v1/auth/login", json={"email": "A@X.com", "password": PASSWORD})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["id"] == user.id
    assert body["user"]["email"] == "a@x.com"
    assert body["user"]["role"] == "SUPPORT"
    assert body["user"]["firstName"] == "Test"
    assert body["user"]["department"] == "IT"

    db.expire_all()
    fresh = db.get(User, user.id)
    assert fresh.login_count == 1
    assert fresh.last_login is not None

    session = db.get(UserSession, body["token"])
    assert session is not None
    assert session.user_id == user.id
    assert session.user_agent == "testclient"


def test_login_stores_salted_hash_not_plaintext(db, make_user):
    user = make_user()
    assert user.hashed_password != PASSWORD
    assert user.hashed_password.startswith("$argon2")


@pytest.mark.parametrize("status", [UserStatus.INACTIVE, UserStatus.SUSPENDED, UserStatus.PENDING])
def test_non_active_account_cannot_log_in(client, make_user, status):
    user = make_user(status=status)
    resp = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 401
    assert resp.json()["error"] == "Invalid credentials or inactive account"


def test_wrong_password_and_unknown_email(client, make_user):
    user = make_user()
    resp = client.post("/api/v1/auth/login", json={"email": user.email, "password": "not-the-one"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_CREDENTIALS"

    resp = client.post("/api/v1/auth/login", json={"email": "ghost@jermis.com", "password": PASSWORD})
    assert resp.status_code == 401


def test_sso_only_account_has_no_local_login(client, make_user):
    user = make_user(password=None, azure_id="aad-1")
    resp = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 401


def test_inactive_account_with_short_password_is_401(client, make_user):
    user = make_user(status=UserStatus.SUSPENDED)
    resp = client.post("/api/v1/auth/login", json={"email": user.email, "password": "abc"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_CREDENTIALS"


def test_internal_domain_account_can_log_in(client, make_user):
    user = make_user(email="anna@corp.local")
    resp = client.post("/api/v1/auth/login", json={"email": " Anna@Corp.Local ", "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == user.id
    assert resp.json()["user"]["email"] == "anna@corp.local"


def test_login_validation_errors_are_400(client):
    resp = client.post("/api/v1/auth/login", json={"email": "not-an-email", "password": ""})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_FAILED"
    fields = {tuple(d["loc"])[-1] for d in body["details"]}
    assert {"email", "password"} <= fields


def test_missing_or_malformed_authorization_header(client):
    resp = client.get("/api/v1/auth/profile")
    assert resp.status_code == 401
    assert resp.json()["code"] == "ACCESS_TOKEN_REQUIRED"

    resp = client.get("/api/v1/auth/profile", headers={"Authorization": "Token xyz"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "ACCESS_TOKEN_REQUIRED"


def test_garbage_token_is_invalid(client):
    resp = client.get("/api/v1/auth/profile", headers=bearer("garbage"))
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_TOKEN"


def test_profile_and_verify(client, make_user, login):
    user = make_user(phone_number="+41 44 000 00 00")
    token = login(user.email)

    resp = client.get("/api/v1/auth/profile", headers=bearer(token))
    assert resp.status_code == 200
    profile = resp.json()["user"]
    assert profile["phoneNumber"] == "+41 44 000 00 00"
    assert profile["status"] == "ACTIVE"
    assert profile["loginCount"] == 1
    assert "hashedPassword" not in profile

    resp = client.get("/api/v1/auth/verify", headers=bearer(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["valid"] is True
    assert body["user"] == {
        "id": user.id,
        "email": user.email,
        "firstName": "Test",
        "lastName": user.last_name,
        "role": "EMPLOYEE",
    }


def test_logout_revokes_the_session(client, make_user, login):
    user = make_user()
    token = login(user.email)
    other = login(user.email)

    resp = client.post("/api/v1/auth/logout", headers=bearer(token))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logged out successfully"

    resp = client.get("/api/v1/auth/profile", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_OR_EXPIRED_TOKEN"
    # other sessions of the same user are untouched
    assert client.get("/api/v1/auth/profile", headers=bearer(other)).status_code == 200


def test_deleting_the_session_row_revokes_a_valid_token(client, db, make_user, login):
    user = make_user()
    token = login(user.email)
    db.query(UserSession).filter(UserSession.token == token).delete()
    db.commit()

    resp = client.get("/api/v1/auth/profile", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_OR_EXPIRED_TOKEN"


def test_session_expires_exactly_at_expiry(client, make_user, login, clock):
    user = make_user()
    token = login(user.email)

    clock.advance(hours=24, seconds=-1)
    assert client.get("/api/v1/auth/profile", headers=bearer(token)).status_code == 200

    clock.advance(seconds=1)
    resp = client.get("/api/v1/auth/profile", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_OR_EXPIRED_TOKEN"


def test_deactivated_user_is_rejected_on_next_request(client, db, make_user, login):
    user = make_user()
    token = login(user.email)
    db.get(User, user.id).status = UserStatus.SUSPENDED.value
    db.commit()

    resp = client.get("/api/v1/auth/profile", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.json()["code"] == "ACCOUNT_NOT_ACTIVE"


def test_unexpected_error_fails_closed(app, client, make_user, login):
    user = make_user()
    token = login(user.email)

    def boom(db, token):
        raise RuntimeError("database went away")

    app.state.auth.sessions.lookup = boom
    resp = client.get("/api/v1/auth/profile", headers=bearer(token))
    assert resp.status_code == 500
    assert resp.json()["code"] == "AUTHENTICATION_FAILED"


def test_token_for_other_user_session_is_rejected(app, client, db, make_user, login):
    a, b = make_user(), make_user()
    token_a = login(a.email)
    # a token signed for b but presented against a's session row
    forged = app.state.auth.tokens.issue(SimpleNamespace(id=b.id, email=b.email, role="EMPLOYEE"))
    row = db.get(UserSession, token_a)
    db.add(UserSession(token=forged, user_id=a.id, expires_at=row.expires_at))
    db.commit()

    resp = client.get("/api/v1/auth/profile", headers=bearer(forged))
    assert resp.status_code == 401
    assert resp.json()["code"] == "INVALID_OR_EXPIRED_TOKEN"


def test_legacy_bcrypt_hash_is_upgraded_on_login(client, db, make_user):
    user = make_user()
    user.hashed_password = bcrypt.hash(PASSWORD)
    db.commit()

    resp = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 200
    db.expire_all()
    assert db.get(User, user.id).hashed_password.startswith("$argon2")
