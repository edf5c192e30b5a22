import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from cloudos.api.permissions import (
    require_capability,
    require_ownership_or_admin,
    require_roles,
)
from cloudos.core.rbac import ROLE_PERMISSIONS, AuthorizationPolicy, Role
from cloudos.models.session import UserSession
from tests.helpers import bearer


def test_policy_capabilities():
    policy = AuthorizationPolicy()
    assert policy.has_capability(Role.ACCOUNTING, "expense_reports")
    assert not policy.has_capability(Role.EMPLOYEE, "expense_reports")
    # all_modules grants everything
    assert policy.has_capability(Role.ADMIN, "inventory_management")
    assert policy.capabilities(Role.GUEST) == ()
    assert set(ROLE_PERMISSIONS) == set(Role)


@pytest.mark.parametrize(
    "role, user_id, owner, expected",
    [
        (Role.ADMIN, 1, None, True),
        (Role.ADMIN, 1, 2, True),
        (Role.EMPLOYEE, 1, 1, True),
        (Role.EMPLOYEE, 1, "1", True),
        (Role.EMPLOYEE, 1, 2, False),
        (Role.SUPPORT, 1, None, False),
        (Role.SUPPORT, 1, "", False),
    ],
)
def test_owns_or_admin(role, user_id, owner, expected):
    assert AuthorizationPolicy().owns_or_admin(role, user_id, owner) is expected


@pytest.fixture
def guarded(app):
    """Extra routes on the real app so the full auth chain runs."""

    @app.get("/t/support-only")
    def support_only(user=Depends(require_roles(Role.SUPPORT, Role.ACCOUNTING))):
        return {"id": user.id}

    @app.get("/t/inventory")
    def inventory(user=Depends(require_capability("inventory_management"))):
        return {"id": user.id}

    @app.post("/t/owned")
    def owned(user=Depends(require_ownership_or_admin("user_id"))):
        return {"id": user.id}

    @app.get("/t/owned/{user_id}")
    def owned_path(user_id: int, user=Depends(require_ownership_or_admin("user_id"))):
        return {"id": user.id}

    with TestClient(app) as c:
        yield c


def _token(app, db, user):
    token = app.state.auth.tokens.issue(user)
    app.state.auth.sessions.create(db, token, user.id)
    return token


def test_require_roles(app, db, guarded, make_user):
    support = _token(app, db, make_user(role=Role.SUPPORT))
    accounting = _token(app, db, make_user(role=Role.ACCOUNTING))
    employee = _token(app, db, make_user(role=Role.EMPLOYEE))

    assert guarded.get("/t/support-only", headers=bearer(support)).status_code == 200
    assert guarded.get("/t/support-only", headers=bearer(accounting)).status_code == 200

    resp = guarded.get("/t/support-only", headers=bearer(employee))
    assert resp.status_code == 403
    body = resp.json()
    assert body["code"] == "INSUFFICIENT_PERMISSIONS"
    assert body["required"] == ["SUPPORT", "ACCOUNTING"]
    assert body["current"] == "EMPLOYEE"

    # unauthenticated is 401, never 403
    assert guarded.get("/t/support-only").status_code == 401


def test_require_capability(app, db, guarded, make_user):
    assert guarded.get("/t/inventory", headers=bearer(_token(app, db, make_user(role=Role.WAREHOUSE)))).status_code == 200
    assert guarded.get("/t/inventory", headers=bearer(_token(app, db, make_user(role=Role.ADMIN)))).status_code == 200
    resp = guarded.get("/t/inventory", headers=bearer(_token(app, db, make_user(role=Role.EXTERNAL))))
    assert resp.status_code == 403
    assert resp.json()["required"] == ["inventory_management"]


def test_ownership_from_body_and_path(app, db, guarded, make_user):
    user = make_user()
    admin = make_user(role=Role.ADMIN)
    token = _token(app, db, user)
    admin_token = _token(app, db, admin)

    assert guarded.post("/t/owned", json={"user_id": user.id}, headers=bearer(token)).status_code == 200
    assert guarded.get(f"/t/owned/{user.id}", headers=bearer(token)).status_code == 200

    resp = guarded.post("/t/owned", json={"user_id": admin.id}, headers=bearer(token))
    assert resp.status_code == 403
    assert resp.json()["code"] == "ACCESS_DENIED"
    # no owner at all is a denial too
    assert guarded.post("/t/owned", json={}, headers=bearer(token)).status_code == 403
    assert guarded.get(f"/t/owned/{admin.id}", headers=bearer(token)).status_code == 403

    assert guarded.post("/t/owned", json={}, headers=bearer(admin_token)).status_code == 200
    assert guarded.get(f"/t/owned/{user.id}", headers=bearer(admin_token)).status_code == 200


def test_role_change_applies_to_existing_session(app, db, guarded, make_user):
    user = make_user(role=Role.EMPLOYEE)
    token = _token(app, db, user)
    assert guarded.get("/t/support-only", headers=bearer(token)).status_code == 403

    user.role = Role.SUPPORT.value
    db.commit()
    assert db.get(UserSession, token) is not None
    assert guarded.get("/t/support-only", headers=bearer(token)).status_code == 200
