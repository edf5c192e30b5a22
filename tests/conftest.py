import pytest
from fastapi.testclient import TestClient

import cloudos.models  # noqa: F401  registers every table
from cloudos.core.config import Settings
from cloudos.core.rbac import Role, UserStatus
from cloudos.core.security_password import hash_password
from cloudos.db.base import Base
from cloudos.main import create_app
from cloudos.models.user import User
from tests.helpers import PASSWORD, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        SECRET_KEY="test-secret-key-for-testing-only",
        METRICS_ENABLED=False,
        RUN_MIGRATIONS_ON_STARTUP=False,
        LOG_LEVEL="WARNING",
        FRONTEND_URL="http://frontend.test",
        AZURE_CLIENT_ID="client-id",
        AZURE_CLIENT_SECRET="client-secret",
        AZURE_TENANT_ID="tenant",
        AZURE_REDIRECT_URI="http://api.test/api/v1/auth/azure/callback",
    )


@pytest.fixture
def app(settings, clock):
    api = create_app(settings, clock=clock)
    Base.metadata.create_all(api.state.engine)
    yield api
    api.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app):
    with app.state.session_factory() as session:
        yield session


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(email=None, role=Role.EMPLOYEE, status=UserStatus.ACTIVE, password=PASSWORD, **fields):
        counter["n"] += 1
        user = User(
            email=(email or f"user{counter['n']}@jermis.com").lower(),
            hashed_password=hash_password(password) if password else None,
            first_name=fields.pop("first_name", "Test"),
            last_name=fields.pop("last_name", f"User{counter['n']}"),
            role=Role(role).value,
            status=UserStatus(status).value,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD):
        resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    return _login
