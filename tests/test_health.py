from cloudos.core.rbac import Role
from cloudos.db.init_db import WELCOME_TITLE, init_db
from cloudos.models.news import NewsArticle
from cloudos.models.user import User


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "OK"
    assert body["database"] == "connected"
    assert body["environment"] == "test"
    assert body["version"] == "v1"


def test_metrics_are_off_in_tests(client):
    assert client.get("/metrics").status_code == 404


def test_seed_creates_admin_and_welcome_news_once(db, settings):
    seeded = settings.model_copy(update={"ADMIN_EMAIL": "Admin@Jermis.com", "ADMIN_INITIAL_PASSWORD": "change-me-now"})
    init_db(db, seeded)
    init_db(db, seeded)

    admin = db.query(User).one()
    assert admin.email == "admin@jermis.com"
    assert admin.role == Role.ADMIN.value
    assert admin.hashed_password.startswith("$argon2")
    assert db.query(NewsArticle).filter(NewsArticle.title == WELCOME_TITLE).count() == 1


def test_seed_without_password_creates_nothing(db, settings):
    init_db(db, settings.model_copy(update={"ADMIN_INITIAL_PASSWORD": ""}))
    assert db.query(User).count() == 0
    assert db.query(NewsArticle).count() == 0


def test_seeded_admin_can_log_in(client, db, settings):
    init_db(db, settings.model_copy(update={"ADMIN_EMAIL": "admin@jermis.com", "ADMIN_INITIAL_PASSWORD": "change-me-now"}))
    resp = client.post("/api/v1/auth/login", json={"email": "admin@jermis.com", "password": "change-me-now"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "ADMIN"
