from datetime import timedelta

from cloudos.services.sessions import SessionStore
from tests.helpers import FakeClock


def test_create_lookup_and_expiry_boundary(db, make_user):
    clock = FakeClock()
    store = SessionStore(timedelta(hours=24), clock=clock)
    user = make_user()

    store.create(db, "tok-1", user.id, ip_address="10.0.0.1", user_agent="pytest")
    row = store.lookup(db, "tok-1")
    assert row is not None
    assert row.user.id == user.id
    assert store.is_live(row)

    clock.advance(hours=24, seconds=-1)
    assert store.is_live(row)
    clock.advance(seconds=1)
    # exactly at expires_at counts as expired
    assert not store.is_live(row)


def test_lookup_unknown_token(db):
    store = SessionStore(timedelta(hours=24))
    assert store.lookup(db, "missing") is None
    assert not store.is_live(None)


def test_revoke_is_idempotent(db, make_user):
    store = SessionStore(timedelta(hours=24))
    user = make_user()
    store.create(db, "tok-1", user.id)
    assert store.revoke(db, "tok-1") == 1
    assert store.revoke(db, "tok-1") == 0
    assert store.lookup(db, "tok-1") is None


def test_revoke_all_only_touches_one_user(db, make_user):
    store = SessionStore(timedelta(hours=24))
    a, b = make_user(), make_user()
    store.create(db, "a-1", a.id)
    store.create(db, "a-2", a.id)
    store.create(db, "b-1", b.id)
    assert store.revoke_all(db, a.id) == 2
    assert store.lookup(db, "b-1") is not None


def test_purge_expired(db, make_user):
    clock = FakeClock()
    store = SessionStore(timedelta(hours=24), clock=clock)
    user = make_user()
    store.create(db, "old", user.id)
    clock.advance(hours=12)
    store.create(db, "new", user.id)
    clock.advance(hours=12)
    assert store.purge_expired(db) == 1
    assert store.lookup(db, "old") is None
    assert store.lookup(db, "new") is not None
