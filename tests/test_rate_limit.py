from cloudos.core.rate_limit import RateLimiter
from tests.helpers import PASSWORD, FakeClock, bearer


def test_limiter_blocks_after_max_and_resets_after_window():
    clock = FakeClock()
    limiter = RateLimiter(max_attempts=3, window_seconds=60, clock=clock)
    assert [limiter.hit("k") for _ in range(3)] == [None, None, None]

    retry = limiter.hit("k")
    assert retry == 60
    clock.advance(seconds=59.5)
    assert limiter.hit("k") == 1

    # the window is only over once now > reset_at
    clock.advance(seconds=0.5)
    assert limiter.hit("k") == 1
    clock.advance(seconds=1)
    assert limiter.hit("k") is None


def test_limiter_keys_are_independent():
    limiter = RateLimiter(max_attempts=1, window_seconds=60, clock=FakeClock())
    assert limiter.hit("a") is None
    assert limiter.hit("a") is not None
    assert limiter.hit("b") is None
    limiter.reset("a")
    assert limiter.hit("a") is None


def test_login_sixth_attempt_gets_429(client, make_user, clock):
    user = make_user()
    for _ in range(5):
        resp = client.post("/api/v1/auth/login", json={"email": user.email, "password": "wrong-password"})
        assert resp.status_code == 401

    resp = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 429
    body = resp.json()
    assert body["code"] == "TOO_MANY_ATTEMPTS"
    assert body["retryAfter"] > 0
    assert int(resp.headers["Retry-After"]) == body["retryAfter"]

    clock.advance(seconds=15 * 60 + 1)
    resp = client.post("/api/v1/auth/login", json={"email": user.email, "password": PASSWORD})
    assert resp.status_code == 200
    assert client.get("/api/v1/auth/verify", headers=bearer(resp.json()["token"])).status_code == 200


def test_each_app_starts_with_fresh_limiters(app):
    assert app.state.rate_limiters == {}
