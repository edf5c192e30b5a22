from datetime import timedelta

from cloudos.core.clock import utcnow

PASSWORD = "secret1"


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now=None):
        self.now = now or utcnow()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
