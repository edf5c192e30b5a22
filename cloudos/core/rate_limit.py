# cloudos/core/rate_limit.py
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

import structlog
from fastapi import Request

from cloudos.core.clock import Clock, utcnow
from cloudos.core.errors import TooManyAttempts

logger = structlog.get_logger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: datetime


class RateLimiter:
    """Fixed-window attempt counter.

    State is a plain dict in this process: fine for one instance, wrong as
    soon as the API runs behind a load balancer (needs a shared counter
    with atomic increment + TTL there).
    """

    def __init__(self, max_attempts: int = 5, window_seconds: int = 15 * 60, clock: Clock = utcnow):
        self.max_attempts = max_attempts
        self.window = timedelta(seconds=window_seconds)
        self._now = clock
        self._attempts: Dict[str, _Window] = {}

    def hit(self, key: str) -> Optional[int]:
        """Count one attempt. Returns None if allowed, else seconds to wait."""
        now = self._now()
        entry = self._attempts.get(key)
        if entry is None or now > entry.reset_at:
            self._attempts[key] = _Window(count=1, reset_at=now + self.window)
            return None
        if entry.count >= self.max_attempts:
            return max(1, math.ceil((entry.reset_at - now).total_seconds()))
        entry.count += 1
        return None

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._attempts.clear()
        else:
            self._attempts.pop(key, None)


def client_key(request: Request) -> str:
    ip = request.client.host if request.client else "unknown"
    user = getattr(request.state, "user", None)
    return f"{ip}:{user.id if user is not None else 'anonymous'}"


def rate_limit_sensitive(name: str, max_attempts: Optional[int] = None, window_seconds: Optional[int] = None):
    """Dependency guarding a sensitive route with its own named limiter.

    Limiters are kept in ``app.state.rate_limiters`` so every app instance
    (and every test) starts from a clean slate.
    """

    def dep(request: Request) -> None:
        app_state = request.app.state
        registry: Dict[str, RateLimiter] = app_state.rate_limiters
        limiter = registry.get(name)
        if limiter is None:
            settings = app_state.settings
            limiter = RateLimiter(
                max_attempts=max_attempts or settings.LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
                window_seconds=window_seconds or settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
                clock=app_state.clock,
            )
            registry[name] = limiter
        key = client_key(request)
        retry_after = limiter.hit(key)
        if retry_after is not None:
            logger.warning("rate_limited", guard=name, key=key, retry_after=retry_after)
            raise TooManyAttempts(retryAfter=retry_after, headers={"Retry-After": str(retry_after)})

    return dep
