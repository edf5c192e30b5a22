# cloudos/core/tokens.py
from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any, Dict

import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from cloudos.core.clock import Clock, utcnow
from cloudos.core.config import Settings
from cloudos.core.errors import InvalidToken
from cloudos.core.rbac import Role

logger = structlog.get_logger(__name__)

ACCESS = "access"
OAUTH_STATE = "oauth_state"
STATE_TTL = timedelta(minutes=10)


class TokenIssuer:
    """Mints and verifies the signed bearer tokens handed to clients.

    The token's own ``exp`` is only half of the validity check; the session
    row created next to it is the other half (see ``SessionStore``).
    """

    def __init__(self, settings: Settings, clock: Clock = utcnow):
        self.secret = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self._now = clock

    def _encode(self, payload: Dict[str, Any], ttl: timedelta) -> str:
        now = self._now()
        payload = {
            **payload,
            "jti": uuid.uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def _decode(self, token: str, expected_type: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.info("token_expired", type=expected_type)
            raise InvalidToken()
        except JWTError as exc:
            logger.info("token_rejected", type=expected_type, reason=str(exc))
            raise InvalidToken()
        if not isinstance(payload, dict) or payload.get("type") != expected_type:
            logger.info("token_wrong_type", type=expected_type)
            raise InvalidToken()
        return payload

    def issue(self, user) -> str:
        return self._encode(
            {"type": ACCESS, "sub": str(user.id), "email": user.email, "role": Role(user.role).value},
            self.ttl,
        )

    def verify(self, token: str) -> Dict[str, Any]:
        payload = self._decode(token, ACCESS)
        if not payload.get("sub") or not payload.get("email"):
            raise InvalidToken()
        return payload

    def issue_state(self) -> str:
        return self._encode({"type": OAUTH_STATE}, STATE_TTL)

    def verify_state(self, state: str) -> Dict[str, Any]:
        return self._decode(state, OAUTH_STATE)
