# cloudos/services/sessions.py
from __future__ import annotations

from datetime import timedelta
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from cloudos.core.clock import Clock, as_utc, utcnow
from cloudos.models.session import UserSession

logger = structlog.get_logger(__name__)


class SessionStore:
    """Server-side record that makes a bearer token revocable.

    A token is only honoured while its row exists and ``expires_at`` is
    strictly in the future. Rows are never updated, only created and deleted.
    """

    def __init__(self, ttl: timedelta, clock: Clock = utcnow):
        self.ttl = ttl
        self._now = clock

    def create(
        self,
        db: Session,
        token: str,
        user_id: int,
        *,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserSession:
        row = UserSession(
            token=token,
            user_id=user_id,
            expires_at=self._now() + self.ttl,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:255] or None,
        )
        db.add(row)
        db.commit()
        return row

    def lookup(self, db: Session, token: str) -> Optional[UserSession]:
        # joined so role/status changes apply on the very next request
        return db.execute(
            select(UserSession).options(joinedload(UserSession.user)).where(UserSession.token == token)
        ).scalar_one_or_none()

    def is_live(self, row: Optional[UserSession]) -> bool:
        return row is not None and as_utc(row.expires_at) > self._now()

    def revoke(self, db: Session, token: str) -> int:
        count = db.execute(delete(UserSession).where(UserSession.token == token)).rowcount
        db.commit()
        return count or 0

    def revoke_all(self, db: Session, user_id: int) -> int:
        count = db.execute(delete(UserSession).where(UserSession.user_id == user_id)).rowcount
        db.commit()
        logger.info("sessions_revoked", user_id=user_id, count=count)
        return count or 0

    def purge_expired(self, db: Session) -> int:
        count = db.execute(delete(UserSession).where(UserSession.expires_at <= self._now())).rowcount
        db.commit()
        return count or 0
