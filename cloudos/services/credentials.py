# cloudos/services/credentials.py
from __future__ import annotations

import structlog
from sqlalchemy.orm import Session

from cloudos.core.clock import Clock, utcnow
from cloudos.core.errors import AccountNotActive, InvalidCredentials
from cloudos.core.rbac import Role, UserStatus
from cloudos.core.security_password import dummy_verify, verify_and_maybe_upgrade
from cloudos.crud.user import normalize_email, user_crud
from cloudos.models.user import User
from cloudos.schemas.user import ExternalProfile

logger = structlog.get_logger(__name__)


class CredentialVerifier:
    """Turns credentials (local or SSO) into a canonical, logged-in User.

    Both entry points are the only writers of ``last_login``/``login_count``.
    """

    def __init__(self, clock: Clock = utcnow):
        self._now = clock

    def authenticate(self, db: Session, email: str, password: str) -> User:
        email = normalize_email(email)
        user = user_crud.get_by_email(db, email)
        if user is None:
            dummy_verify()
            logger.info("login_rejected", email=email, reason="unknown_email")
            raise InvalidCredentials("Invalid credentials or inactive account")
        if user.status != UserStatus.ACTIVE.value:
            logger.info("login_rejected", user_id=user.id, reason="inactive", status=user.status)
            raise InvalidCredentials("Invalid credentials or inactive account")

        ok, new_hash = verify_and_maybe_upgrade(password, user.hashed_password)
        if not ok:
            logger.info("login_rejected", user_id=user.id, reason="bad_password")
            raise InvalidCredentials()
        if new_hash:
            user.hashed_password = new_hash
            db.add(user); db.commit()

        return user_crud.record_login(db, user, self._now())

    def upsert_sso_identity(self, db: Session, profile: ExternalProfile) -> User:
        now = self._now()
        email = normalize_email(str(profile.email))
        fields = {
            "email": email,
            "first_name": profile.given_name,
            "last_name": profile.surname,
            "display_name": profile.display_name,
            "department": profile.department,
            "position": profile.job_title,
        }

        user = user_crud.get_by_azure_id(db, profile.id)
        if user is None:
            user = user_crud.get_by_email(db, email)
            if user is not None:
                # a local account with the same corporate address gets linked
                logger.info("sso_account_linked", user_id=user.id)
                user.azure_id = profile.id

        if user is None:
            user = user_crud.create(db, {
                **fields,
                "azure_id": profile.id,
                "role": Role.EMPLOYEE.value,
                "status": UserStatus.ACTIVE.value,
                "is_email_verified": True,
                "email_verified_at": now,
                "last_login": now,
                "login_count": 1,
            })
            logger.info("sso_user_created", user_id=user.id)
            return user

        if user.status != UserStatus.ACTIVE.value:
            logger.info("sso_login_rejected", user_id=user.id, reason="inactive", status=user.status)
            raise AccountNotActive()

        for name, value in fields.items():
            setattr(user, name, value)
        db.add(user); db.commit()
        return user_crud.record_login(db, user, self._now())
