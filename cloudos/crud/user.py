from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, update
from cloudos.core.clock import utcnow
from cloudos.crud.base import CRUDBase
from cloudos.models.user import User
from cloudos.schemas.user import ExternalProfile, normalize_email


class CRUDUser(CRUDBase[User, ExternalProfile]):
    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()

    def get_by_azure_id(self, db: Session, azure_id: str) -> Optional[User]:
        return db.execute(select(User).where(User.azure_id == azure_id)).scalar_one_or_none()

    def record_login(self, db: Session, user: User, when: Optional[datetime] = None) -> User:
        # single UPDATE so concurrent logins never lose an increment
        db.execute(
            update(User)
            .where(User.id == user.id)
            .values(login_count=User.login_count + 1, last_login=when or utcnow())
        )
        db.commit()
        db.refresh(user)
        return user

user_crud = CRUDUser(User)
