# cloudos/db/init_db.py
import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from cloudos.core.clock import utcnow
from cloudos.core.config import Settings
from cloudos.core.rbac import Role, UserStatus
from cloudos.core.security_password import hash_password
from cloudos.crud.user import normalize_email
from cloudos.models.news import NewsArticle, NewsPriority, NewsStatus
from cloudos.models.user import User

logger = structlog.get_logger(__name__)

WELCOME_TITLE = "Willkommen im CloudOS.Jermis Intranet"


def init_db(db: Session, settings: Settings) -> None:
    email = normalize_email(settings.ADMIN_EMAIL)
    admin = db.scalar(select(User).where(User.email == email)) if email else None
    if admin is None and email:
        if not settings.ADMIN_INITIAL_PASSWORD:
            logger.warning("admin_seed_skipped", reason="ADMIN_INITIAL_PASSWORD not set")
        else:
            admin = User(
                email=email,
                hashed_password=hash_password(settings.ADMIN_INITIAL_PASSWORD),
                first_name="System",
                last_name="Administrator",
                display_name="System Administrator",
                role=Role.ADMIN.value,
                status=UserStatus.ACTIVE.value,
                is_email_verified=True,
                email_verified_at=utcnow(),
            )
            db.add(admin); db.flush()
            logger.info("admin_seeded", user_id=admin.id)

    if admin is not None and db.scalar(select(NewsArticle.id).where(NewsArticle.title == WELCOME_TITLE)) is None:
        db.add(NewsArticle(
            title=WELCOME_TITLE,
            content="Das neue Intranet ist online. Hier finden Sie News, Termine und Ihren Teamstatus.",
            excerpt="Das neue Intranet ist online.",
            status=NewsStatus.PUBLISHED.value,
            priority=NewsPriority.HIGH.value,
            author_id=admin.id,
            published_at=utcnow(),
        ))

    db.commit()
