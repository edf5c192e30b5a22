from typing import List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import select, func, case, or_, and_
from cloudos.core.clock import utcnow
from cloudos.crud.base import CRUDBase
from cloudos.models.news import NewsArticle, NewsPriority, NewsStatus
from cloudos.schemas.news import NewsCreate

_PRIORITY_RANK = case(
    {p.value: rank for rank, p in enumerate([NewsPriority.LOW, NewsPriority.NORMAL, NewsPriority.HIGH, NewsPriority.URGENT])},
    value=NewsArticle.priority,
    else_=1,
)


class CRUDNews(CRUDBase[NewsArticle, NewsCreate]):
    def _visible_to(self, role: str):
        now = utcnow()
        return and_(
            NewsArticle.status == NewsStatus.PUBLISHED.value,
            NewsArticle.published_at <= now,
            or_(NewsArticle.expires_at.is_(None), NewsArticle.expires_at >= now),
            or_(
                NewsArticle.target_roles.is_(None),
                NewsArticle.target_roles == "",
                ("," + NewsArticle.target_roles + ",").contains(f",{role},"),
            ),
        )

    def list_for_role(self, db: Session, role: str, *, skip: int = 0, limit: int = 5) -> List[NewsArticle]:
        stmt = (
            select(NewsArticle)
            .where(self._visible_to(role))
            .order_by(_PRIORITY_RANK.desc(), NewsArticle.published_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(db.scalars(stmt).unique().all())

    def page_for_role(self, db: Session, role: str, *, page: int, limit: int) -> Tuple[List[NewsArticle], int]:
        total = db.scalar(select(func.count()).select_from(NewsArticle).where(self._visible_to(role))) or 0
        return self.list_for_role(db, role, skip=(page - 1) * limit, limit=limit), total

    def create_from(self, db: Session, body: NewsCreate, author_id: int) -> NewsArticle:
        now = utcnow()
        return self.create(db, {
            "title": body.title,
            "content": body.content,
            "excerpt": body.excerpt,
            "priority": body.priority.value,
            "target_roles": ",".join(r.value for r in body.target_roles) if body.target_roles else None,
            "target_users": ",".join(str(u) for u in body.target_users) if body.target_users else None,
            "featured_image": body.featured_image,
            "author_id": author_id,
            "status": NewsStatus.PUBLISHED.value if body.publish_now else NewsStatus.DRAFT.value,
            "published_at": now if body.publish_now else None,
            "expires_at": body.expires_at,
        })

news_crud = CRUDNews(NewsArticle)
