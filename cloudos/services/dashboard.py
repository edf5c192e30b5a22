# cloudos/services/dashboard.py
from __future__ import annotations

import asyncio
import json
from datetime import timedelta
from typing import List, Optional

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from cloudos.core.clock import Clock, as_utc, utcnow
from cloudos.core.rbac import APPROVERS, Role, UserStatus
from cloudos.crud.news import news_crud
from cloudos.models.audit import AuditLog
from cloudos.models.intranet import CalendarEvent, Expense, InventoryItem, Timesheet, UploadedFile
from cloudos.models.user import User
from cloudos.schemas.dashboard import (
    Activity,
    CalendarEventOut,
    Dashboard,
    PendingApprovals,
    StockAlert,
    TeamMember,
    UserStats,
)
from cloudos.schemas.news import NewsOut
from cloudos.schemas.user import CurrentUser

logger = structlog.get_logger(__name__)

SUBMITTED = "SUBMITTED"
LOW_STOCK_STATUSES = ("LOW_STOCK", "OUT_OF_STOCK")


def presence(last_login, now) -> str:
    last_login = as_utc(last_login)
    if last_login is None:
        return "offline"
    minutes = (now - last_login).total_seconds() / 60
    if minutes < 5:
        return "online"
    if minutes < 30:
        return "away"
    return "offline"


class DashboardService:
    """Read-only views for the intranet start page.

    Each query opens its own DB session so ``overview`` can run them side
    by side on the threadpool.
    """

    def __init__(self, session_factory: sessionmaker, clock: Clock = utcnow):
        self.session_factory = session_factory
        self._now = clock

    def news_for_role(self, role: str, limit: int = 5) -> List[NewsOut]:
        with self.session_factory() as db:
            return [NewsOut.model_validate(a) for a in news_crud.list_for_role(db, role, limit=limit)]

    def upcoming_events(self, user_id: int, limit: int = 10) -> List[CalendarEventOut]:
        with self.session_factory() as db:
            rows = db.scalars(
                select(CalendarEvent)
                .where(CalendarEvent.end_at >= self._now())
                .order_by(CalendarEvent.start_at)
                .limit(limit)
            ).all()
            return [
                CalendarEventOut(id=e.id, title=e.title, start=as_utc(e.start_at), end=as_utc(e.end_at), location=e.location)
                for e in rows
            ]

    def team_status(self, limit: int = 20) -> List[TeamMember]:
        now = self._now()
        with self.session_factory() as db:
            users = db.scalars(
                select(User)
                .where(User.status == UserStatus.ACTIVE.value)
                .order_by(User.last_login.desc())
                .limit(limit)
            ).all()
            out = []
            for u in users:
                state = presence(u.last_login, now)
                out.append(TeamMember(
                    id=u.id, first_name=u.first_name, last_name=u.last_name, display_name=u.display_name,
                    avatar=u.avatar, department=u.department, position=u.position,
                    last_login=as_utc(u.last_login),
                    is_online=u.last_login is not None and now - as_utc(u.last_login) < timedelta(minutes=15),
                    presence=state,
                ))
            return out

    def user_stats(self, user_id: int) -> UserStats:
        now = self._now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        with self.session_factory() as db:
            hours = db.scalar(
                select(func.coalesce(func.sum(Timesheet.hours), 0))
                .where(Timesheet.user_id == user_id, Timesheet.work_date >= month_start.date())
            )
            pending = db.scalar(
                select(func.count()).select_from(Expense)
                .where(Expense.user_id == user_id, Expense.status == SUBMITTED)
            )
            uploads = db.scalar(
                select(func.count()).select_from(UploadedFile)
                .where(UploadedFile.uploaded_by_id == user_id, UploadedFile.created_at >= now - timedelta(days=7))
            )
            return UserStats(monthly_hours=float(hours or 0), pending_expenses=pending or 0, recent_uploads=uploads or 0)

    def pending_approvals(self, role: str) -> PendingApprovals:
        if Role(role) not in APPROVERS:
            return PendingApprovals()
        with self.session_factory() as db:
            timesheets = db.scalar(select(func.count()).select_from(Timesheet).where(Timesheet.status == SUBMITTED))
            expenses = db.scalar(select(func.count()).select_from(Expense).where(Expense.status == SUBMITTED))
            return PendingApprovals(timesheets=timesheets or 0, expenses=expenses or 0)

    def low_stock_items(self, limit: int = 10) -> List[StockAlert]:
        with self.session_factory() as db:
            rows = db.scalars(
                select(InventoryItem)
                .where(or_(*(InventoryItem.status == s for s in LOW_STOCK_STATUSES)))
                .order_by(InventoryItem.current_stock)
                .limit(limit)
            ).all()
            return [StockAlert.model_validate(i) for i in rows]

    def recent_activities(self, user_id: int, limit: int = 10) -> List[Activity]:
        with self.session_factory() as db:
            rows = db.scalars(
                select(AuditLog)
                .where(AuditLog.user_id == user_id)
                .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
                .limit(limit)
            ).all()
            return [
                Activity(id=a.id, action=a.action, entity=a.entity, entity_id=a.entity_id,
                         changes=_load_json(a.changes), created_at=a.created_at)
                for a in rows
            ]

    async def overview(self, user: CurrentUser) -> Dashboard:
        # gather() propagates the first failure: no partial dashboards
        role = user.role.value
        (news, events, team, stats, approvals, stock, activities) = await asyncio.gather(
            run_in_threadpool(self.news_for_role, role),
            run_in_threadpool(self.upcoming_events, user.id),
            run_in_threadpool(self.team_status),
            run_in_threadpool(self.user_stats, user.id),
            run_in_threadpool(self.pending_approvals, role),
            run_in_threadpool(self.low_stock_items),
            run_in_threadpool(self.recent_activities, user.id),
        )
        logger.debug("dashboard_built", user_id=user.id, news=len(news), events=len(events))
        return Dashboard(
            news=news,
            upcoming_events=events,
            team_status=team,
            user_stats=stats,
            pending_approvals=approvals,
            low_stock_items=stock,
            recent_activities=activities,
            last_updated=self._now(),
        )


def _load_json(raw: Optional[str]):
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return {"raw": raw}
