# cloudos/schemas/dashboard.py
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional
from cloudos.schemas.base import ApiModel
from cloudos.schemas.news import NewsOut


class CalendarEventOut(ApiModel):
    id: int
    title: str
    start: datetime
    end: datetime
    location: Optional[str] = None


class TeamMember(ApiModel):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    last_login: Optional[datetime] = None
    is_online: bool = False
    presence: str = "offline"


class UserStats(ApiModel):
    monthly_hours: float = 0
    pending_expenses: int = 0
    recent_uploads: int = 0


class PendingApprovals(ApiModel):
    timesheets: int = 0
    expenses: int = 0


class StockAlert(ApiModel):
    id: int
    name: str
    sku: str
    current_stock: int
    min_stock: int
    status: str


class Activity(ApiModel):
    id: int
    action: str
    entity: str
    entity_id: Optional[str] = None
    changes: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class Dashboard(ApiModel):
    news: List[NewsOut]
    upcoming_events: List[CalendarEventOut]
    team_status: List[TeamMember]
    user_stats: UserStats
    pending_approvals: PendingApprovals
    low_stock_items: List[StockAlert]
    recent_activities: List[Activity]
    last_updated: datetime


class DashboardResponse(ApiModel):
    success: bool = True
    dashboard: Dashboard


class CalendarResponse(ApiModel):
    success: bool = True
    events: List[CalendarEventOut]


class TeamStatusResponse(ApiModel):
    success: bool = True
    team_status: List[TeamMember]
