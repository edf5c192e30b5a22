# cloudos/models/__init__.py
# Importing the modules registers every table on Base.metadata (alembic, create_all).
from cloudos.models.user import User
from cloudos.models.session import UserSession
from cloudos.models.audit import AuditLog
from cloudos.models.news import NewsArticle, NewsPriority, NewsStatus
from cloudos.models.intranet import CalendarEvent, Expense, InventoryItem, Timesheet, UploadedFile

__all__ = [
    "User",
    "UserSession",
    "AuditLog",
    "NewsArticle",
    "NewsPriority",
    "NewsStatus",
    "CalendarEvent",
    "Expense",
    "InventoryItem",
    "Timesheet",
    "UploadedFile",
]
