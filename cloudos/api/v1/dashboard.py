# cloudos/api/v1/dashboard.py
import math

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cloudos.api.deps import get_current_user, get_dashboard_service, get_db
from cloudos.api.permissions import require_admin_or_support
from cloudos.core.errors import ApiError, DashboardFailed
from cloudos.crud.news import news_crud
from cloudos.schemas.dashboard import CalendarResponse, DashboardResponse, TeamStatusResponse
from cloudos.schemas.news import NewsCreate, NewsCreated, NewsOut, NewsPage, Pagination
from cloudos.schemas.user import CurrentUser
from cloudos.services.dashboard import DashboardService

logger = structlog.get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=DashboardResponse)
async def overview(
    user: CurrentUser = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    try:
        dashboard = await service.overview(user)
    except ApiError:
        raise
    except Exception:
        logger.exception("dashboard_failed", user_id=user.id)
        raise DashboardFailed()
    return DashboardResponse(dashboard=dashboard)


@router.get("/news", response_model=NewsPage)
def list_news(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items, total = news_crud.page_for_role(db, user.role.value, page=page, limit=limit)
    return NewsPage(
        articles=[NewsOut.model_validate(a) for a in items],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.post("/news", response_model=NewsCreated, status_code=201)
def create_news(
    body: NewsCreate,
    user: CurrentUser = Depends(require_admin_or_support),
    db: Session = Depends(get_db),
):
    article = news_crud.create_from(db, body, author_id=user.id)
    logger.info("news_created", article_id=article.id, author_id=user.id, status=article.status)
    return NewsCreated(article=NewsOut.model_validate(article))


@router.get("/calendar", response_model=CalendarResponse)
def calendar(
    user: CurrentUser = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    return CalendarResponse(events=service.upcoming_events(user.id))


@router.get("/team-status", response_model=TeamStatusResponse)
def team_status(service: DashboardService = Depends(get_dashboard_service)):
    return TeamStatusResponse(team_status=service.team_status())
