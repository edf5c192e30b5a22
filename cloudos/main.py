# cloudos/main.py
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

import cloudos.models  # noqa: F401  registers every table
from cloudos.api.deps import AuthContext
from cloudos.api.v1.router import api_router
from cloudos.core.clock import Clock, utcnow
from cloudos.core.config import Settings, get_settings
from cloudos.core.errors import register_exception_handlers
from cloudos.core.logging import setup_logging
from cloudos.db.bootstrap import run_migrations_and_seed
from cloudos.db.session import make_engine, make_session_factory
from cloudos.middleware import RequestLoggingMiddleware
from cloudos.services.azure import AzureADClient
from cloudos.services.dashboard import DashboardService

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, clock: Clock = utcnow) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)

    api = FastAPI(
        title=settings.SERVICE_NAME,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        swagger_ui_parameters={"displayRequestDuration": True, "persistAuthorization": True},
    )

    engine = make_engine(settings.DATABASE_URL)
    session_factory = make_session_factory(engine)

    api.state.settings = settings
    api.state.clock = clock
    api.state.engine = engine
    api.state.session_factory = session_factory
    api.state.rate_limiters = {}
    api.state.auth = AuthContext.build(settings, session_factory, clock=clock)
    api.state.azure = AzureADClient(settings)
    api.state.dashboard = DashboardService(session_factory, clock=clock)

    api.add_middleware(RequestLoggingMiddleware)
    api.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(api, expose_internal_errors=settings.is_development)

    # metrics at /metrics (Prometheus)
    if settings.METRICS_ENABLED:
        Instrumentator().instrument(api).expose(api, include_in_schema=False, should_gzip=True)

    api.include_router(api_router, prefix=settings.API_PREFIX)

    @api.on_event("startup")
    def startup():
        logger.info("api_starting", environment=settings.ENVIRONMENT, prefix=settings.API_PREFIX)
        if settings.RUN_MIGRATIONS_ON_STARTUP:
            run_migrations_and_seed(settings, session_factory, clock=clock)

    @api.on_event("shutdown")
    def shutdown():
        engine.dispose()

    return api
