# cloudos/db/bootstrap.py
import os

import structlog
from alembic import command
from alembic.config import Config
from sqlalchemy.orm import sessionmaker

from cloudos.core.clock import Clock, utcnow
from cloudos.core.config import Settings
from cloudos.db.init_db import init_db
from cloudos.services.sessions import SessionStore

logger = structlog.get_logger(__name__)

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def alembic_config(database_url: str) -> Config:
    # Points explicitly at alembic.ini and migrations/
    cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(BASE_DIR, "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return cfg


def run_migrations_and_seed(settings: Settings, session_factory: sessionmaker, clock: Clock = utcnow) -> None:
    command.upgrade(alembic_config(settings.DATABASE_URL), "head")

    with session_factory() as db:
        init_db(db, settings)
        purged = SessionStore(settings.SESSION_TTL, clock=clock).purge_expired(db)
    logger.info("bootstrap_done", purged_sessions=purged)
