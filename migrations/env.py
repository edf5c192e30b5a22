# migrations/env.py
from alembic import context
from sqlalchemy import engine_from_config, pool

from cloudos.core.config import Settings
from cloudos.db.base import Base
from cloudos.db.session import _normalize
import cloudos.models  # noqa: F401  registers every table

config = context.config

# bootstrap passes the app's URL; the CLI falls back to DATABASE_URL / DATA_DIR
db_url = config.get_main_option("sqlalchemy.url") or Settings().DATABASE_URL
config.set_main_option("sqlalchemy.url", _normalize(db_url).replace("%", "%%"))

target_metadata = Base.metadata


def run_migrations_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True, render_as_batch=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(config.get_section(config.config_ini_section), prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
