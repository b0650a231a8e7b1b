"""Alembic migrations for the SteamHistory catalog and history tables.

The database URL comes from, in order: ``alembic -x sqlalchemy.url=...``,
``STEAMHISTORY_DB_URL``, then ``alembic.ini``. Migrations always run on the
synchronous driver.
"""

import os
import sys
from pathlib import Path
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from steamhistory.common.models import Base

import steamhistory.apps.models  # noqa: F401
import steamhistory.history.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def migration_url() -> str:
    url = (
        context.get_x_argument(as_dictionary=True).get("sqlalchemy.url")
        or os.environ.get("STEAMHISTORY_DB_URL")
        or config.get_main_option("sqlalchemy.url")
    )
    return url.replace("+aiosqlite", "")


def run_migrations_offline() -> None:
    context.configure(
        url=migration_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(migration_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        # SQLite cannot ALTER most columns in place
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
