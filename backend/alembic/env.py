"""Alembic environment for the Opsboard schema."""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import create_engine, pool

# ``backend`` lives one level above this directory's parent.
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.app import models  # noqa: E402,F401  (registers tables on Base.metadata)
from backend.app.database import Base, SQLALCHEMY_DATABASE_URL  # noqa: E402

config = context.config
if config.config_file_name is not None:
    # Keep application loggers alive when migrations run inside the API process.
    fileConfig(config.config_file_name, disable_existing_loggers=False)

database_url = config.get_main_option("sqlalchemy.url") or SQLALCHEMY_DATABASE_URL
is_sqlite = database_url.startswith("sqlite")

configure_options = {
    "target_metadata": Base.metadata,
    "render_as_batch": is_sqlite,
    "compare_type": True,
}


def run_offline() -> None:
    context.configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **configure_options,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = create_engine(
        database_url,
        poolclass=pool.NullPool,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )
    with engine.connect() as connection:
        context.configure(connection=connection, **configure_options)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
