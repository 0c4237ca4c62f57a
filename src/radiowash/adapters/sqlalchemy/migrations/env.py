"""Alembic environment for the RadioWash schema."""

from __future__ import annotations

from logging.config import fileConfig
from pathlib import Path
from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from radiowash.adapters.sqlalchemy.mappings import enable_foreign_keys, mapper_registry
from radiowash.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

config = context.config

# pyproject-based configs carry no logging sections
if config.config_file_name is not None and Path(config.config_file_name).suffix == ".ini":
    fileConfig(config.config_file_name)

# SQLite needs batch mode for ALTER TABLE
CONFIGURE_OPTIONS = {
    "target_metadata": mapper_registry.metadata,
    "render_as_batch": True,
    "compare_type": True,
}


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **CONFIGURE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    context.configure(url=_database_url(), literal_binds=True, **CONFIGURE_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # upgrade_head(engine=...) hands over an open connection
    shared: Connection | None = config.attributes.get("connection")
    if shared is not None:
        _migrate(shared)
        return

    engine = enable_foreign_keys(create_engine(_database_url(), poolclass=pool.NullPool))
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
