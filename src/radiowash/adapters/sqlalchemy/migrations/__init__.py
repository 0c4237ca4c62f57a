"""Run the bundled Alembic migrations programmatically."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from radiowash.config import get_database_config

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def build_config(database_uri: str | None = None) -> Config:
    """Alembic config pointing at this package, independent of the working directory."""

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    if database_uri is not None:
        config.set_main_option("sqlalchemy.url", database_uri)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the schema to the latest revision.

    With ``engine`` the migration runs on one of its connections, which keeps
    in-memory SQLite databases intact.
    """

    if engine is None:
        command.upgrade(build_config(database_uri or get_database_config().uri), "head")
        return
    config = build_config()
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
