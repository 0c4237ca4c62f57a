"""SQLAlchemy adapter package for RadioWash."""

from __future__ import annotations

from .mappings import enable_foreign_keys, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCleanPlaylistJobRepository,
    SqlAlchemyPlaylistSyncConfigRepository,
    SqlAlchemyPlaylistSyncHistoryRepository,
    SqlAlchemyTrackMappingRepository,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    create_database_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCleanPlaylistJobRepository",
    "SqlAlchemyPlaylistSyncConfigRepository",
    "SqlAlchemyPlaylistSyncHistoryRepository",
    "SqlAlchemyTrackMappingRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "create_database_engine",
    "enable_foreign_keys",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
