"""Capability ports the domain depends on."""

from __future__ import annotations

from .catalog import CatalogClient
from .entitlements import EntitlementChecker
from .notifications import JobCompleted, JobEvent, JobFailed, ProgressNotifier, ProgressUpdate
from .persistence import (
    CleanPlaylistJobRepository,
    PlaylistSyncConfigRepository,
    PlaylistSyncHistoryRepository,
    Repository,
    TrackMappingRepository,
)
from .unit_of_work import (
    RadioWashRepositories,
    RadioWashUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "CatalogClient",
    "CleanPlaylistJobRepository",
    "EntitlementChecker",
    "JobCompleted",
    "JobEvent",
    "JobFailed",
    "PlaylistSyncConfigRepository",
    "PlaylistSyncHistoryRepository",
    "ProgressNotifier",
    "ProgressUpdate",
    "RadioWashRepositories",
    "RadioWashUnitOfWork",
    "RepositoryCollection",
    "Repository",
    "TrackMappingRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
