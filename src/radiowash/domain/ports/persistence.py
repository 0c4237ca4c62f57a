"""Ports for persisting jobs, mappings and sync state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from radiowash.domain.model import (
    CleanPlaylistJob,
    PlaylistSyncConfig,
    PlaylistSyncHistory,
    TrackMapping,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...

    def get(self, entity_id: UUID) -> TEntity | None: ...


@runtime_checkable
class CleanPlaylistJobRepository(Repository[CleanPlaylistJob], Protocol):
    """Persistence contract for cleaning jobs."""

    def list_by_user(self, user_id: str) -> list[CleanPlaylistJob]: ...


@runtime_checkable
class TrackMappingRepository(Protocol):
    """Persistence contract for track mappings. Rows go away with their job."""

    def add_many(self, mappings: Iterable[TrackMapping]) -> None: ...

    def list_by_job(self, job_id: UUID) -> list[TrackMapping]: ...

    def count_by_job(self, job_id: UUID) -> int: ...


@runtime_checkable
class PlaylistSyncConfigRepository(Repository[PlaylistSyncConfig], Protocol):
    """Persistence contract for sync configurations."""

    def get_by_job(self, job_id: UUID) -> PlaylistSyncConfig | None: ...

    def list_by_user(self, user_id: str) -> list[PlaylistSyncConfig]: ...

    def list_due(self, now: datetime) -> list[PlaylistSyncConfig]: ...


@runtime_checkable
class PlaylistSyncHistoryRepository(Repository[PlaylistSyncHistory], Protocol):
    """Persistence contract for the append-only sync audit trail."""

    def list_by_config(self, config_id: UUID, *, limit: int) -> list[PlaylistSyncHistory]: ...
