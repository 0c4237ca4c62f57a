"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import func, select

from radiowash.adapters.sqlalchemy.mappings import (
    clean_playlist_job_table,
    playlist_sync_config_table,
    playlist_sync_history_table,
    track_mapping_table,
)
from radiowash.domain.model import (
    CleanPlaylistJob,
    PlaylistSyncConfig,
    PlaylistSyncHistory,
    SyncFrequency,
    TrackMapping,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable
    from datetime import datetime

    from sqlalchemy.orm import Session


class SqlAlchemyEntityRepository[TEntity]:
    """Shared add/get for aggregates keyed by their UUID."""

    def __init__(self, session: Session, entity_cls: type[TEntity]) -> None:
        self.session = session
        self._entity_cls = entity_cls

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)

    def get(self, entity_id: uuid.UUID) -> TEntity | None:
        return self.session.get(self._entity_cls, entity_id)


class SqlAlchemyCleanPlaylistJobRepository(SqlAlchemyEntityRepository[CleanPlaylistJob]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, CleanPlaylistJob)

    def list_by_user(self, user_id: str) -> list[CleanPlaylistJob]:
        stmt = (
            select(CleanPlaylistJob)
            .where(clean_playlist_job_table.c.user_id == user_id)
            .order_by(clean_playlist_job_table.c.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyTrackMappingRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add_many(self, mappings: Iterable[TrackMapping]) -> None:
        self.session.add_all(list(mappings))

    def list_by_job(self, job_id: uuid.UUID) -> list[TrackMapping]:
        stmt = (
            select(TrackMapping)
            .where(track_mapping_table.c.job_id == job_id)
            .order_by(track_mapping_table.c.created_at, track_mapping_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def count_by_job(self, job_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(track_mapping_table)
            .where(track_mapping_table.c.job_id == job_id)
        )
        return cast(int, self.session.execute(stmt).scalar_one())


class SqlAlchemyPlaylistSyncConfigRepository(SqlAlchemyEntityRepository[PlaylistSyncConfig]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, PlaylistSyncConfig)

    def get_by_job(self, job_id: uuid.UUID) -> PlaylistSyncConfig | None:
        stmt = select(PlaylistSyncConfig).where(
            playlist_sync_config_table.c.original_job_id == job_id
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_by_user(self, user_id: str) -> list[PlaylistSyncConfig]:
        stmt = (
            select(PlaylistSyncConfig)
            .where(playlist_sync_config_table.c.user_id == user_id)
            .order_by(playlist_sync_config_table.c.created_at)
        )
        return list(self.session.execute(stmt).scalars())

    def list_due(self, now: datetime) -> list[PlaylistSyncConfig]:
        table = playlist_sync_config_table
        stmt = (
            select(PlaylistSyncConfig)
            .where(table.c.is_active.is_(True))
            .where(table.c.sync_frequency != SyncFrequency.MANUAL)
            .where(table.c.next_scheduled_sync.is_not(None))
            .where(table.c.next_scheduled_sync <= now)
            .order_by(table.c.next_scheduled_sync)
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyPlaylistSyncHistoryRepository(SqlAlchemyEntityRepository[PlaylistSyncHistory]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, PlaylistSyncHistory)

    def list_by_config(self, config_id: uuid.UUID, *, limit: int) -> list[PlaylistSyncHistory]:
        stmt = (
            select(PlaylistSyncHistory)
            .where(playlist_sync_history_table.c.sync_config_id == config_id)
            .order_by(playlist_sync_history_table.c.started_at.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())


if TYPE_CHECKING:
    from radiowash.domain.ports import (
        CleanPlaylistJobRepository,
        PlaylistSyncConfigRepository,
        PlaylistSyncHistoryRepository,
        TrackMappingRepository,
    )

    _session = cast("Session", object())
    _jobs_check: CleanPlaylistJobRepository = SqlAlchemyCleanPlaylistJobRepository(_session)
    _mappings_check: TrackMappingRepository = SqlAlchemyTrackMappingRepository(_session)
    _configs_check: PlaylistSyncConfigRepository = SqlAlchemyPlaylistSyncConfigRepository(_session)
    _history_check: PlaylistSyncHistoryRepository = SqlAlchemyPlaylistSyncHistoryRepository(
        _session
    )
