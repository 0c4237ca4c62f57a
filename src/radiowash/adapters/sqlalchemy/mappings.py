"""SQLAlchemy mapping metadata for the RadioWash domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    Uuid,
    event,
    orm,
)
from sqlalchemy.orm import configure_mappers

from radiowash.domain.model import (
    CleanPlaylistJob,
    JobStatus,
    PlaylistSyncConfig,
    PlaylistSyncHistory,
    SyncFrequency,
    SyncStatus,
    TrackMapping,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.engine.interfaces import DBAPIConnection
    from sqlalchemy.pool import ConnectionPoolEntry

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

clean_playlist_job_table = Table(
    "clean_playlist_job",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("user_id", String, nullable=False, index=True),
    Column("source_playlist_id", String, nullable=False),
    Column("source_playlist_name", String, nullable=False),
    Column("target_playlist_id", String, nullable=True),
    Column("target_playlist_name", String, nullable=False),
    Column("status", Enum(JobStatus, native_enum=False, length=32), nullable=False),
    Column("error_message", String, nullable=True),
    Column("total_tracks", Integer, nullable=False, default=0),
    Column("processed_tracks", Integer, nullable=False, default=0),
    Column("matched_tracks", Integer, nullable=False, default=0),
    Column("current_batch", String, nullable=True),
    Column("batch_size", Integer, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

track_mapping_table = Table(
    "track_mapping",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "job_id",
        UUIDColumnType,
        ForeignKey("clean_playlist_job.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("source_track_id", String, nullable=False),
    Column("source_track_name", String, nullable=False),
    Column("source_artist_name", String, nullable=False),
    Column("is_explicit", Boolean, nullable=False),
    Column("has_clean_match", Boolean, nullable=False),
    Column("target_track_id", String, nullable=True),
    Column("target_track_name", String, nullable=True),
    Column("target_artist_name", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    CheckConstraint(
        "(has_clean_match AND target_track_id IS NOT NULL)"
        " OR (NOT has_clean_match AND target_track_id IS NULL)",
        name="clean_match_target",
    ),
    Index("ix_track_mapping_job_source", "job_id", "source_track_id"),
)

playlist_sync_config_table = Table(
    "playlist_sync_config",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("user_id", String, nullable=False, index=True),
    Column(
        "original_job_id",
        UUIDColumnType,
        ForeignKey("clean_playlist_job.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("source_playlist_id", String, nullable=False),
    Column("target_playlist_id", String, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("sync_frequency", Enum(SyncFrequency, native_enum=False, length=32), nullable=False),
    Column("last_synced_at", UTCDateTime(), nullable=True),
    Column("last_sync_status", Enum(SyncStatus, native_enum=False, length=32), nullable=True),
    Column("last_sync_error", String, nullable=True),
    Column("next_scheduled_sync", UTCDateTime(), nullable=True, index=True),
    Column("consecutive_failures", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)

playlist_sync_history_table = Table(
    "playlist_sync_history",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "sync_config_id",
        UUIDColumnType,
        ForeignKey("playlist_sync_config.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("status", Enum(SyncStatus, native_enum=False, length=32), nullable=False),
    Column("tracks_added", Integer, nullable=False, default=0),
    Column("tracks_removed", Integer, nullable=False, default=0),
    Column("tracks_unchanged", Integer, nullable=False, default=0),
    Column("error_message", String, nullable=True),
    Column("execution_time_ms", Integer, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CleanPlaylistJob, clean_playlist_job_table)
    mapper_registry.map_imperatively(TrackMapping, track_mapping_table)
    mapper_registry.map_imperatively(PlaylistSyncConfig, playlist_sync_config_table)
    mapper_registry.map_imperatively(PlaylistSyncHistory, playlist_sync_history_table)

    configure_mappers()
    return mapper_registry


def _enable_sqlite_foreign_keys(
    dbapi_connection: DBAPIConnection,
    connection_record: ConnectionPoolEntry,
) -> None:
    _ = connection_record
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def enable_foreign_keys(engine: Engine) -> Engine:
    """Make SQLite enforce ``ON DELETE CASCADE``; other dialects already do."""

    if engine.dialect.name == "sqlite" and not event.contains(
        engine, "connect", _enable_sqlite_foreign_keys
    ):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine
