"""Initial schema: cleaning jobs, track mappings, sync configs and history.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "clean_playlist_job",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("source_playlist_id", sa.String(), nullable=False),
        sa.Column("source_playlist_name", sa.String(), nullable=False),
        sa.Column("target_playlist_id", sa.String(), nullable=True),
        sa.Column("target_playlist_name", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("total_tracks", sa.Integer(), nullable=False),
        sa.Column("processed_tracks", sa.Integer(), nullable=False),
        sa.Column("matched_tracks", sa.Integer(), nullable=False),
        sa.Column("current_batch", sa.String(), nullable=True),
        sa.Column("batch_size", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_clean_playlist_job")),
    )
    op.create_index(
        op.f("ix_clean_playlist_job_user_id"), "clean_playlist_job", ["user_id"], unique=False
    )

    op.create_table(
        "track_mapping",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("job_id", sa.Uuid(), nullable=False),
        sa.Column("source_track_id", sa.String(), nullable=False),
        sa.Column("source_track_name", sa.String(), nullable=False),
        sa.Column("source_artist_name", sa.String(), nullable=False),
        sa.Column("is_explicit", sa.Boolean(), nullable=False),
        sa.Column("has_clean_match", sa.Boolean(), nullable=False),
        sa.Column("target_track_id", sa.String(), nullable=True),
        sa.Column("target_track_name", sa.String(), nullable=True),
        sa.Column("target_artist_name", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(has_clean_match AND target_track_id IS NOT NULL)"
            " OR (NOT has_clean_match AND target_track_id IS NULL)",
            name=op.f("ck_track_mapping_clean_match_target"),
        ),
        sa.ForeignKeyConstraint(
            ["job_id"],
            ["clean_playlist_job.id"],
            name=op.f("fk_track_mapping_job_id_clean_playlist_job"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_track_mapping")),
    )
    op.create_index(op.f("ix_track_mapping_job_id"), "track_mapping", ["job_id"], unique=False)
    op.create_index(
        "ix_track_mapping_job_source",
        "track_mapping",
        ["job_id", "source_track_id"],
        unique=False,
    )

    op.create_table(
        "playlist_sync_config",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("original_job_id", sa.Uuid(), nullable=False),
        sa.Column("source_playlist_id", sa.String(), nullable=False),
        sa.Column("target_playlist_id", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("sync_frequency", sa.String(length=32), nullable=False),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sync_status", sa.String(length=32), nullable=True),
        sa.Column("last_sync_error", sa.String(), nullable=True),
        sa.Column("next_scheduled_sync", sa.DateTime(timezone=True), nullable=True),
        sa.Column("consecutive_failures", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["original_job_id"],
            ["clean_playlist_job.id"],
            name=op.f("fk_playlist_sync_config_original_job_id_clean_playlist_job"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_playlist_sync_config")),
        sa.UniqueConstraint(
            "original_job_id", name=op.f("uq_playlist_sync_config_original_job_id")
        ),
    )
    op.create_index(
        op.f("ix_playlist_sync_config_user_id"), "playlist_sync_config", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_playlist_sync_config_next_scheduled_sync"),
        "playlist_sync_config",
        ["next_scheduled_sync"],
        unique=False,
    )

    op.create_table(
        "playlist_sync_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sync_config_id", sa.Uuid(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("tracks_added", sa.Integer(), nullable=False),
        sa.Column("tracks_removed", sa.Integer(), nullable=False),
        sa.Column("tracks_unchanged", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("execution_time_ms", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["sync_config_id"],
            ["playlist_sync_config.id"],
            name=op.f("fk_playlist_sync_history_sync_config_id_playlist_sync_config"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_playlist_sync_history")),
    )
    op.create_index(
        op.f("ix_playlist_sync_history_sync_config_id"),
        "playlist_sync_history",
        ["sync_config_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("playlist_sync_history")
    op.drop_table("playlist_sync_config")
    op.drop_table("track_mapping")
    op.drop_table("clean_playlist_job")
