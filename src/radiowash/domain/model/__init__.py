"""Domain model for playlist cleaning and synchronization."""

from __future__ import annotations

from .entity import Entity, new_id, utcnow
from .enums import JobStatus, SyncFrequency, SyncStatus
from .jobs import COMPLETED_BATCH_LABEL, NOT_STARTED, CleanPlaylistJob, JobProgress, TrackMapping
from .sync import PlaylistSyncConfig, PlaylistSyncHistory, SyncResult
from .track import TRACK_URI_PREFIX, UNKNOWN, PlaylistSummary, Track, format_artists, track_uri

__all__ = [
    "COMPLETED_BATCH_LABEL",
    "NOT_STARTED",
    "TRACK_URI_PREFIX",
    "UNKNOWN",
    "CleanPlaylistJob",
    "Entity",
    "JobProgress",
    "JobStatus",
    "PlaylistSummary",
    "PlaylistSyncConfig",
    "PlaylistSyncHistory",
    "SyncFrequency",
    "SyncResult",
    "SyncStatus",
    "Track",
    "TrackMapping",
    "format_artists",
    "new_id",
    "track_uri",
    "utcnow",
]
