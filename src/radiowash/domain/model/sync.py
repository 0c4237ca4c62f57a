"""Sync configurations and their audit history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from radiowash.domain.errors import HistoryFinalizedError

from .entity import Entity, utcnow
from .enums import SyncFrequency, SyncStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(eq=False, kw_only=True)
class PlaylistSyncConfig(Entity):
    """Standing instruction to keep a cleaned playlist in step with its source.

    Configurations are disabled, never deleted, when the owner loses the
    entitlement or runs keep failing.
    """

    user_id: str
    original_job_id: UUID
    source_playlist_id: str
    target_playlist_id: str
    is_active: bool = True
    sync_frequency: SyncFrequency = SyncFrequency.DAILY
    last_synced_at: datetime | None = None
    last_sync_status: SyncStatus | None = None
    last_sync_error: str | None = None
    next_scheduled_sync: datetime | None = None
    consecutive_failures: int = 0
    updated_at: datetime = field(default_factory=utcnow)

    def is_due(self, now: datetime) -> bool:
        return (
            self.is_active
            and self.sync_frequency is not SyncFrequency.MANUAL
            and self.next_scheduled_sync is not None
            and self.next_scheduled_sync <= now
        )

    def activate(self, *, next_sync: datetime | None, now: datetime | None = None) -> None:
        self.is_active = True
        self.consecutive_failures = 0
        self.next_scheduled_sync = next_sync
        self.updated_at = now or utcnow()

    def deactivate(self, *, now: datetime | None = None) -> None:
        self.is_active = False
        self.updated_at = now or utcnow()

    def change_frequency(
        self,
        frequency: SyncFrequency,
        *,
        next_sync: datetime | None,
        now: datetime | None = None,
    ) -> None:
        self.sync_frequency = frequency
        self.next_scheduled_sync = next_sync
        self.updated_at = now or utcnow()

    def record_success(self, *, synced_at: datetime, next_sync: datetime | None) -> None:
        self.last_synced_at = synced_at
        self.last_sync_status = SyncStatus.COMPLETED
        self.last_sync_error = None
        self.consecutive_failures = 0
        self.next_scheduled_sync = next_sync
        self.updated_at = synced_at

    def record_failure(self, message: str, *, now: datetime, max_failures: int) -> bool:
        """Store the failure and deactivate once ``max_failures`` runs failed in a row.

        Returns whether this failure disabled the configuration.
        """

        self.last_sync_status = SyncStatus.FAILED
        self.last_sync_error = message
        self.consecutive_failures += 1
        self.updated_at = now
        if self.is_active and self.consecutive_failures >= max_failures:
            self.is_active = False
            return True
        return False


@dataclass(eq=False, kw_only=True)
class PlaylistSyncHistory(Entity):
    """Append-only audit row for one sync attempt."""

    sync_config_id: UUID
    started_at: datetime = field(default_factory=utcnow)
    status: SyncStatus = SyncStatus.RUNNING
    completed_at: datetime | None = None
    tracks_added: int = 0
    tracks_removed: int = 0
    tracks_unchanged: int = 0
    error_message: str | None = None
    execution_time_ms: int | None = None

    @property
    def is_finalized(self) -> bool:
        return self.status in {SyncStatus.COMPLETED, SyncStatus.FAILED}

    def complete(self, *, added: int, removed: int, unchanged: int, now: datetime) -> None:
        self._finalize(SyncStatus.COMPLETED, now)
        self.tracks_added = added
        self.tracks_removed = removed
        self.tracks_unchanged = unchanged

    def fail(self, message: str, *, now: datetime) -> None:
        self._finalize(SyncStatus.FAILED, now)
        self.error_message = message

    def _finalize(self, status: SyncStatus, now: datetime) -> None:
        if self.is_finalized:
            raise HistoryFinalizedError(f"Sync history {self.id} is already {self.status}")
        self.status = status
        self.completed_at = now
        self.execution_time_ms = max(0, int((now - self.started_at).total_seconds() * 1000))


@dataclass(frozen=True, slots=True)
class SyncResult:
    success: bool
    added: int = 0
    removed: int = 0
    unchanged: int = 0
    duration_ms: int = 0
    error_message: str | None = None
