"""Sync orchestrator: keep cleaned playlists in step with their sources.

A sync run compares the source playlist, the cleaned target and the mappings
recorded by the original cleaning job, resolves only tracks that are new to the
source and applies the minimal add/remove mutations. Every attempt leaves a
history row behind, successful or not.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from radiowash.domain.cleaning import DEFAULT_CHUNK_SIZE, chunked, failure_message
from radiowash.domain.delta import calculate_delta
from radiowash.domain.errors import (
    AccessDeniedError,
    EntitlementRequiredError,
    InvalidJobStateError,
    JobNotFoundError,
    SyncConfigNotFoundError,
    SyncDisabledError,
)
from radiowash.domain.model import (
    JobStatus,
    PlaylistSyncConfig,
    PlaylistSyncHistory,
    SyncFrequency,
    SyncResult,
    TrackMapping,
    track_uri,
    utcnow,
)
from radiowash.domain.resolution import CleanTrackResolver
from radiowash.domain.schedule import next_sync_time

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from radiowash.domain.delta import PlaylistDelta
    from radiowash.domain.model import Track
    from radiowash.domain.ports import (
        CatalogClient,
        EntitlementChecker,
        RadioWashUnitOfWork,
        UnitOfWorkFactory,
    )
    from radiowash.domain.schedule import Clock

log = getLogger(__name__)

DEFAULT_HISTORY_LIMIT: Final[int] = 20
DEFAULT_MAX_CONSECUTIVE_FAILURES: Final[int] = 3
ENTITLEMENT_LOST_MESSAGE: Final[str] = "User no longer has an active subscription; sync disabled"


class PlaylistSyncService:
    """Manage sync configurations and execute sync runs."""

    def __init__(
        self,
        *,
        catalog: CatalogClient,
        unit_of_work: UnitOfWorkFactory,
        entitlements: EntitlementChecker,
        resolver: CleanTrackResolver | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        default_frequency: SyncFrequency = SyncFrequency.DAILY,
        max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES,
        clock: Clock = utcnow,
    ) -> None:
        self._catalog = catalog
        self._unit_of_work = unit_of_work
        self._entitlements = entitlements
        self._resolver = resolver or CleanTrackResolver(catalog)
        self._chunk_size = chunk_size
        self._default_frequency = default_frequency
        self._max_consecutive_failures = max_consecutive_failures
        self._clock = clock
        # Run failures that could not be written, keyed by config id.
        self._unrecorded_failures: dict[UUID, tuple[UUID, str]] = {}

    # Configuration ------------------------------------------------------------

    def enable_sync(self, job_id: UUID, user_id: str) -> PlaylistSyncConfig:
        if not self._entitlements.is_entitled(user_id):
            raise EntitlementRequiredError("Playlist sync requires an active subscription")

        now = self._clock()
        with self._unit_of_work() as uow:
            job = uow.repositories.jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            if job.user_id != user_id:
                raise AccessDeniedError(f"Job {job_id} belongs to another user")
            if job.status is not JobStatus.COMPLETED or job.target_playlist_id is None:
                raise InvalidJobStateError(
                    f"Job {job_id} is {job.status}; only completed jobs can be synced"
                )

            existing = uow.repositories.sync_configs.get_by_job(job_id)
            if existing is not None:
                if not existing.is_active:
                    existing.activate(
                        next_sync=next_sync_time(existing.sync_frequency, clock=self._clock),
                        now=now,
                    )
                    uow.commit()
                    log.info("Reactivated sync config %s for job %s", existing.id, job_id)
                return existing

            config = PlaylistSyncConfig(
                user_id=user_id,
                original_job_id=job.id,
                source_playlist_id=job.source_playlist_id,
                target_playlist_id=job.target_playlist_id,
                sync_frequency=self._default_frequency,
                next_scheduled_sync=next_sync_time(self._default_frequency, clock=self._clock),
            )
            uow.repositories.sync_configs.add(config)
            uow.commit()

        log.info(
            "Enabled %s sync for job %s as config %s", config.sync_frequency, job_id, config.id
        )
        return config

    def disable_sync(self, config_id: UUID, user_id: str) -> bool:
        with self._unit_of_work() as uow:
            config = uow.repositories.sync_configs.get(config_id)
            if config is None or config.user_id != user_id:
                return False
            config.deactivate(now=self._clock())
            uow.commit()
        log.info("Disabled sync config %s", config_id)
        return True

    def update_frequency(
        self,
        config_id: UUID,
        frequency: SyncFrequency,
        user_id: str,
    ) -> PlaylistSyncConfig:
        with self._unit_of_work() as uow:
            config = self._owned_config(uow, config_id, user_id)
            config.change_frequency(
                frequency,
                next_sync=next_sync_time(frequency, config.last_synced_at, clock=self._clock),
                now=self._clock(),
            )
            uow.commit()
        return config

    def list_configs(self, user_id: str) -> list[PlaylistSyncConfig]:
        with self._unit_of_work() as uow:
            return uow.repositories.sync_configs.list_by_user(user_id)

    def get_history(
        self,
        config_id: UUID,
        *,
        user_id: str | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[PlaylistSyncHistory]:
        with self._unit_of_work() as uow:
            if user_id is not None:
                self._owned_config(uow, config_id, user_id)
            return uow.repositories.sync_history.list_by_config(config_id, limit=limit)

    # Runs ---------------------------------------------------------------------

    def sync_now(self, config_id: UUID, user_id: str) -> SyncResult:
        with self._unit_of_work() as uow:
            config = self._owned_config(uow, config_id, user_id)
            if not config.is_active:
                raise SyncDisabledError(f"Sync configuration {config_id} is disabled")
        return self.sync_config(config_id)

    def run_due_syncs(self, now: datetime | None = None) -> dict[UUID, SyncResult]:
        """Run every active configuration whose next scheduled sync has passed."""

        moment = now or self._clock()
        with self._unit_of_work() as uow:
            due = [config.id for config in uow.repositories.sync_configs.list_due(moment)]
        log.info("%d sync configuration(s) due", len(due))

        results: dict[UUID, SyncResult] = {}
        for config_id in due:
            try:
                results[config_id] = self.sync_config(config_id)
            except Exception:
                log.exception("Scheduled sync for config %s did not run", config_id)
        return results

    def sync_config(self, config_id: UUID) -> SyncResult:
        """Execute one sync run for a configuration.

        Run failures are recorded on the history row and the configuration and
        reported through the returned result; only persistence failures while
        recording them propagate. The next call for the same configuration
        then finishes recording the failed run instead of starting a new one.
        """

        unrecorded = self._unrecorded_failures.get(config_id)
        if unrecorded is not None:
            history_id, message = unrecorded
            log.info("Recording earlier failed run %s of config %s", history_id, config_id)
            return self._record_failure(config_id, history_id, message)

        history = self._open_history(config_id)
        try:
            return self._run(config_id, history)
        except Exception as exc:
            log.exception("Sync run for config %s failed", config_id)
            return self._record_failure(config_id, history.id, failure_message(exc))

    def _open_history(self, config_id: UUID) -> PlaylistSyncHistory:
        with self._unit_of_work() as uow:
            config = uow.repositories.sync_configs.get(config_id)
            if config is None:
                raise SyncConfigNotFoundError(config_id)
            if not config.is_active:
                raise SyncDisabledError(f"Sync configuration {config_id} is disabled")
            history = PlaylistSyncHistory(sync_config_id=config.id, started_at=self._clock())
            uow.repositories.sync_history.add(history)
            uow.commit()
        return history

    def _run(self, config_id: UUID, history: PlaylistSyncHistory) -> SyncResult:
        with self._unit_of_work() as uow:
            config = self._load_config(uow, config_id)
            mappings = uow.repositories.mappings.list_by_job(config.original_job_id)

        if not self._entitlements.is_entitled(config.user_id):
            return self._disable_for_entitlement(config_id, history.id)

        source = self._catalog.get_playlist_tracks(config.source_playlist_id)
        target = self._catalog.get_playlist_tracks(config.target_playlist_id)
        delta = calculate_delta(source, target, mappings)
        log.info(
            "Config %s: %d to add, %d to remove, %d new source tracks",
            config_id,
            len(delta.tracks_to_add),
            len(delta.tracks_to_remove),
            len(delta.new_tracks),
        )

        new_mappings = self._map_new_tracks(config.original_job_id, delta.new_tracks)
        if new_mappings:
            with self._unit_of_work() as uow:
                uow.repositories.mappings.add_many(new_mappings)
                uow.commit()

        to_add = _additions(delta, new_mappings, {track.id for track in target})
        for chunk in chunked([track_uri(track_id) for track_id in to_add], self._chunk_size):
            self._catalog.add_tracks(config.target_playlist_id, chunk)
        to_remove = delta.tracks_to_remove
        for chunk in chunked([track_uri(track_id) for track_id in to_remove], self._chunk_size):
            self._catalog.remove_tracks(config.target_playlist_id, chunk)

        added = len(to_add)
        removed = len(to_remove)
        unchanged = len(target) - removed
        now = self._clock()
        with self._unit_of_work() as uow:
            stored_history = self._load_history(uow, history.id)
            stored_history.complete(added=added, removed=removed, unchanged=unchanged, now=now)
            stored_config = self._load_config(uow, config_id)
            stored_config.record_success(
                synced_at=now,
                next_sync=next_sync_time(stored_config.sync_frequency, now, clock=self._clock),
            )
            uow.commit()

        log.info(
            "Config %s synced: %d added, %d removed, %d unchanged",
            config_id,
            added,
            removed,
            unchanged,
        )
        return SyncResult(
            success=True,
            added=added,
            removed=removed,
            unchanged=unchanged,
            duration_ms=stored_history.execution_time_ms or 0,
        )

    def _map_new_tracks(self, job_id: UUID, tracks: list[Track]) -> list[TrackMapping]:
        mappings: list[TrackMapping] = []
        for track in tracks:
            try:
                clean = self._resolver.resolve(track)
            except Exception as exc:  # noqa: BLE001 - unmapped tracks are retried next run
                log.warning("Could not resolve new track %s: %s", track.id, exc)
                continue
            mappings.append(TrackMapping.from_resolution(job_id, track, clean))
        return mappings

    def _disable_for_entitlement(self, config_id: UUID, history_id: UUID) -> SyncResult:
        now = self._clock()
        with self._unit_of_work() as uow:
            config = self._load_config(uow, config_id)
            config.deactivate(now=now)
            config.record_failure(
                ENTITLEMENT_LOST_MESSAGE,
                now=now,
                max_failures=self._max_consecutive_failures,
            )
            history = self._load_history(uow, history_id)
            history.fail(ENTITLEMENT_LOST_MESSAGE, now=now)
            uow.commit()
        log.warning("Config %s disabled: owner %s is not entitled", config_id, config.user_id)
        return SyncResult(
            success=False,
            duration_ms=history.execution_time_ms or 0,
            error_message=ENTITLEMENT_LOST_MESSAGE,
        )

    def _record_failure(self, config_id: UUID, history_id: UUID, message: str) -> SyncResult:
        self._unrecorded_failures[config_id] = (history_id, message)
        now = self._clock()
        with self._unit_of_work() as uow:
            history = self._load_history(uow, history_id)
            history.fail(message, now=now)
            config = self._load_config(uow, config_id)
            disabled = config.record_failure(
                message, now=now, max_failures=self._max_consecutive_failures
            )
            uow.commit()
        del self._unrecorded_failures[config_id]
        if disabled:
            log.warning(
                "Config %s disabled after %d consecutive failures",
                config_id,
                config.consecutive_failures,
            )
        return SyncResult(
            success=False,
            duration_ms=history.execution_time_ms or 0,
            error_message=message,
        )

    @staticmethod
    def _load_config(uow: RadioWashUnitOfWork, config_id: UUID) -> PlaylistSyncConfig:
        config = uow.repositories.sync_configs.get(config_id)
        if config is None:
            raise SyncConfigNotFoundError(config_id)
        return config

    @staticmethod
    def _load_history(uow: RadioWashUnitOfWork, history_id: UUID) -> PlaylistSyncHistory:
        history = uow.repositories.sync_history.get(history_id)
        if history is None:
            raise LookupError(f"Sync history {history_id} vanished mid-run")
        return history

    def _owned_config(
        self,
        uow: RadioWashUnitOfWork,
        config_id: UUID,
        user_id: str,
    ) -> PlaylistSyncConfig:
        config = self._load_config(uow, config_id)
        if config.user_id != user_id:
            raise AccessDeniedError(f"Sync configuration {config_id} belongs to another user")
        return config


def _additions(
    delta: PlaylistDelta,
    new_mappings: list[TrackMapping],
    present: set[str],
) -> list[str]:
    candidates = list(delta.tracks_to_add)
    candidates.extend(
        mapping.target_track_id
        for mapping in new_mappings
        if mapping.has_clean_match and mapping.target_track_id
    )
    return [track_id for track_id in dict.fromkeys(candidates) if track_id not in present]
