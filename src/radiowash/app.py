"""Application orchestration entry points."""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import OperationalError

from radiowash.adapters.entitlements import HttpEntitlementChecker, StaticEntitlementChecker
from radiowash.adapters.notifications import CompositeNotifier, LoggingNotifier, WebhookNotifier
from radiowash.adapters.spotify import SpotifyClient
from radiowash.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from radiowash.config import (
    get_entitlement_config,
    get_notification_config,
    get_processing_config,
    get_spotify_config,
)
from radiowash.domain.cleaning import CleanPlaylistService
from radiowash.domain.errors import UpstreamTransientError
from radiowash.domain.model import utcnow
from radiowash.domain.resolution import CleanTrackResolver
from radiowash.domain.syncing import DEFAULT_HISTORY_LIMIT, PlaylistSyncService

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from datetime import datetime
    from uuid import UUID

    from radiowash.config import EntitlementConfig, NotificationConfig, ProcessingConfig
    from radiowash.domain.model import (
        CleanPlaylistJob,
        JobProgress,
        PlaylistSyncConfig,
        PlaylistSyncHistory,
        SyncFrequency,
        SyncResult,
    )
    from radiowash.domain.ports import (
        CatalogClient,
        EntitlementChecker,
        ProgressNotifier,
        UnitOfWorkFactory,
    )
    from radiowash.domain.schedule import Clock

log = getLogger(__name__)

RETRYABLE_ERRORS: tuple[type[Exception], ...] = (UpstreamTransientError, OperationalError)


@dataclass(frozen=True, slots=True)
class RadioWashServices:
    cleaning: CleanPlaylistService
    syncing: PlaylistSyncService
    processing: ProcessingConfig
    closers: tuple[Callable[[], None], ...] = ()

    def close(self) -> None:
        """Release the HTTP clients owned by these services."""

        for close in self.closers:
            close()


def build_notifier(config: NotificationConfig | None = None) -> ProgressNotifier:
    """Log every event; also POST it when a webhook URL is configured."""

    effective = config or get_notification_config()
    if effective.webhook_url is None:
        return LoggingNotifier()
    return CompositeNotifier(
        notifiers=(
            LoggingNotifier(),
            WebhookNotifier(url=effective.webhook_url, resilience=effective.resilience),
        )
    )


def build_entitlement_checker(config: EntitlementConfig | None = None) -> EntitlementChecker:
    effective = config or get_entitlement_config()
    if effective.service_url is None:
        log.warning("No entitlement service configured; every user is treated as entitled")
        return StaticEntitlementChecker(entitled=True)
    return HttpEntitlementChecker(config=effective)


def build_services(
    *,
    catalog: CatalogClient | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    notifier: ProgressNotifier | None = None,
    entitlements: EntitlementChecker | None = None,
    processing: ProcessingConfig | None = None,
    clock: Clock = utcnow,
) -> RadioWashServices:
    """Wire the domain services to the configured adapters.

    Anything passed in explicitly wins over the environment-driven default.
    The SQLAlchemy adapter is started only when it is actually used. Adapters
    built here are closed by ``RadioWashServices.close``.
    """

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyUnitOfWork
    effective_catalog = catalog or SpotifyClient(config=get_spotify_config())
    effective_processing = processing or get_processing_config()
    closers: list[Callable[[], None]] = []
    if notifier is None:
        notifier = build_notifier()
        if isinstance(notifier, CompositeNotifier):
            closers.append(notifier.close)
    if entitlements is None:
        entitlements = build_entitlement_checker()
        if isinstance(entitlements, HttpEntitlementChecker):
            closers.append(entitlements.close)
    resolver = CleanTrackResolver(
        effective_catalog, search_limit=effective_processing.search_limit
    )

    cleaning = CleanPlaylistService(
        catalog=effective_catalog,
        unit_of_work=unit_of_work_factory,
        notifier=notifier,
        resolver=resolver,
        progress_batches=effective_processing.progress_batches,
        chunk_size=effective_processing.playlist_chunk_size,
        clock=clock,
    )
    syncing = PlaylistSyncService(
        catalog=effective_catalog,
        unit_of_work=unit_of_work_factory,
        entitlements=entitlements,
        resolver=resolver,
        chunk_size=effective_processing.playlist_chunk_size,
        default_frequency=effective_processing.default_sync_frequency,
        max_consecutive_failures=effective_processing.max_consecutive_sync_failures,
        clock=clock,
    )
    return RadioWashServices(
        cleaning=cleaning,
        syncing=syncing,
        processing=effective_processing,
        closers=tuple(closers),
    )


def run_with_retries[T](
    func: Callable[[], T],
    *,
    attempts: int,
    backoff_seconds: float,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``func``, retrying transient failures with exponential backoff."""

    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")
    attempt = 1
    while True:
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            if attempt >= attempts:
                raise
            delay = backoff_seconds * 2 ** (attempt - 1)
            log.warning(
                "%s failed on attempt %d/%d (%s); retrying in %.1fs",
                description,
                attempt,
                attempts,
                exc,
                delay,
            )
            sleep(delay)
            attempt += 1


@contextmanager
def _using(services: RadioWashServices | None) -> Iterator[RadioWashServices]:
    """Yield ``services``, or services built (and closed) for this call."""

    if services is not None:
        yield services
        return
    owned = build_services()
    try:
        yield owned
    finally:
        owned.close()


def create_cleaning_job(
    user_id: str,
    source_playlist_id: str,
    target_name: str | None = None,
    *,
    services: RadioWashServices | None = None,
) -> CleanPlaylistJob:
    with _using(services) as effective:
        return effective.cleaning.create_job(user_id, source_playlist_id, target_name)


def process_job(
    job_id: UUID,
    *,
    services: RadioWashServices | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CleanPlaylistJob:
    """Process a cleaning job; escaping transient errors re-dispatch it.

    A re-dispatch after a lost failure write records that failure instead of
    leaving the job in ``processing``.
    """

    with _using(services) as effective:
        job = run_with_retries(
            lambda: effective.cleaning.process_job(job_id),
            attempts=effective.processing.job_attempts,
            backoff_seconds=effective.processing.retry_backoff_seconds,
            description=f"Cleaning job {job_id}",
            sleep=sleep,
        )
    log.info(
        "Cleaning job %s finished as %s: %d/%d processed, %d matched",
        job.id,
        job.status,
        job.processed_tracks,
        job.total_tracks,
        job.matched_tracks,
    )
    return job


def get_job_progress(
    job_id: UUID,
    user_id: str | None = None,
    *,
    services: RadioWashServices | None = None,
) -> JobProgress:
    with _using(services) as effective:
        return effective.cleaning.get_progress(job_id, user_id=user_id)


def enable_sync(
    job_id: UUID,
    user_id: str,
    *,
    services: RadioWashServices | None = None,
) -> PlaylistSyncConfig:
    with _using(services) as effective:
        return effective.syncing.enable_sync(job_id, user_id)


def disable_sync(
    config_id: UUID,
    user_id: str,
    *,
    services: RadioWashServices | None = None,
) -> bool:
    with _using(services) as effective:
        return effective.syncing.disable_sync(config_id, user_id)


def update_sync_frequency(
    config_id: UUID,
    frequency: SyncFrequency,
    user_id: str,
    *,
    services: RadioWashServices | None = None,
) -> PlaylistSyncConfig:
    with _using(services) as effective:
        return effective.syncing.update_frequency(config_id, frequency, user_id)


def get_sync_history(
    config_id: UUID,
    user_id: str | None = None,
    *,
    limit: int = DEFAULT_HISTORY_LIMIT,
    services: RadioWashServices | None = None,
) -> list[PlaylistSyncHistory]:
    with _using(services) as effective:
        return effective.syncing.get_history(config_id, user_id=user_id, limit=limit)


def sync_now(
    config_id: UUID,
    user_id: str,
    *,
    services: RadioWashServices | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncResult:
    with _using(services) as effective:
        return run_with_retries(
            lambda: effective.syncing.sync_now(config_id, user_id),
            attempts=effective.processing.job_attempts,
            backoff_seconds=effective.processing.retry_backoff_seconds,
            description=f"Sync of config {config_id}",
            sleep=sleep,
        )


def sync_config(
    config_id: UUID,
    *,
    services: RadioWashServices | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncResult:
    with _using(services) as effective:
        return run_with_retries(
            lambda: effective.syncing.sync_config(config_id),
            attempts=effective.processing.job_attempts,
            backoff_seconds=effective.processing.retry_backoff_seconds,
            description=f"Sync of config {config_id}",
            sleep=sleep,
        )


def run_due_syncs(
    now: datetime | None = None,
    *,
    services: RadioWashServices | None = None,
) -> dict[UUID, SyncResult]:
    with _using(services) as effective:
        results = effective.syncing.run_due_syncs(now)
    succeeded = sum(1 for result in results.values() if result.success)
    log.info(
        "Scheduled syncs finished: %d succeeded, %d failed", succeeded, len(results) - succeeded
    )
    return results
