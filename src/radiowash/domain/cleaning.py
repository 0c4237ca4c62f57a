"""Cleaning orchestrator: turn a source playlist into a clean copy.

One run walks the source playlist, resolves a clean version of every explicit
track and writes the resulting mappings in batches. Each batch commits in its
own unit of work together with the job's progress counters, so a crash loses
at most the batch in flight. Progress events are best effort.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from radiowash.domain.errors import AccessDeniedError, JobNotFoundError
from radiowash.domain.model import CleanPlaylistJob, JobStatus, TrackMapping, utcnow
from radiowash.domain.ports.notifications import JobCompleted, JobFailed
from radiowash.domain.progress import DEFAULT_BATCHES, ProgressBatcher
from radiowash.domain.resolution import CleanTrackResolver

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from uuid import UUID

    from radiowash.domain.model import JobProgress, Track
    from radiowash.domain.ports import (
        CatalogClient,
        JobEvent,
        ProgressNotifier,
        RadioWashUnitOfWork,
        UnitOfWorkFactory,
    )
    from radiowash.domain.schedule import Clock

log = getLogger(__name__)

CLEANED_PLAYLIST_DESCRIPTION: Final[str] = "Cleaned by RadioWash."
TARGET_NAME_PREFIX: Final[str] = "Clean - "
DEFAULT_CHUNK_SIZE: Final[int] = 100


def default_target_name(source_name: str) -> str:
    return f"{TARGET_NAME_PREFIX}{source_name}"


def chunked(items: Sequence[str], size: int) -> Iterator[list[str]]:
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def publish_safely(
    notifier: ProgressNotifier | None,
    job_id: UUID,
    event: JobEvent,
) -> None:
    """Deliver an event, logging and dropping any failure."""

    if notifier is None:
        return
    try:
        notifier.publish(job_id, event)
    except Exception as exc:  # noqa: BLE001 - notification is never fatal
        log.warning("Failed to publish %s for job %s: %s", type(event).__name__, job_id, exc)


def failure_message(exc: BaseException) -> str:
    return str(exc).strip() or type(exc).__name__


class CleanPlaylistService:
    """Create cleaning jobs and drive them through their lifecycle."""

    def __init__(
        self,
        *,
        catalog: CatalogClient,
        unit_of_work: UnitOfWorkFactory,
        notifier: ProgressNotifier | None = None,
        resolver: CleanTrackResolver | None = None,
        progress_batches: int = DEFAULT_BATCHES,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Clock = utcnow,
    ) -> None:
        self._catalog = catalog
        self._unit_of_work = unit_of_work
        self._notifier = notifier
        self._resolver = resolver or CleanTrackResolver(catalog)
        self._progress_batches = progress_batches
        self._chunk_size = chunk_size
        self._clock = clock
        # Failures whose write to the job row did not commit, keyed by job id.
        self._unrecorded_failures: dict[UUID, str] = {}

    # Job management -----------------------------------------------------------

    def create_job(
        self,
        user_id: str,
        source_playlist_id: str,
        target_name: str | None = None,
    ) -> CleanPlaylistJob:
        playlist = self._catalog.get_playlist(source_playlist_id)
        name = (target_name or "").strip() or default_target_name(playlist.name)
        job = CleanPlaylistJob(
            user_id=user_id,
            source_playlist_id=playlist.id,
            source_playlist_name=playlist.name,
            target_playlist_name=name,
            total_tracks=playlist.track_count,
        )
        with self._unit_of_work() as uow:
            uow.repositories.jobs.add(job)
            uow.commit()
        log.info("Created cleaning job %s for playlist %s", job.id, playlist.id)
        return job

    def get_job(self, job_id: UUID, *, user_id: str | None = None) -> CleanPlaylistJob:
        with self._unit_of_work() as uow:
            job = uow.repositories.jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if user_id is not None and job.user_id != user_id:
            raise AccessDeniedError(f"Job {job_id} belongs to another user")
        return job

    def list_jobs(self, user_id: str) -> list[CleanPlaylistJob]:
        with self._unit_of_work() as uow:
            return uow.repositories.jobs.list_by_user(user_id)

    def get_progress(self, job_id: UUID, *, user_id: str | None = None) -> JobProgress:
        return self.get_job(job_id, user_id=user_id).progress()

    def list_mappings(self, job_id: UUID) -> list[TrackMapping]:
        with self._unit_of_work() as uow:
            return uow.repositories.mappings.list_by_job(job_id)

    # Processing ---------------------------------------------------------------

    def process_job(self, job_id: UUID) -> CleanPlaylistJob:
        """Run a pending job to completion or failure.

        Jobs that are not pending are returned untouched, so re-dispatching
        a finished job is harmless. Faults during the run end up on the job
        as ``failed``; only a failure to record that state propagates, and
        the next dispatch of the same job retries that write.
        """

        unrecorded = self._unrecorded_failures.get(job_id)
        if unrecorded is not None:
            log.info("Recording earlier failure of job %s", job_id)
            return self._record_failure(job_id, unrecorded)

        job, claimed = self._claim(job_id)
        if not claimed:
            return job

        try:
            return self._run(job)
        except Exception as exc:
            log.exception("Cleaning job %s failed", job_id)
            return self._record_failure(job_id, failure_message(exc))

    def _claim(self, job_id: UUID) -> tuple[CleanPlaylistJob, bool]:
        with self._unit_of_work() as uow:
            job = self._load(uow, job_id)
            if job.status is not JobStatus.PENDING:
                log.info("Job %s is already %s; skipping", job_id, job.status)
                return job, False
            job.start(now=self._clock())
            uow.commit()
        log.info("Processing cleaning job %s", job_id)
        return job, True

    def _run(self, job: CleanPlaylistJob) -> CleanPlaylistJob:
        tracks = self._catalog.get_playlist_tracks(job.source_playlist_id)
        batcher = ProgressBatcher.initialize(len(tracks), self._progress_batches)

        with self._unit_of_work() as uow:
            self._load(uow, job.id).set_workload(
                total_tracks=len(tracks), batch_size=batcher.batch_size
            )
            uow.commit()
        self._publish(job.id, batcher.describe(0))
        batcher = batcher.mark_reported(0).mark_persisted(0)

        batch: list[TrackMapping] = []
        clean_refs: list[str] = []
        matched = 0
        for index, track in enumerate(tracks, start=1):
            if not track.id:
                log.warning("Skipping track %d of %s without an id", index, job.source_playlist_id)
            else:
                clean = self._resolver.resolve(track)
                batch.append(TrackMapping.from_resolution(job.id, track, clean))
                if clean is not None:
                    matched += 1
                    clean_refs.append(clean.playable_uri)

            update = batcher.describe(index, _label(track))
            if batcher.should_persist(index):
                self._persist_batch(
                    job.id,
                    batch,
                    processed=index,
                    matched=matched,
                    batch_label=update.batch_label,
                )
                batch = []
                batcher = batcher.mark_persisted(index)
            if batcher.should_report(index):
                self._publish(job.id, update)
                batcher = batcher.mark_reported(index)

        target_playlist_id = self._catalog.create_playlist(
            job.target_playlist_name, CLEANED_PLAYLIST_DESCRIPTION
        )
        for chunk in chunked(clean_refs, self._chunk_size):
            self._catalog.add_tracks(target_playlist_id, chunk)

        with self._unit_of_work() as uow:
            stored = self._load(uow, job.id)
            stored.complete(
                target_playlist_id=target_playlist_id,
                processed=len(tracks),
                matched=matched,
                now=self._clock(),
            )
            uow.commit()

        log.info(
            "Job %s completed: %d tracks, %d clean matches, playlist %s",
            job.id,
            len(tracks),
            matched,
            target_playlist_id,
        )
        self._publish(
            job.id,
            JobCompleted(f"Processed {len(tracks)} tracks, matched {matched} clean versions"),
        )
        return stored

    def _persist_batch(
        self,
        job_id: UUID,
        batch: list[TrackMapping],
        *,
        processed: int,
        matched: int,
        batch_label: str,
    ) -> None:
        with self._unit_of_work() as uow:
            if batch:
                uow.repositories.mappings.add_many(batch)
            self._load(uow, job_id).record_progress(
                processed=processed,
                matched=matched,
                current_batch=batch_label,
                now=self._clock(),
            )
            uow.commit()
        log.debug("Job %s: persisted %d mappings at track %d", job_id, len(batch), processed)

    def _record_failure(self, job_id: UUID, message: str) -> CleanPlaylistJob:
        self._unrecorded_failures[job_id] = message
        with self._unit_of_work() as uow:
            job = self._load(uow, job_id)
            if job.status.is_terminal:
                log.info("Job %s is already %s; dropping failure", job_id, job.status)
                del self._unrecorded_failures[job_id]
                return job
            job.fail(message, now=self._clock())
            uow.commit()
        del self._unrecorded_failures[job_id]
        self._publish(job_id, JobFailed(message))
        return job

    def _publish(self, job_id: UUID, event: JobEvent) -> None:
        publish_safely(self._notifier, job_id, event)

    @staticmethod
    def _load(uow: RadioWashUnitOfWork, job_id: UUID) -> CleanPlaylistJob:
        job = uow.repositories.jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job


def _label(track: Track) -> str | None:
    if not track.name:
        return None
    return f"{track.name} by {track.artist_display}"
