"""Cleaning jobs and the per-track mappings they produce."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from radiowash.domain.errors import InvalidJobTransitionError

from .entity import Entity, utcnow
from .enums import JobStatus
from .track import UNKNOWN, format_artists

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from .track import Track

NOT_STARTED: Final[str] = "Not started"
COMPLETED_BATCH_LABEL: Final[str] = "Completed"

_TRANSITIONS: Final[dict[JobStatus, frozenset[JobStatus]]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


@dataclass(eq=False, kw_only=True)
class CleanPlaylistJob(Entity):
    """Durable record of one cleaning run.

    ``pending -> processing -> completed``, with ``failed`` reachable from
    both non-terminal states. Completed and failed jobs never change again.
    """

    user_id: str
    source_playlist_id: str
    source_playlist_name: str
    target_playlist_name: str
    target_playlist_id: str | None = None
    status: JobStatus = JobStatus.PENDING
    error_message: str | None = None
    total_tracks: int = 0
    processed_tracks: int = 0
    matched_tracks: int = 0
    current_batch: str | None = None
    batch_size: int | None = None
    updated_at: datetime = field(default_factory=utcnow)

    def _transition(self, target: JobStatus, now: datetime | None) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise InvalidJobTransitionError(
                f"Job {self.id} cannot move from {self.status} to {target}"
            )
        self.status = target
        self.updated_at = now or utcnow()

    def start(self, *, now: datetime | None = None) -> None:
        self._transition(JobStatus.PROCESSING, now)

    def set_workload(self, *, total_tracks: int, batch_size: int) -> None:
        self._require_processing()
        self.total_tracks = total_tracks
        self.batch_size = batch_size

    def record_progress(
        self,
        *,
        processed: int,
        matched: int,
        current_batch: str,
        now: datetime | None = None,
    ) -> None:
        self._require_processing()
        self.processed_tracks = processed
        self.matched_tracks = matched
        self.current_batch = current_batch
        self.updated_at = now or utcnow()

    def complete(
        self,
        *,
        target_playlist_id: str,
        processed: int,
        matched: int,
        now: datetime | None = None,
    ) -> None:
        self._transition(JobStatus.COMPLETED, now)
        self.target_playlist_id = target_playlist_id
        self.processed_tracks = processed
        self.matched_tracks = matched
        self.current_batch = COMPLETED_BATCH_LABEL
        self.error_message = None

    def fail(self, message: str, *, now: datetime | None = None) -> None:
        if not message.strip():
            raise ValueError("A failed job needs an error message")
        self._transition(JobStatus.FAILED, now)
        self.error_message = message

    def _require_processing(self) -> None:
        if self.status is not JobStatus.PROCESSING:
            raise InvalidJobTransitionError(
                f"Job {self.id} is {self.status}; progress is only tracked while processing"
            )

    def progress(self) -> JobProgress:
        return JobProgress(
            processed=self.processed_tracks,
            total=self.total_tracks,
            current_batch=self.current_batch or NOT_STARTED,
            matched=self.matched_tracks,
        )


@dataclass(eq=False, kw_only=True)
class TrackMapping(Entity):
    """Source track to clean target decision recorded for a job."""

    job_id: UUID
    source_track_id: str
    source_track_name: str = UNKNOWN
    source_artist_name: str = UNKNOWN
    is_explicit: bool = False
    has_clean_match: bool = False
    target_track_id: str | None = None
    target_track_name: str | None = None
    target_artist_name: str | None = None

    def __post_init__(self) -> None:
        if self.has_clean_match != (self.target_track_id is not None):
            raise ValueError(
                "has_clean_match must be set exactly when a target track id is present"
            )

    @classmethod
    def from_resolution(cls, job_id: UUID, source: Track, clean: Track | None) -> TrackMapping:
        return cls(
            job_id=job_id,
            source_track_id=source.id,
            source_track_name=source.name or UNKNOWN,
            source_artist_name=format_artists(source.artists),
            is_explicit=source.explicit,
            has_clean_match=clean is not None,
            target_track_id=clean.id if clean is not None else None,
            target_track_name=(clean.name or UNKNOWN) if clean is not None else None,
            target_artist_name=format_artists(clean.artists) if clean is not None else None,
        )


@dataclass(frozen=True, slots=True)
class JobProgress:
    processed: int
    total: int
    current_batch: str
    matched: int
