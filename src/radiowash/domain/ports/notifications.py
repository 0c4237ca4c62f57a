"""Port for publishing job progress to whoever is watching."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    percent: int
    processed: int
    total: int
    batch_label: str
    message: str


@dataclass(frozen=True, slots=True)
class JobCompleted:
    message: str


@dataclass(frozen=True, slots=True)
class JobFailed:
    error: str


type JobEvent = ProgressUpdate | JobCompleted | JobFailed


@runtime_checkable
class ProgressNotifier(Protocol):
    """Fire-and-forget sink; callers treat any exception as non-fatal."""

    def publish(self, job_id: UUID, event: JobEvent) -> None: ...
