"""Defaults for playlist cleaning and synchronization runs."""

from __future__ import annotations

from dataclasses import dataclass

from radiowash.domain.model import SyncFrequency

from .env import int_env_var

DEFAULT_PROGRESS_BATCHES = 20
DEFAULT_PLAYLIST_CHUNK_SIZE = 100
DEFAULT_SEARCH_LIMIT = 10
DEFAULT_JOB_ATTEMPTS = 2
DEFAULT_RETRY_BACKOFF_SECONDS = 2.0
DEFAULT_MAX_CONSECUTIVE_SYNC_FAILURES = 3


@dataclass(frozen=True, slots=True)
class ProcessingConfig:
    progress_batches: int = DEFAULT_PROGRESS_BATCHES
    playlist_chunk_size: int = DEFAULT_PLAYLIST_CHUNK_SIZE
    search_limit: int = DEFAULT_SEARCH_LIMIT
    job_attempts: int = DEFAULT_JOB_ATTEMPTS
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    max_consecutive_sync_failures: int = DEFAULT_MAX_CONSECUTIVE_SYNC_FAILURES
    default_sync_frequency: SyncFrequency = SyncFrequency.DAILY


def get_processing_config() -> ProcessingConfig:
    return ProcessingConfig(
        progress_batches=int_env_var(
            "RADIOWASH_PROGRESS_BATCHES", DEFAULT_PROGRESS_BATCHES, minimum=1
        ),
        playlist_chunk_size=int_env_var(
            "RADIOWASH_PLAYLIST_CHUNK_SIZE", DEFAULT_PLAYLIST_CHUNK_SIZE, minimum=1
        ),
        search_limit=int_env_var("RADIOWASH_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT, minimum=1),
        job_attempts=int_env_var("RADIOWASH_JOB_ATTEMPTS", DEFAULT_JOB_ATTEMPTS, minimum=1),
        max_consecutive_sync_failures=int_env_var(
            "RADIOWASH_MAX_SYNC_FAILURES", DEFAULT_MAX_CONSECUTIVE_SYNC_FAILURES, minimum=1
        ),
    )
