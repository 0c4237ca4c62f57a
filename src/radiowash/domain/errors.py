"""Error taxonomy shared by the cleaning and sync engines.

Adapters translate their library-specific failures onto these classes so the
orchestrators and the dispatch layer can tell a retryable upstream hiccup from
a permanent one without knowing which catalog is involved.
"""

from __future__ import annotations


class RadioWashError(Exception):
    """Base class for domain errors."""


class NotFoundError(RadioWashError):
    """Raised when a referenced record does not exist."""


class JobNotFoundError(NotFoundError):
    def __init__(self, job_id: object) -> None:
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class SyncConfigNotFoundError(NotFoundError):
    def __init__(self, config_id: object) -> None:
        super().__init__(f"Sync configuration {config_id} not found")
        self.config_id = config_id


class AccessDeniedError(RadioWashError):
    """Raised when a user addresses a record owned by someone else."""


class InvalidJobStateError(RadioWashError):
    """Raised when an operation needs a job in a different lifecycle state."""


class InvalidJobTransitionError(InvalidJobStateError):
    """Raised for status changes the job state machine does not allow."""


class SyncDisabledError(RadioWashError):
    """Raised when a manual sync targets an inactive configuration."""


class HistoryFinalizedError(RadioWashError):
    """Raised when a sync history row is finalized twice."""


class EntitlementRequiredError(RadioWashError):
    """Raised when the user lacks the entitlement needed for sync features."""


class UpstreamError(RadioWashError):
    """Raised when the streaming catalog rejects or fails a call."""


class UpstreamTransientError(UpstreamError):
    """Rate limiting, timeouts and server errors; worth another attempt."""


class UpstreamPermanentError(UpstreamError):
    """Errors that will not go away on retry."""


class PlaylistNotFoundError(UpstreamPermanentError, NotFoundError):
    def __init__(self, playlist_id: str) -> None:
        super().__init__(f"Playlist {playlist_id} not found")
        self.playlist_id = playlist_id
