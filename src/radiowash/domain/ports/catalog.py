"""Port for the streaming catalog the engines read from and write to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from radiowash.domain.model import PlaylistSummary, Track


@runtime_checkable
class CatalogClient(Protocol):
    """Playlist and search operations needed for cleaning and syncing.

    Implementations raise ``UpstreamTransientError`` for failures worth retrying
    and ``UpstreamPermanentError`` (or ``PlaylistNotFoundError``) otherwise.
    ``add_tracks``/``remove_tracks`` receive at most one chunk of references.
    """

    def get_playlist(self, playlist_id: str) -> PlaylistSummary: ...

    def get_playlist_tracks(self, playlist_id: str) -> list[Track]: ...

    def create_playlist(self, name: str, description: str) -> str: ...

    def add_tracks(self, playlist_id: str, track_refs: Sequence[str]) -> None: ...

    def remove_tracks(self, playlist_id: str, track_refs: Sequence[str]) -> None: ...

    def search_tracks(self, query: str, limit: int) -> list[Track]: ...
