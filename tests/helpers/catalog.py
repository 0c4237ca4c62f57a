"""In-memory catalog client for engine tests."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from radiowash.domain.errors import PlaylistNotFoundError
from radiowash.domain.model import TRACK_URI_PREFIX, PlaylistSummary, Track
from radiowash.domain.resolution import build_search_query

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


def make_track(
    track_id: str,
    name: str | None = None,
    *,
    artists: tuple[str, ...] = ("Example Artist",),
    explicit: bool = False,
) -> Track:
    return Track(id=track_id, name=name or f"Song {track_id}", artists=artists, explicit=explicit)


def clean_version(track: Track, clean_id: str | None = None) -> Track:
    return Track(
        id=clean_id or f"{track.id}-clean",
        name=track.name,
        artists=track.artists,
        explicit=False,
    )


@dataclass
class FakePlaylist:
    name: str
    tracks: list[Track] = field(default_factory=list["Track"])


class FakeCatalogClient:
    """Catalog double that mutates its playlists and records every call.

    ``fail_next`` queues exceptions per method name; each call pops one.
    """

    def __init__(self, playlists: dict[str, FakePlaylist] | None = None) -> None:
        self.playlists: dict[str, FakePlaylist] = dict(playlists or {})
        self.search_results: dict[str, list[Track]] = {}
        self.known_tracks: dict[str, Track] = {}
        self.search_calls: list[tuple[str, int]] = []
        self.created: list[tuple[str, str, str]] = []
        self.added: list[tuple[str, list[str]]] = []
        self.removed: list[tuple[str, list[str]]] = []
        self._failures: defaultdict[str, list[Exception]] = defaultdict(list)
        self._next_playlist = 0
        for playlist in self.playlists.values():
            self._remember(playlist.tracks)

    # Setup --------------------------------------------------------------------

    def add_playlist(self, playlist_id: str, name: str, tracks: Iterable[Track] = ()) -> None:
        self.playlists[playlist_id] = FakePlaylist(name=name, tracks=list(tracks))
        self._remember(self.playlists[playlist_id].tracks)

    def register_search(self, source: Track, results: Sequence[Track]) -> None:
        self.search_results[build_search_query(source)] = list(results)
        self._remember(results)

    def register_clean(self, source: Track, clean_id: str | None = None) -> Track:
        clean = clean_version(source, clean_id)
        self.register_search(source, [clean])
        return clean

    def fail_next(self, method: str, exc: Exception, *, times: int = 1) -> None:
        self._failures[method].extend([exc] * times)

    def track_ids(self, playlist_id: str) -> list[str]:
        return [track.id for track in self.playlists[playlist_id].tracks]

    # CatalogClient ------------------------------------------------------------

    def get_playlist(self, playlist_id: str) -> PlaylistSummary:
        self._maybe_fail("get_playlist")
        playlist = self._playlist(playlist_id)
        return PlaylistSummary(id=playlist_id, name=playlist.name, track_count=len(playlist.tracks))

    def get_playlist_tracks(self, playlist_id: str) -> list[Track]:
        self._maybe_fail("get_playlist_tracks")
        return list(self._playlist(playlist_id).tracks)

    def create_playlist(self, name: str, description: str) -> str:
        self._maybe_fail("create_playlist")
        self._next_playlist += 1
        playlist_id = f"created-{self._next_playlist}"
        self.playlists[playlist_id] = FakePlaylist(name=name)
        self.created.append((playlist_id, name, description))
        return playlist_id

    def add_tracks(self, playlist_id: str, track_refs: Sequence[str]) -> None:
        self._maybe_fail("add_tracks")
        refs = list(track_refs)
        self.added.append((playlist_id, refs))
        playlist = self._playlist(playlist_id)
        for ref in refs:
            track_id = ref.removeprefix(TRACK_URI_PREFIX)
            playlist.tracks.append(self.known_tracks.get(track_id, make_track(track_id)))

    def remove_tracks(self, playlist_id: str, track_refs: Sequence[str]) -> None:
        self._maybe_fail("remove_tracks")
        refs = list(track_refs)
        self.removed.append((playlist_id, refs))
        doomed = {ref.removeprefix(TRACK_URI_PREFIX) for ref in refs}
        playlist = self._playlist(playlist_id)
        playlist.tracks = [track for track in playlist.tracks if track.id not in doomed]

    def search_tracks(self, query: str, limit: int) -> list[Track]:
        self._maybe_fail("search_tracks")
        self.search_calls.append((query, limit))
        return list(self.search_results.get(query, []))[:limit]

    # Internals ----------------------------------------------------------------

    def _playlist(self, playlist_id: str) -> FakePlaylist:
        playlist = self.playlists.get(playlist_id)
        if playlist is None:
            raise PlaylistNotFoundError(playlist_id)
        return playlist

    def _remember(self, tracks: Iterable[Track]) -> None:
        for track in tracks:
            if track.id:
                self.known_tracks.setdefault(track.id, track)

    def _maybe_fail(self, method: str) -> None:
        queued = self._failures.get(method)
        if queued:
            raise queued.pop(0)
