"""Spotipy-based catalog client for the Spotify Web API."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Final

import requests
import spotipy
from spotipy.cache_handler import CacheFileHandler
from spotipy.oauth2 import SpotifyOAuth

from radiowash.domain.errors import (
    PlaylistNotFoundError,
    UpstreamPermanentError,
    UpstreamTransientError,
)

from .schema import PlaylistItemsPage, SearchResponse, SpotifyPlaylist, SpotifyUser
from .translator import translate_playlist, translate_playlist_item, translate_track

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from radiowash.config import SpotifyConfig
    from radiowash.domain.model import PlaylistSummary, Track

log = getLogger(__name__)

PLAYLIST_PAGE_SIZE: Final[int] = 100
MAX_ITEMS_PER_MUTATION: Final[int] = 100
MAX_SEARCH_LIMIT: Final[int] = 50
TRANSIENT_STATUSES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


class SpotifyClient:
    """Catalog operations over ``spotipy.Spotify``.

    Transport-level retries (connection errors, 429 and 5xx) are delegated to
    spotipy's urllib3 retry adapter; whatever still fails is translated into
    the domain's upstream errors.
    """

    def __init__(self, *, config: SpotifyConfig, client: spotipy.Spotify | None = None) -> None:
        if client is None:
            auth_manager = SpotifyOAuth(
                client_id=config.client_id,
                client_secret=config.client_secret,
                redirect_uri=config.redirect_uri,
                scope=" ".join(config.scope),
                cache_handler=(
                    CacheFileHandler(cache_path=config.cache_path) if config.cache_path else None
                ),
            )
            client = spotipy.Spotify(
                auth_manager=auth_manager,
                requests_timeout=config.request_timeout,
                retries=config.retries,
                status_retries=config.retries,
                backoff_factor=config.backoff_factor,
            )
        self._client = client
        self._user_id: str | None = None

    def get_playlist(self, playlist_id: str) -> PlaylistSummary:
        with _translate_errors(playlist_id):
            raw_payload = self._client.playlist(playlist_id, fields="id,name,tracks.total")  # pyright: ignore[reportUnknownMemberType]
        return translate_playlist(SpotifyPlaylist.model_validate(raw_payload))

    def get_playlist_tracks(self, playlist_id: str) -> list[Track]:
        return list(self.iter_playlist_tracks(playlist_id))

    def iter_playlist_tracks(
        self,
        playlist_id: str,
        *,
        batch_size: int = PLAYLIST_PAGE_SIZE,
    ) -> Iterator[Track]:
        offset = 0
        while True:
            with _translate_errors(playlist_id):
                raw_payload = self._client.playlist_items(  # pyright: ignore[reportUnknownMemberType]
                    playlist_id,
                    limit=batch_size,
                    offset=offset,
                    additional_types=("track",),
                )
            payload = PlaylistItemsPage.model_validate(raw_payload)
            items = payload.items
            if not items:
                return
            for item in items:
                track = translate_playlist_item(item)
                if track is not None:
                    yield track
            if payload.next is None:
                return
            offset += len(items)

    def create_playlist(self, name: str, description: str) -> str:
        user_id = self._current_user_id()
        with _translate_errors():
            raw_payload = self._client.user_playlist_create(  # pyright: ignore[reportUnknownMemberType]
                user_id,
                name,
                public=False,
                description=description,
            )
        playlist = SpotifyPlaylist.model_validate(raw_payload)
        log.info("Created Spotify playlist %s (%s)", playlist.id, name)
        return playlist.id

    def add_tracks(self, playlist_id: str, track_refs: Sequence[str]) -> None:
        _check_mutation_size(track_refs)
        if not track_refs:
            return
        with _translate_errors(playlist_id):
            self._client.playlist_add_items(playlist_id, list(track_refs))  # pyright: ignore[reportUnknownMemberType]

    def remove_tracks(self, playlist_id: str, track_refs: Sequence[str]) -> None:
        _check_mutation_size(track_refs)
        if not track_refs:
            return
        with _translate_errors(playlist_id):
            self._client.playlist_remove_all_occurrences_of_items(  # pyright: ignore[reportUnknownMemberType]
                playlist_id, list(track_refs)
            )

    def search_tracks(self, query: str, limit: int) -> list[Track]:
        with _translate_errors():
            raw_payload = self._client.search(  # pyright: ignore[reportUnknownMemberType]
                q=query,
                type="track",
                limit=max(1, min(limit, MAX_SEARCH_LIMIT)),
            )
        payload = SearchResponse.model_validate(raw_payload)
        return [translate_track(track) for track in payload.tracks.items if track is not None]

    def _current_user_id(self) -> str:
        if self._user_id is None:
            with _translate_errors():
                raw_payload = self._client.current_user()  # pyright: ignore[reportUnknownMemberType]
            self._user_id = SpotifyUser.model_validate(raw_payload).id
        return self._user_id


def _check_mutation_size(track_refs: Sequence[str]) -> None:
    if len(track_refs) > MAX_ITEMS_PER_MUTATION:
        msg = f"Spotify accepts at most {MAX_ITEMS_PER_MUTATION} items per call"
        raise ValueError(f"{msg}, got {len(track_refs)}")


@contextmanager
def _translate_errors(playlist_id: str | None = None) -> Iterator[None]:
    try:
        yield
    except spotipy.SpotifyException as exc:
        status = exc.http_status
        if status == 404 and playlist_id is not None:
            raise PlaylistNotFoundError(playlist_id) from exc
        message = f"Spotify returned {status}: {exc.msg}"
        if status in TRANSIENT_STATUSES:
            raise UpstreamTransientError(message) from exc
        raise UpstreamPermanentError(message) from exc
    except requests.exceptions.RequestException as exc:
        raise UpstreamTransientError(f"Spotify request failed: {exc}") from exc


if TYPE_CHECKING:
    from radiowash.config import SpotifyConfig as _SpotifyConfig
    from radiowash.domain.ports import CatalogClient

    _catalog_check: CatalogClient = SpotifyClient(
        config=_SpotifyConfig(client_id="", client_secret="", redirect_uri="")
    )
