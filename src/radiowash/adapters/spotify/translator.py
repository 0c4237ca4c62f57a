"""Translate Spotify payloads into domain values."""

from __future__ import annotations

from typing import TYPE_CHECKING

from radiowash.domain.model import PlaylistSummary, Track

if TYPE_CHECKING:
    from .schema import PlaylistTrackItem, SpotifyPlaylist, SpotifyTrack


def translate_track(track: SpotifyTrack) -> Track:
    return Track(
        id="" if track.is_local else (track.id or ""),
        name=track.name,
        artists=tuple(artist.name for artist in track.artists if artist.name),
        explicit=track.explicit,
        uri=None if track.is_local else track.uri,
    )


def translate_playlist_item(item: PlaylistTrackItem) -> Track | None:
    """Return the track behind a playlist entry; ``None`` for removed items and episodes."""

    track = item.track
    if track is None or track.type != "track":
        return None
    if item.is_local and not track.is_local:
        track = track.model_copy(update={"is_local": True})
    return translate_track(track)


def translate_playlist(playlist: SpotifyPlaylist) -> PlaylistSummary:
    return PlaylistSummary(id=playlist.id, name=playlist.name, track_count=playlist.tracks.total)
