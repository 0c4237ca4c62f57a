"""Spotify adapter package."""

from __future__ import annotations

from .client import SpotifyClient
from .schema import (
    PlaylistItemsPage,
    PlaylistTrackItem,
    SearchResponse,
    SpotifyArtist,
    SpotifyPlaylist,
    SpotifyTrack,
)
from .translator import translate_playlist, translate_playlist_item, translate_track

__all__ = [
    "PlaylistItemsPage",
    "PlaylistTrackItem",
    "SearchResponse",
    "SpotifyArtist",
    "SpotifyClient",
    "SpotifyPlaylist",
    "SpotifyTrack",
    "translate_playlist",
    "translate_playlist_item",
    "translate_track",
]
