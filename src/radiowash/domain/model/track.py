"""Catalog-facing value objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

UNKNOWN: Final[str] = "Unknown"
TRACK_URI_PREFIX: Final[str] = "spotify:track:"


def track_uri(track_id: str) -> str:
    return f"{TRACK_URI_PREFIX}{track_id}"


def format_artists(artists: tuple[str, ...] | list[str]) -> str:
    names = [name for name in artists if name]
    return ", ".join(names) if names else UNKNOWN


@dataclass(frozen=True, slots=True)
class Track:
    """Immutable snapshot of a catalog track.

    Local files and unavailable items carry an empty ``id``; they cannot be
    searched for or added to a playlist and are skipped by the engines.
    """

    id: str
    name: str
    artists: tuple[str, ...] = ()
    explicit: bool = False
    uri: str | None = None

    @property
    def playable_uri(self) -> str:
        return self.uri or track_uri(self.id)

    @property
    def primary_artist(self) -> str | None:
        return self.artists[0] if self.artists else None

    @property
    def artist_display(self) -> str:
        return format_artists(self.artists)


@dataclass(frozen=True, slots=True)
class PlaylistSummary:
    id: str
    name: str
    track_count: int
