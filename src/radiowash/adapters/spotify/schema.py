"""Minimal Pydantic models for the Spotify Web API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SpotifyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SpotifyArtist(SpotifyBaseModel):
    id: str | None = None
    name: str = ""


class SpotifyTrack(SpotifyBaseModel):
    # local files come back with a null id
    id: str | None = None
    name: str = ""
    type: str = "track"
    uri: str | None = None
    explicit: bool = False
    is_local: bool = False
    artists: list[SpotifyArtist] = Field(default_factory=list["SpotifyArtist"])


class PlaylistTrackItem(SpotifyBaseModel):
    is_local: bool = False
    track: SpotifyTrack | None = None


class SpotifyPage(SpotifyBaseModel):
    href: str | None = None
    limit: int | None = None
    next: str | None = None
    offset: int | None = None
    previous: str | None = None
    total: int | None = None


class PlaylistItemsPage(SpotifyPage):
    items: list[PlaylistTrackItem] = Field(default_factory=list["PlaylistTrackItem"])


class SearchTracksPage(SpotifyPage):
    items: list[SpotifyTrack | None] = Field(default_factory=list)


class SearchResponse(SpotifyBaseModel):
    tracks: SearchTracksPage = Field(default_factory=SearchTracksPage)


class PlaylistTracksRef(SpotifyBaseModel):
    total: int = 0


class SpotifyPlaylist(SpotifyBaseModel):
    id: str
    name: str = ""
    tracks: PlaylistTracksRef = Field(default_factory=PlaylistTracksRef)


class SpotifyUser(SpotifyBaseModel):
    id: str
    display_name: str | None = None
