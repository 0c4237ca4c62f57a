"""Shared fixtures for Spotify adapter tests."""

from __future__ import annotations

from typing import cast

import pytest
import spotipy

from radiowash.adapters.spotify.client import SpotifyClient
from radiowash.config import SpotifyConfig
from tests.helpers.spotify import FakeSpotipyClient


@pytest.fixture
def fake_spotipy() -> FakeSpotipyClient:
    return FakeSpotipyClient()


@pytest.fixture
def spotify_client(fake_spotipy: FakeSpotipyClient) -> SpotifyClient:
    config = SpotifyConfig(
        client_id="client-id",
        client_secret="client-secret",
        redirect_uri="http://127.0.0.1:8888/callback",
    )
    return SpotifyClient(config=config, client=cast("spotipy.Spotify", fake_spotipy))
