"""Find clean substitutes for explicit tracks."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from radiowash.domain.model import Track
    from radiowash.domain.ports import CatalogClient

log = getLogger(__name__)

DEFAULT_SEARCH_LIMIT: Final[int] = 10


def build_search_query(track: Track) -> str:
    """Field-filtered catalog query for a track's name and primary artist."""

    parts = [f'track:"{_strip_quotes(track.name)}"']
    if track.primary_artist:
        parts.append(f'artist:"{_strip_quotes(track.primary_artist)}"')
    return " ".join(parts)


def _strip_quotes(value: str) -> str:
    return value.replace('"', "").strip()


def is_clean_match(source: Track, candidate: Track) -> bool:
    return (
        not candidate.explicit
        and bool(candidate.id)
        and candidate.name.casefold() == source.name.casefold()
    )


class CleanTrackResolver:
    """Return a non-explicit equivalent for a track, or ``None``.

    Non-explicit tracks come back unchanged without touching the catalog.
    Search failures propagate; ``None`` only ever means "searched, nothing
    suitable".
    """

    def __init__(self, catalog: CatalogClient, *, search_limit: int = DEFAULT_SEARCH_LIMIT) -> None:
        self._catalog = catalog
        self._search_limit = search_limit

    def resolve(self, track: Track) -> Track | None:
        if not track.explicit:
            return track

        query = build_search_query(track)
        candidates = self._catalog.search_tracks(query, self._search_limit)
        for candidate in candidates:
            if is_clean_match(track, candidate):
                log.debug("Clean match for %s: %s", track.id, candidate.id)
                return candidate

        log.debug("No clean version of %s among %d candidates", track.id, len(candidates))
        return None
