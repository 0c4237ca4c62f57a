"""Minimal playlist mutations to bring a cleaned playlist back in line."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from radiowash.domain.model import Track, TrackMapping


@dataclass(frozen=True, slots=True)
class PlaylistDelta:
    tracks_to_add: list[str] = field(default_factory=list)
    tracks_to_remove: list[str] = field(default_factory=list)
    new_tracks: list[Track] = field(default_factory=list)
    desired_order: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.tracks_to_add or self.tracks_to_remove or self.new_tracks)


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def calculate_delta(
    source_tracks: Sequence[Track],
    target_tracks: Sequence[Track],
    mappings: Sequence[TrackMapping],
) -> PlaylistDelta:
    """Compare the current source and target against the recorded mappings.

    Pure: no I/O, no mutation of the inputs. Output lists are free of
    duplicates and keep first-seen order; their membership does not depend on
    input order. Tracks without an id (local files) are ignored.
    """

    target_ids = {track.id for track in target_tracks if track.id}
    source_ids = {track.id for track in source_tracks if track.id}

    by_source: dict[str, TrackMapping] = {}
    for mapping in mappings:
        by_source[mapping.source_track_id] = mapping

    sources_by_target: defaultdict[str, set[str]] = defaultdict(set)
    for mapping in mappings:
        if mapping.has_clean_match and mapping.target_track_id:
            sources_by_target[mapping.target_track_id].add(mapping.source_track_id)

    to_add: list[str] = []
    new_tracks: dict[str, Track] = {}
    desired_order: list[str] = []
    for track in source_tracks:
        if not track.id:
            continue
        mapping = by_source.get(track.id)
        if mapping is None:
            new_tracks.setdefault(track.id, track)
            continue
        if mapping.has_clean_match and mapping.target_track_id:
            desired_order.append(mapping.target_track_id)
            if mapping.target_track_id not in target_ids:
                to_add.append(mapping.target_track_id)

    to_remove = [
        track.id
        for track in target_tracks
        if track.id
        and track.id in sources_by_target
        and not sources_by_target[track.id] & source_ids
    ]

    return PlaylistDelta(
        tracks_to_add=_unique(to_add),
        tracks_to_remove=_unique(to_remove),
        new_tracks=list(new_tracks.values()),
        desired_order=_unique(desired_order),
    )
