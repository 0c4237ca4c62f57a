from __future__ import annotations

from uuid import uuid4

import pytest

from radiowash.domain.cleaning import CleanPlaylistService, chunked
from radiowash.domain.errors import (
    AccessDeniedError,
    JobNotFoundError,
    PlaylistNotFoundError,
    UpstreamPermanentError,
)
from radiowash.domain.model import JobStatus, Track
from radiowash.domain.ports.notifications import JobCompleted, JobFailed, ProgressUpdate
from tests.helpers.catalog import FakeCatalogClient, make_track
from tests.helpers.clock import FrozenClock
from tests.helpers.notifications import FailingNotifier, RecordingNotifier
from tests.helpers.persistence import CommitFailedError, FakeUnitOfWorkFactory


def _service(
    catalog: FakeCatalogClient,
    uow_factory: FakeUnitOfWorkFactory,
    notifier: RecordingNotifier | FailingNotifier | None = None,
    clock: FrozenClock | None = None,
    **kwargs: int,
) -> CleanPlaylistService:
    return CleanPlaylistService(
        catalog=catalog,
        unit_of_work=uow_factory,
        notifier=notifier,
        clock=clock or FrozenClock(),
        **kwargs,
    )


def _explicit_playlist(catalog: FakeCatalogClient, count: int = 3) -> list[Track]:
    tracks = [make_track(f"e{number}", explicit=True) for number in range(1, count + 1)]
    catalog.add_playlist("src", "Road Trip", tracks)
    for track in tracks:
        catalog.register_clean(track)
    return tracks


def test_create_job_uses_playlist_metadata(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    _explicit_playlist(catalog)

    job = _service(catalog, uow_factory).create_job("user-1", "src")

    stored = uow_factory.store.jobs[job.id]
    assert stored.status is JobStatus.PENDING
    assert stored.source_playlist_name == "Road Trip"
    assert stored.target_playlist_name == "Clean - Road Trip"
    assert stored.total_tracks == 3


def test_create_job_keeps_custom_name(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    _explicit_playlist(catalog)

    job = _service(catalog, uow_factory).create_job("user-1", "src", "  Family Mix ")

    assert job.target_playlist_name == "Family Mix"


def test_create_job_for_unknown_playlist_fails_fast(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    with pytest.raises(PlaylistNotFoundError):
        _service(catalog, uow_factory).create_job("user-1", "missing")

    assert uow_factory.store.jobs == {}


def test_all_explicit_tracks_resolved(
    catalog: FakeCatalogClient,
    uow_factory: FakeUnitOfWorkFactory,
    notifier: RecordingNotifier,
) -> None:
    _explicit_playlist(catalog)
    service = _service(catalog, uow_factory, notifier)
    job = service.create_job("user-1", "src")

    result = service.process_job(job.id)

    assert result.status is JobStatus.COMPLETED
    assert (result.processed_tracks, result.matched_tracks) == (3, 3)
    assert result.target_playlist_id is not None
    assert catalog.track_ids(result.target_playlist_id) == ["e1-clean", "e2-clean", "e3-clean"]
    assert catalog.created == [
        (result.target_playlist_id, "Clean - Road Trip", "Cleaned by RadioWash.")
    ]
    mappings = uow_factory.store.mappings_for(job.id)
    assert len(mappings) == 3
    assert all(mapping.has_clean_match for mapping in mappings)
    assert uow_factory.store.jobs[job.id].status is JobStatus.COMPLETED


def test_clean_tracks_pass_through_and_unmatched_are_dropped(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    clean = make_track("ok")
    matched = make_track("bad", explicit=True)
    hopeless = make_track("worse", explicit=True)
    catalog.add_playlist("src", "Mixed", [clean, matched, hopeless])
    catalog.register_clean(matched)
    service = _service(catalog, uow_factory)
    job = service.create_job("user-1", "src")

    result = service.process_job(job.id)

    assert (result.processed_tracks, result.matched_tracks) == (3, 2)
    assert result.target_playlist_id is not None
    assert catalog.track_ids(result.target_playlist_id) == ["ok", "bad-clean"]
    by_source = {m.source_track_id: m for m in uow_factory.store.mappings_for(job.id)}
    assert by_source["ok"].target_track_id == "ok"
    assert by_source["bad"].target_track_id == "bad-clean"
    assert not by_source["worse"].has_clean_match
    assert [query for query, _ in catalog.search_calls] == [
        'track:"Song bad" artist:"Example Artist"',
        'track:"Song worse" artist:"Example Artist"',
    ]


def test_tracks_without_ids_are_skipped(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    catalog.add_playlist("src", "Local", [make_track("a"), Track(id="", name="Local demo")])
    service = _service(catalog, uow_factory)
    job = service.create_job("user-1", "src")

    result = service.process_job(job.id)

    assert result.status is JobStatus.COMPLETED
    assert (result.processed_tracks, result.matched_tracks) == (2, 1)
    assert [m.source_track_id for m in uow_factory.store.mappings_for(job.id)] == ["a"]


def test_additions_are_chunked(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    catalog.add_playlist("src", "Big", [make_track(f"t{n}") for n in range(250)])
    service = _service(catalog, uow_factory, chunk_size=100)
    job = service.create_job("user-1", "src")

    service.process_job(job.id)

    assert [len(refs) for _, refs in catalog.added] == [100, 100, 50]
    assert catalog.added[0][1][0] == "spotify:track:t0"
    assert len(uow_factory.store.mappings_for(job.id)) == 250


def test_empty_playlist_completes(
    catalog: FakeCatalogClient,
    uow_factory: FakeUnitOfWorkFactory,
    notifier: RecordingNotifier,
) -> None:
    catalog.add_playlist("src", "Nothing", [])
    service = _service(catalog, uow_factory, notifier)
    job = service.create_job("user-1", "src")

    result = service.process_job(job.id)

    assert result.status is JobStatus.COMPLETED
    assert catalog.added == []
    assert len(catalog.created) == 1
    assert notifier.progress[0].percent == 100
    assert notifier.completed == [JobCompleted("Processed 0 tracks, matched 0 clean versions")]


def test_progress_events_are_batched(
    catalog: FakeCatalogClient,
    uow_factory: FakeUnitOfWorkFactory,
    notifier: RecordingNotifier,
) -> None:
    catalog.add_playlist("src", "Long", [make_track(f"t{n}") for n in range(100)])
    service = _service(catalog, uow_factory, notifier)
    job = service.create_job("user-1", "src")

    service.process_job(job.id)

    progress = notifier.progress
    assert progress[0] == ProgressUpdate(
        percent=0,
        processed=0,
        total=100,
        batch_label="Starting batch 1",
        message="Initializing playlist processing...",
    )
    assert progress[-1].percent == 100
    assert progress[-1].batch_label == "Completed all 20 batches"
    assert len(progress) == 21
    assert [event.percent for event in progress] == sorted(event.percent for event in progress)
    assert notifier.completed == [JobCompleted("Processed 100 tracks, matched 100 clean versions")]
    assert all(job_id == job.id for job_id, _ in notifier.events)
    stored = uow_factory.store.jobs[job.id]
    assert stored.batch_size == 5


def test_notification_failures_do_not_fail_the_job(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    _explicit_playlist(catalog)
    failing = FailingNotifier()
    service = _service(catalog, uow_factory, failing)
    job = service.create_job("user-1", "src")

    result = service.process_job(job.id)

    assert result.status is JobStatus.COMPLETED
    assert failing.attempts > 0


def test_upstream_failure_fails_the_job_and_keeps_committed_batches(
    catalog: FakeCatalogClient,
    uow_factory: FakeUnitOfWorkFactory,
    notifier: RecordingNotifier,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _explicit_playlist(catalog)
    service = _service(catalog, uow_factory, notifier)
    job = service.create_job("user-1", "src")
    original_search = catalog.search_tracks

    def exploding_search(query: str, limit: int) -> list[Track]:
        if "Song e2" in query:
            raise UpstreamPermanentError("Spotify returned 400: bad query")
        return original_search(query, limit)

    monkeypatch.setattr(catalog, "search_tracks", exploding_search)

    result = service.process_job(job.id)

    assert result.status is JobStatus.FAILED
    assert result.error_message == "Spotify returned 400: bad query"
    assert notifier.failed == [JobFailed("Spotify returned 400: bad query")]
    assert catalog.created == []
    stored = uow_factory.store.jobs[job.id]
    assert stored.status is JobStatus.FAILED
    assert [m.source_track_id for m in uow_factory.store.mappings_for(job.id)] == ["e1"]
    assert stored.processed_tracks == 1


def test_commit_failure_rolls_back_the_batch_and_fails_the_job(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    _explicit_playlist(catalog)
    service = _service(catalog, uow_factory)
    job = service.create_job("user-1", "src")
    # commits: 1 create, 2 claim, 3 workload, 4 track 1, 5 track 2
    uow_factory.store.fail_commit(5)

    result = service.process_job(job.id)

    assert result.status is JobStatus.FAILED
    assert result.error_message == "commit #5 failed"
    mapped = [m.source_track_id for m in uow_factory.store.mappings_for(job.id)]
    assert mapped == ["e1"]
    stored = uow_factory.store.jobs[job.id]
    assert stored.processed_tracks == len(mapped)
    assert catalog.created == []


def test_failure_to_record_failure_propagates_and_is_recorded_on_redispatch(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    _explicit_playlist(catalog)
    notifier = RecordingNotifier()
    service = _service(catalog, uow_factory, notifier)
    job = service.create_job("user-1", "src")
    # commits: 1 create, 2 claim, 3 workload, 4 failure
    uow_factory.store.fail_commit(3)
    uow_factory.store.fail_commit(4)

    with pytest.raises(CommitFailedError, match="commit #4"):
        service.process_job(job.id)

    assert uow_factory.store.jobs[job.id].status is JobStatus.PROCESSING
    assert notifier.failed == []

    result = service.process_job(job.id)

    assert result.status is JobStatus.FAILED
    assert result.error_message == "commit #3 failed"
    assert uow_factory.store.jobs[job.id].error_message == "commit #3 failed"
    assert notifier.failed == [JobFailed("commit #3 failed")]
    assert catalog.search_calls == []
    assert service.process_job(job.id).status is JobStatus.FAILED


def test_finished_jobs_are_not_reprocessed(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    _explicit_playlist(catalog)
    service = _service(catalog, uow_factory)
    job = service.create_job("user-1", "src")
    first = service.process_job(job.id)
    searches = len(catalog.search_calls)

    second = service.process_job(job.id)

    assert second.status is JobStatus.COMPLETED
    assert second.target_playlist_id == first.target_playlist_id
    assert len(catalog.search_calls) == searches
    assert len(catalog.created) == 1


def test_unknown_job_raises(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    with pytest.raises(JobNotFoundError):
        _service(catalog, uow_factory).process_job(uuid4())


def test_job_lookup_checks_ownership(
    catalog: FakeCatalogClient, uow_factory: FakeUnitOfWorkFactory
) -> None:
    _explicit_playlist(catalog)
    service = _service(catalog, uow_factory)
    job = service.create_job("user-1", "src")

    with pytest.raises(AccessDeniedError):
        service.get_job(job.id, user_id="intruder")
    progress = service.get_progress(job.id, user_id="user-1")
    assert (progress.processed, progress.total, progress.current_batch) == (0, 3, "Not started")
    assert [listed.id for listed in service.list_jobs("user-1")] == [job.id]


def test_chunked_rejects_non_positive_sizes() -> None:
    assert list(chunked(["a", "b", "c"], 2)) == [["a", "b"], ["c"]]
    with pytest.raises(ValueError, match="positive"):
        list(chunked(["a"], 0))
