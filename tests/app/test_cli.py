from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from radiowash.domain.model import (
    CleanPlaylistJob,
    JobProgress,
    JobStatus,
    PlaylistSyncConfig,
    SyncFrequency,
    SyncResult,
)
from radiowash.ui import cli as cli_module

JOB_ID = UUID("6f1c0c8e-3a5e-4f59-9c43-0d2b7f6f1a10")
CONFIG_ID = UUID("0b8f5d4e-52a2-4a8e-9d3c-3f5b4b0d2c11")


def _job(status: JobStatus = JobStatus.PENDING) -> CleanPlaylistJob:
    return CleanPlaylistJob(
        id=JOB_ID,
        user_id="user-1",
        source_playlist_id="src",
        source_playlist_name="Road Trip",
        target_playlist_name="Clean - Road Trip",
        status=status,
    )


def test_clean_creates_job_without_processing(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[tuple[object, ...]] = []

    def fake_create(*args: object) -> CleanPlaylistJob:
        captured.append(args)
        return _job()

    def fail_process(job_id: UUID) -> CleanPlaylistJob:
        raise AssertionError(f"process_job should not run for {job_id}")

    monkeypatch.setattr(cli_module, "create_cleaning_job", fake_create)
    monkeypatch.setattr(cli_module, "process_job", fail_process)

    cli_module.main(["clean", "--user-id", "user-1", "--playlist-id", "src", "--name", "Tidy"])

    assert captured == [("user-1", "src", "Tidy")]


def test_clean_with_process_exits_non_zero_on_failed_job(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    processed: list[UUID] = []

    def fake_process(job_id: UUID) -> CleanPlaylistJob:
        processed.append(job_id)
        return _job(JobStatus.FAILED)

    monkeypatch.setattr(cli_module, "create_cleaning_job", lambda *_args: _job())
    monkeypatch.setattr(cli_module, "process_job", fake_process)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["clean", "--user-id", "user-1", "--playlist-id", "src", "--process"])

    assert excinfo.value.code == 1
    assert processed == [JOB_ID]


def test_process_parses_job_id(monkeypatch: pytest.MonkeyPatch) -> None:
    processed: list[UUID] = []

    def fake_process(job_id: UUID) -> CleanPlaylistJob:
        processed.append(job_id)
        return _job(JobStatus.COMPLETED)

    monkeypatch.setattr(cli_module, "process_job", fake_process)

    cli_module.main(["process", str(JOB_ID)])

    assert processed == [JOB_ID]


def test_invalid_uuid_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["process", "not-a-uuid"])

    assert excinfo.value.code == 2


def test_non_positive_history_limit_is_rejected() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["sync", "history", "--config-id", str(CONFIG_ID), "--limit", "0"])

    assert excinfo.value.code == 2


def test_progress_passes_owner(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[tuple[object, ...]] = []

    def fake_progress(*args: object) -> JobProgress:
        captured.append(args)
        return JobProgress(processed=5, total=10, current_batch="Processing tracks 1-5", matched=2)

    monkeypatch.setattr(cli_module, "get_job_progress", fake_progress)

    cli_module.main(["progress", str(JOB_ID), "--user-id", "user-1"])

    assert captured == [(JOB_ID, "user-1")]


def test_sync_frequency_converts_choice(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[tuple[object, ...]] = []

    def fake_update(
        config_id: UUID, frequency: SyncFrequency, user_id: str
    ) -> PlaylistSyncConfig:
        captured.append((config_id, frequency, user_id))
        return PlaylistSyncConfig(
            id=config_id,
            user_id=user_id,
            original_job_id=JOB_ID,
            source_playlist_id="src",
            target_playlist_id="created-1",
            sync_frequency=frequency,
            next_scheduled_sync=datetime(2024, 3, 22, 12, 30, tzinfo=UTC),
        )

    monkeypatch.setattr(cli_module, "update_sync_frequency", fake_update)

    cli_module.main(
        [
            "sync",
            "frequency",
            "--config-id",
            str(CONFIG_ID),
            "--user-id",
            "user-1",
            "--frequency",
            "weekly",
        ]
    )

    assert captured == [(CONFIG_ID, SyncFrequency.WEEKLY, "user-1")]


def test_unknown_frequency_is_rejected_by_argparse() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(
            [
                "sync",
                "frequency",
                "--config-id",
                str(CONFIG_ID),
                "--user-id",
                "user-1",
                "--frequency",
                "hourly",
            ]
        )

    assert excinfo.value.code == 2


def test_disable_unknown_config_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "disable_sync", lambda *_args: False)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(
            ["sync", "disable", "--config-id", str(CONFIG_ID), "--user-id", "user-1"]
        )

    assert excinfo.value.code == 1


def test_due_fails_when_any_sync_failed(monkeypatch: pytest.MonkeyPatch) -> None:
    results = {
        uuid4(): SyncResult(success=True, added=1),
        uuid4(): SyncResult(success=False, error_message="Spotify returned 500: oops"),
    }
    monkeypatch.setattr(cli_module, "run_due_syncs", lambda: results)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["sync", "due"])

    assert excinfo.value.code == 1


def test_due_with_nothing_to_do_succeeds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "run_due_syncs", dict)

    cli_module.main(["sync", "due"])


def test_unexpected_errors_exit_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(*_args: object) -> SyncResult:
        raise RuntimeError("database is gone")

    monkeypatch.setattr(cli_module, "sync_now", explode)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["sync", "now", "--config-id", str(CONFIG_ID), "--user-id", "user-1"])

    assert excinfo.value.code == 1


def test_ctrl_c_exits_cleanly(monkeypatch: pytest.MonkeyPatch) -> None:
    def interrupted(*_args: object) -> bool:
        raise KeyboardInterrupt

    monkeypatch.setattr(cli_module, "disable_sync", interrupted)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(
            ["sync", "disable", "--config-id", str(CONFIG_ID), "--user-id", "user-1"]
        )

    assert excinfo.value.code == 0
