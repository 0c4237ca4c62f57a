from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from radiowash.app import (
    create_cleaning_job,
    disable_sync,
    enable_sync,
    get_job_progress,
    get_sync_history,
    process_job,
    run_due_syncs,
    sync_now,
    update_sync_frequency,
)
from radiowash.config import configure_logging
from radiowash.domain.model import JobStatus, SyncFrequency
from radiowash.domain.syncing import DEFAULT_HISTORY_LIMIT

if TYPE_CHECKING:
    from collections.abc import Sequence

    from radiowash.domain.model import SyncResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clean playlists and keep them in sync")
    subparsers = parser.add_subparsers(dest="command", required=True)

    clean = subparsers.add_parser("clean", help="Create a cleaning job for a playlist")
    clean.add_argument("--user-id", type=str, required=True, help="Owner of the job")
    clean.add_argument(
        "--playlist-id",
        type=str,
        required=True,
        help="Spotify id of the playlist to clean",
    )
    clean.add_argument(
        "--name",
        type=str,
        help="Name of the cleaned playlist (defaults to 'Clean - <source name>')",
    )
    clean.add_argument(
        "--process",
        action="store_true",
        help="Process the job right away instead of only queueing it",
    )

    process = subparsers.add_parser("process", help="Process a pending cleaning job")
    process.add_argument("job_id", type=str, help="Job id returned by 'clean'")

    progress = subparsers.add_parser("progress", help="Show the progress of a cleaning job")
    progress.add_argument("job_id", type=str, help="Job id returned by 'clean'")
    progress.add_argument("--user-id", type=str, help="Only show the job if owned by this user")

    sync = subparsers.add_parser("sync", help="Playlist sync commands")
    sync_sub = sync.add_subparsers(dest="sync_command", required=True)

    sync_enable = sync_sub.add_parser("enable", help="Enable sync for a completed job")
    sync_enable.add_argument("--job-id", type=str, required=True)
    sync_enable.add_argument("--user-id", type=str, required=True)

    sync_disable = sync_sub.add_parser("disable", help="Disable a sync configuration")
    sync_disable.add_argument("--config-id", type=str, required=True)
    sync_disable.add_argument("--user-id", type=str, required=True)

    sync_run = sync_sub.add_parser("now", help="Sync one configuration immediately")
    sync_run.add_argument("--config-id", type=str, required=True)
    sync_run.add_argument("--user-id", type=str, required=True)

    sync_sub.add_parser("due", help="Run every configuration whose scheduled sync has passed")

    sync_history = sync_sub.add_parser("history", help="Show recent sync runs")
    sync_history.add_argument("--config-id", type=str, required=True)
    sync_history.add_argument("--user-id", type=str)
    sync_history.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_HISTORY_LIMIT,
        help="Number of runs to show (default: %(default)s)",
    )

    sync_frequency = sync_sub.add_parser("frequency", help="Change how often a playlist syncs")
    sync_frequency.add_argument("--config-id", type=str, required=True)
    sync_frequency.add_argument("--user-id", type=str, required=True)
    sync_frequency.add_argument(
        "--frequency",
        type=str,
        required=True,
        choices=[frequency.value for frequency in SyncFrequency],
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    for name in ("job_id", "config_id"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(args, name, _parse_uuid(value))
    if getattr(args, "limit", None) is not None and args.limit < 1:
        raise ValueError("--limit must be positive")


def _log_sync_result(config_id: UUID, result: SyncResult) -> None:
    if result.success:
        log.info(
            "Sync %s done in %dms: added=%d, removed=%d, unchanged=%d",
            config_id,
            result.duration_ms,
            result.added,
            result.removed,
            result.unchanged,
        )
    else:
        log.error("Sync %s failed: %s", config_id, result.error_message)


def _run(args: argparse.Namespace) -> bool:  # noqa: C901, PLR0911, PLR0912
    """Execute the parsed command; return whether it succeeded."""

    if args.command == "clean":
        job = create_cleaning_job(args.user_id, args.playlist_id, args.name)
        log.info("Created cleaning job %s -> %r", job.id, job.target_playlist_name)
        if not args.process:
            return True
        job = process_job(job.id)
        return job.status is JobStatus.COMPLETED

    if args.command == "process":
        job = process_job(args.job_id)
        if job.status is JobStatus.FAILED:
            log.error("Job %s failed: %s", job.id, job.error_message)
        return job.status is JobStatus.COMPLETED

    if args.command == "progress":
        progress = get_job_progress(args.job_id, args.user_id)
        log.info(
            "Job %s: %d/%d tracks, %d clean matches (%s)",
            args.job_id,
            progress.processed,
            progress.total,
            progress.matched,
            progress.current_batch,
        )
        return True

    if args.command != "sync":
        raise ValueError(f"Unsupported command: {args.command}")

    if args.sync_command == "enable":
        config = enable_sync(args.job_id, args.user_id)
        log.info(
            "Sync config %s active (%s), next run at %s",
            config.id,
            config.sync_frequency,
            config.next_scheduled_sync,
        )
        return True

    if args.sync_command == "disable":
        if disable_sync(args.config_id, args.user_id):
            log.info("Disabled sync config %s", args.config_id)
            return True
        log.error("Sync config %s not found for user %s", args.config_id, args.user_id)
        return False

    if args.sync_command == "now":
        result = sync_now(args.config_id, args.user_id)
        _log_sync_result(args.config_id, result)
        return result.success

    if args.sync_command == "due":
        results = run_due_syncs()
        for config_id, result in results.items():
            _log_sync_result(config_id, result)
        return all(result.success for result in results.values())

    if args.sync_command == "history":
        for entry in get_sync_history(args.config_id, args.user_id, limit=args.limit):
            log.info(
                "%s %-9s +%d -%d =%d %s",
                entry.started_at.isoformat(timespec="seconds"),
                entry.status,
                entry.tracks_added,
                entry.tracks_removed,
                entry.tracks_unchanged,
                entry.error_message or "",
            )
        return True

    if args.sync_command == "frequency":
        config = update_sync_frequency(args.config_id, SyncFrequency(args.frequency), args.user_id)
        log.info(
            "Sync config %s is now %s, next run at %s",
            config.id,
            config.sync_frequency,
            config.next_scheduled_sync,
        )
        return True

    raise ValueError(f"Unsupported sync command: {args.sync_command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        succeeded = _run(parsed_args)
    except KeyboardInterrupt:
        log.info("Closed by user (Ctrl+C)")
        sys.exit(0)
    except Exception:
        log.exception("Command %s failed", parsed_args.command)
        sys.exit(1)
    if not succeeded:
        sys.exit(1)


if __name__ == "__main__":
    main()
