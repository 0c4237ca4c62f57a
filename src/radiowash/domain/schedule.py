"""Compute when a sync configuration should run next."""

from __future__ import annotations

import calendar
from datetime import UTC, datetime, time, timedelta
from typing import TYPE_CHECKING, Protocol

from radiowash.domain.model import SyncFrequency

if TYPE_CHECKING:
    from collections.abc import Callable

DAILY_RUN_TIME = time(0, 1, tzinfo=UTC)


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("Schedule anchors must include timezone information")
    return value.astimezone(UTC)


def _add_month(value: datetime) -> datetime:
    year, month = (value.year + 1, 1) if value.month == 12 else (value.year, value.month + 1)
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _next_daily(anchor: datetime) -> datetime:
    return datetime.combine(anchor.date() + timedelta(days=1), DAILY_RUN_TIME)


_STEPS: dict[SyncFrequency, Callable[[datetime], datetime]] = {
    SyncFrequency.DAILY: _next_daily,
    SyncFrequency.WEEKLY: lambda anchor: anchor + timedelta(days=7),
    SyncFrequency.MONTHLY: _add_month,
}


def next_sync_time(
    frequency: SyncFrequency,
    last_sync: datetime | None = None,
    *,
    clock: Clock = _utcnow,
) -> datetime | None:
    """Return the next run time, or ``None`` for manual-only configurations.

    Daily runs happen shortly after midnight UTC on the following day; weekly
    and monthly runs are offset from the last sync (or now).
    """

    step = _STEPS.get(frequency)
    if step is None:
        return None
    anchor = _ensure_aware(last_sync) if last_sync is not None else _ensure_aware(clock())
    return step(anchor)
