"""Coarse-grained progress batching for long track walks.

A run over ``n`` tracks produces roughly ``batches`` progress events and
persistence checkpoints no matter how large ``n`` is. The batcher is a frozen
value: predicates never change it and the ``mark_*`` methods return the next
state, so callers thread it through their loop explicitly::

    batcher = ProgressBatcher.initialize(len(tracks))
    for index, track in enumerate(tracks, start=1):
        ...
        if batcher.should_report(index):
            publish(batcher.describe(index, track.name))
            batcher = batcher.mark_reported(index)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Final

from radiowash.domain.ports.notifications import ProgressUpdate

DEFAULT_BATCHES: Final[int] = 20


@dataclass(frozen=True, slots=True)
class ProgressBatcher:
    total_items: int
    batch_size: int
    last_reported_batch: int = -1
    last_persisted_batch: int = -1

    @classmethod
    def initialize(cls, total_items: int, batches: int = DEFAULT_BATCHES) -> ProgressBatcher:
        if total_items < 0:
            raise ValueError(f"total_items must be non-negative, got {total_items}")
        if batches < 1:
            raise ValueError(f"batches must be positive, got {batches}")
        return cls(total_items=total_items, batch_size=max(1, total_items // batches))

    @property
    def total_batches(self) -> int:
        if self.total_items == 0:
            return 1
        return (self.total_items - 1) // self.batch_size + 1

    @property
    def expected_reports(self) -> int:
        """Upper bound on the number of ``should_report`` hits for one full walk."""

        return self.total_items // self.batch_size + 2

    def batch_of(self, index: int) -> int:
        self._check_index(index)
        return index // self.batch_size

    def should_report(self, index: int) -> bool:
        return self._crosses(index, self.last_reported_batch)

    def should_persist(self, index: int) -> bool:
        return self._crosses(index, self.last_persisted_batch)

    def mark_reported(self, index: int) -> ProgressBatcher:
        return replace(self, last_reported_batch=self.batch_of(index))

    def mark_persisted(self, index: int) -> ProgressBatcher:
        return replace(self, last_persisted_batch=self.batch_of(index))

    def describe(self, index: int, item_label: str | None = None) -> ProgressUpdate:
        self._check_index(index)
        total = self.total_items
        total_batches = self.total_batches
        percent = 100 if total == 0 else index * 100 // total

        if index == 0:
            batch_label = "Starting batch 1"
            message = "Initializing playlist processing..."
        elif index >= total:
            batch_label = f"Completed all {total_batches} batches"
            message = "Finalizing playlist creation..."
        else:
            batch = (index - 1) // self.batch_size
            start = batch * self.batch_size + 1
            end = min(start + self.batch_size - 1, total)
            batch_label = f"Processing tracks {start}-{end}"
            if item_label:
                message = f"Processing: {item_label}"
            else:
                message = f"Processing batch {batch + 1} of {total_batches}"

        return ProgressUpdate(
            percent=percent,
            processed=index,
            total=total,
            batch_label=batch_label,
            message=message,
        )

    def _crosses(self, index: int, last_batch: int) -> bool:
        if index in (0, self.total_items):
            self._check_index(index)
            return True
        return self.batch_of(index) > last_batch

    def _check_index(self, index: int) -> None:
        if not 0 <= index <= self.total_items:
            raise ValueError(f"index {index} outside 0..{self.total_items}")
