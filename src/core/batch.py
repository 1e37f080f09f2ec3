"""Bounded batch sink for produced records.

This module collects records and error reports for one produce cycle.
It enforces the per-cycle batch bound.
"""

from __future__ import annotations

from core.errors import SluiceIngestError
from core.types import Record, StageErrorReport


class RecordBatch:
    """Append-only record collector capped at a fixed size."""

    def __init__(self, limit: int) -> None:
        if limit < 0:
            raise SluiceIngestError(f"Batch limit must be non-negative, got {limit}.")
        self._limit = limit
        self._records: list[Record] = []
        self._errors: list[StageErrorReport] = []

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def remaining(self) -> int:
        """Return how many more records the batch accepts."""
        return self._limit - len(self._records)

    @property
    def records(self) -> list[Record]:
        return list(self._records)

    @property
    def errors(self) -> list[StageErrorReport]:
        return list(self._errors)

    def add(self, record: Record) -> None:
        """Append one record.

        Raises:
            SluiceIngestError: If the batch is already full.
        """
        if self.remaining <= 0:
            raise SluiceIngestError(
                f"Batch is full at {self._limit} records. "
                "Producers must stop at the requested max records."
            )
        self._records.append(record)

    def report_error(self, report: StageErrorReport) -> None:
        """Attach a pipeline-level error report."""
        self._errors.append(report)

    def __len__(self) -> int:
        return len(self._records)
