"""Spool directory source orchestration.

This module runs one produce cycle at a time: decide whether a new file is
needed, wait a bounded time for an eligible file, produce a bounded batch
from the open file, and return the new offset. Unparseable files are
quarantined and their offset forced to the exhausted sentinel.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Protocol

from core.batch import RecordBatch
from core.constants import (
    EXHAUSTED_POSITION,
    RECORDS_FILE_PATTERN,
    RECORDS_MAX_SPOOL_FILES,
)
from core.errors import ErrorCode, SluiceInterruptedError, SluiceStageError
from core.logging_config import get_logger
from core.types import (
    ProduceFailure,
    ProduceSuccess,
    SourceOptions,
    SourceState,
    SpoolOptions,
    StageErrorReport,
)
from formats.base import DataProducer
from formats.factory import build_data_producer
from ingest.eligibility import is_eligible, needs_new_source
from ingest.offset_codec import decode_offset, encode_offset, is_exhausted

_LOGGER = get_logger(__name__)


class Spooler(Protocol):
    """Spool-list collaborator used by the spool source."""

    def poll_for_file(self, timeout_secs: float) -> Path | None: ...

    def skip_current_file(self) -> None: ...

    def handle_current_file_as_error(self) -> None: ...


class SpoolSource:
    """Resumable source over files offered by a spooler."""

    def __init__(
        self,
        options: SourceOptions,
        spooler: Spooler,
        producer: DataProducer | None = None,
    ) -> None:
        self._options = options
        self._spooler = spooler
        self._producer = producer or build_data_producer(options)
        self._current_file: Path | None = None
        self._state: SourceState = "no_source"

    @property
    def state(self) -> SourceState:
        return self._state

    @property
    def current_file(self) -> Path | None:
        return self._current_file

    def produce(
        self,
        last_offset: str | None,
        max_batch_size: int,
        batch: RecordBatch,
    ) -> str | None:
        """Run one produce cycle.

        Args:
            last_offset: Offset returned by the previous cycle, None at start.
            max_batch_size: Max records requested by the engine.
            batch: Batch sink for records and error reports.

        Returns:
            Offset to checkpoint after this cycle.

        Raises:
            SluiceStageError: If a bad file cannot be quarantined.
        """
        batch_size = min(self._options.batch_size, max_batch_size)
        file_name, offset = decode_offset(last_offset)
        current_name = self._current_file.name if self._current_file else None
        if needs_new_source(current_name, file_name, offset):
            self._current_file = None
            try:
                file_name, offset = self._open_next_file(file_name, offset)
            except SluiceInterruptedError:
                _LOGGER.warning("spool_poll_interrupted", checkpoint_file=file_name)
        if self._current_file is not None:
            offset = self._produce_from_file(self._current_file, offset, batch_size, batch)
        self._state = _resolve_state(self._current_file, offset)
        return encode_offset(file_name, offset)

    def _open_next_file(self, file_name: str | None, offset: int) -> tuple[str | None, int]:
        """Poll the spooler until an eligible file or nothing is offered."""
        candidate: Path | None = None
        while True:
            if candidate is not None:
                _LOGGER.warning(
                    "spool_file_skipped",
                    file=candidate.name,
                    checkpoint_file=file_name,
                    reason="file is not newer than the checkpoint file",
                )
                self._spooler.skip_current_file()
            candidate = self._spooler.poll_for_file(self._options.poll_timeout_secs)
            candidate_name = candidate.name if candidate is not None else None
            if is_eligible(candidate_name, file_name, offset):
                break
        if candidate is None:
            _LOGGER.debug(
                "spool_no_file_available",
                poll_timeout_secs=self._options.poll_timeout_secs,
            )
            return file_name, offset
        self._current_file = candidate
        if file_name is None or candidate.name > file_name:
            file_name, offset = candidate.name, 0
        _LOGGER.info("spool_file_opened", file=file_name, position=offset)
        return file_name, offset

    def _produce_from_file(
        self,
        file_path: Path,
        offset: int,
        batch_size: int,
        batch: RecordBatch,
    ) -> int:
        outcome = self._producer.produce(file_path, offset, batch_size, batch)
        if isinstance(outcome, ProduceSuccess):
            if is_exhausted(outcome.offset):
                _LOGGER.info("spool_file_completed", file=file_path.name)
            return outcome.offset
        self._quarantine(file_path, outcome, batch)
        return EXHAUSTED_POSITION

    def _quarantine(self, file_path: Path, failure: ProduceFailure, batch: RecordBatch) -> None:
        message = ErrorCode.SPOOLDIR_01.format_message(
            failure.source_id, failure.position, failure.reason
        )
        _LOGGER.error(
            "spool_file_failed",
            file=failure.source_id,
            position=failure.position,
            reason=failure.reason,
        )
        batch.report_error(
            StageErrorReport(
                code=ErrorCode.SPOOLDIR_01,
                message=message,
                source_id=failure.source_id,
                position=failure.position,
            )
        )
        try:
            self._spooler.handle_current_file_as_error()
        except OSError as error:
            raise SluiceStageError(
                ErrorCode.SPOOLDIR_00, file_path, error
            ) from error


def resolve_spool_options(options: SourceOptions) -> SpoolOptions:
    """Return spool options with the wrapped-record format overrides applied.

    The wrapped-record format always reads the pipeline's own output files,
    so its pattern and limits are fixed.
    """
    if options.data_format != "records":
        return options.spool
    return replace(
        options.spool,
        file_pattern=RECORDS_FILE_PATTERN,
        initial_file=None,
        max_spool_files=RECORDS_MAX_SPOOL_FILES,
    )


def _resolve_state(current_file: Path | None, offset: int) -> SourceState:
    if current_file is None:
        return "no_source"
    if is_exhausted(offset):
        return "source_exhausted"
    return "source_open"
