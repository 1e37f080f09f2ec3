"""Spool pipeline orchestration.

This module repeatedly runs spool source produce cycles, writes delivered
records to numbered output files, and commits the offset after each cycle
so a restarted run resumes where the last one stopped.
"""

from __future__ import annotations

from pathlib import Path
import threading

from core.batch import RecordBatch
from core.config import SluiceConfig
from core.logging_config import get_logger
from core.types import SourceOptions, SpoolRunOptions, SpoolRunResult
from ingest.offset_store import OffsetStore
from ingest.spool_source import SpoolSource, Spooler, resolve_spool_options
from spool.directory_spooler import DirectorySpooler
from store.record_files import RecordFileWriter

_LOGGER = get_logger(__name__)


class SpoolPipelineRunner:
    """Stateful runner for resumable spool pipeline execution."""

    def __init__(
        self,
        source_options: SourceOptions,
        run_options: SpoolRunOptions,
        config: SluiceConfig,
        stop_event: threading.Event | None = None,
        spooler: Spooler | None = None,
    ) -> None:
        self._source_options = source_options
        self._run_options = run_options
        self._stop_event = stop_event or threading.Event()
        self._spooler = spooler or DirectorySpooler(
            resolve_spool_options(source_options),
            scan_interval_secs=config.spool_scan_interval_secs,
            stop_event=self._stop_event,
        )
        self._source = SpoolSource(source_options, self._spooler)
        self._offsets = OffsetStore(config.data_root, run_options.name)
        self._writer = RecordFileWriter(Path(run_options.output_dir))

    def run(self) -> SpoolRunResult:
        """Run produce cycles until a stop condition holds."""
        offset = self._offsets.load()
        _LOGGER.info("spool_run_started", name=self._run_options.name, offset=offset)
        cycles = 0
        record_count = 0
        error_count = 0
        output_files: list[str] = []
        while not self._should_stop(cycles):
            batch = RecordBatch(self._source_options.batch_size)
            offset = self._source.produce(offset, batch.limit, batch)
            written = self._writer.write_batch(batch.records)
            if written is not None:
                output_files.append(str(written))
            _log_batch_errors(batch)
            self._offsets.commit(offset)
            cycles += 1
            record_count += len(batch)
            error_count += len(batch.errors)
            _LOGGER.info(
                "spool_cycle_completed",
                cycle=cycles,
                record_count=len(batch),
                error_count=len(batch.errors),
                offset=offset,
                state=self._source.state,
            )
            if self._run_options.until_idle and self._source.state == "no_source":
                break
        result = SpoolRunResult(
            cycles=cycles,
            record_count=record_count,
            error_count=error_count,
            final_offset=offset,
            output_files=tuple(output_files),
        )
        _LOGGER.info(
            "spool_run_completed",
            name=self._run_options.name,
            cycles=result.cycles,
            record_count=result.record_count,
            error_count=result.error_count,
            final_offset=result.final_offset,
        )
        return result

    def _should_stop(self, cycles: int) -> bool:
        if self._stop_event.is_set():
            return True
        max_cycles = self._run_options.max_cycles
        return max_cycles is not None and cycles >= max_cycles


def run_spool_pipeline(
    source_options: SourceOptions,
    run_options: SpoolRunOptions,
    config: SluiceConfig,
    stop_event: threading.Event | None = None,
) -> SpoolRunResult:
    """Run the spool pipeline and persist offsets.

    Args:
        source_options: Validated source options.
        run_options: Run name, output directory and stop conditions.
        config: Runtime configuration.
        stop_event: Optional event that stops the run when set.

    Returns:
        Run summary with the final committed offset.

    Raises:
        SluiceConfigError: If spool options are invalid.
        SluiceSpoolerError: If the spool directory cannot be processed.
        SluiceStageError: If a bad file cannot be quarantined.
    """
    runner = SpoolPipelineRunner(source_options, run_options, config, stop_event)
    return runner.run()


def _log_batch_errors(batch: RecordBatch) -> None:
    for report in batch.errors:
        _LOGGER.error(
            "spool_stage_error",
            code=report.code.name,
            message=report.message,
            source_id=report.source_id,
            position=report.position,
        )
