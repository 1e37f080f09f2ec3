"""Unit tests for the spool source state machine."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.batch import RecordBatch
from core.errors import ErrorCode, SluiceInterruptedError, SluiceStageError
from core.types import SourceOptions, SpoolOptions
from ingest.spool_source import SpoolSource, resolve_spool_options


class _FakeSpooler:
    """In-memory spooler offering a fixed list of files."""

    def __init__(self, files: list[Path], quarantine_error: OSError | None = None) -> None:
        self._files = list(files)
        self._quarantine_error = quarantine_error
        self.current: Path | None = None
        self.polls = 0
        self.quarantined: list[Path] = []
        self.skipped: list[Path] = []

    def poll_for_file(self, timeout_secs: float) -> Path | None:
        self.polls += 1
        self.current = self._files.pop(0) if self._files else None
        return self.current

    def skip_current_file(self) -> None:
        if self.current is not None:
            self.skipped.append(self.current)
        self.current = None

    def handle_current_file_as_error(self) -> None:
        if self._quarantine_error is not None:
            raise self._quarantine_error
        if self.current is not None:
            self.quarantined.append(self.current)


class _InterruptingSpooler(_FakeSpooler):
    def poll_for_file(self, timeout_secs: float) -> Path | None:
        raise SluiceInterruptedError("stop requested")


def _write_lines(directory: Path, name: str, count: int) -> Path:
    path = directory / name
    path.write_text("".join(f"{name}-{index}\n" for index in range(count)), encoding="utf-8")
    return path


def _text_options(batch_size: int = 1000) -> SourceOptions:
    return SourceOptions(data_format="text", batch_size=batch_size, poll_timeout_secs=0)


def test_cold_start_opens_first_file(tmp_path: Path) -> None:
    """The first cycle should open the offered file from position zero."""
    source_file = tmp_path / "a.log"
    source_file.write_text("x\ny\nz\n", encoding="utf-8")
    source = SpoolSource(_text_options(batch_size=2), _FakeSpooler([source_file]))
    batch = RecordBatch(2)

    offset = source.produce(None, 2, batch)

    assert (offset, source.state, len(batch)) == ("a.log::4", "source_open", 2)


def test_open_file_continues_without_polling(tmp_path: Path) -> None:
    """A live checkpoint on the open file should not poll again."""
    source_file = tmp_path / "a.log"
    source_file.write_text("x\ny\nz\n", encoding="utf-8")
    spooler = _FakeSpooler([source_file])
    source = SpoolSource(_text_options(batch_size=2), spooler)
    offset = source.produce(None, 2, RecordBatch(2))
    batch = RecordBatch(2)

    offset = source.produce(offset, 2, batch)

    assert (offset, source.state, spooler.polls) == ("a.log::-1", "source_exhausted", 1)
    assert [record.value for record in batch.records] == [{"text": "z"}]


def test_exhausted_checkpoint_fetches_next_file(tmp_path: Path) -> None:
    """After exhaustion the next cycle should open a newer file."""
    first = _write_lines(tmp_path, "a.log", 1)
    second = _write_lines(tmp_path, "b.log", 1)
    source = SpoolSource(_text_options(), _FakeSpooler([first, second]))
    offset = source.produce(None, 10, RecordBatch(10))

    offset = source.produce(offset, 10, RecordBatch(10))

    assert offset == "b.log::-1"


def test_resume_skips_older_files_and_resumes_checkpoint(tmp_path: Path) -> None:
    """Older offers are skipped and the checkpoint file resumes in place."""
    files = [_write_lines(tmp_path, name, 3) for name in ("a.log", "b.log", "c.log")]
    source = SpoolSource(_text_options(), _FakeSpooler(files))
    batch = RecordBatch(10)

    offset = source.produce("b.log::8", 10, batch)

    assert [record.value for record in batch.records] == [{"text": "b.log-1"}, {"text": "b.log-2"}]
    assert offset == "b.log::-1"


def test_exhausted_checkpoint_file_is_not_reopened(tmp_path: Path) -> None:
    """A drained checkpoint file is skipped and the newer file starts at zero."""
    files = [_write_lines(tmp_path, name, 1) for name in ("a.log", "b.log", "c.log")]
    source = SpoolSource(_text_options(), _FakeSpooler(files))
    batch = RecordBatch(10)

    source.produce("b.log::-1", 10, batch)

    assert [record.record_id for record in batch.records] == ["c.log::0"]


def test_skipped_files_are_released_without_post_processing(tmp_path: Path) -> None:
    """Files older than the checkpoint should be handed back as skipped."""
    files = [_write_lines(tmp_path, name, 1) for name in ("a.log", "b.log", "c.log")]
    spooler = _FakeSpooler(files)
    source = SpoolSource(_text_options(), spooler)

    source.produce("b.log::-1", 10, RecordBatch(10))

    assert [path.name for path in spooler.skipped] == ["a.log", "b.log"]


def test_no_file_returns_checkpoint_and_empty_batch(tmp_path: Path) -> None:
    """Nothing offered within the timeout should keep the checkpoint."""
    source = SpoolSource(_text_options(), _FakeSpooler([]))
    batch = RecordBatch(10)

    offset = source.produce("a.log::-1", 10, batch)

    assert (offset, source.state, len(batch)) == ("a.log::-1", "no_source", 0)


def test_batch_bound_uses_smaller_limit(tmp_path: Path) -> None:
    """The cycle should honor min(configured, requested) batch size."""
    source_file = _write_lines(tmp_path, "a.log", 10)
    source = SpoolSource(_text_options(batch_size=5), _FakeSpooler([source_file]))
    batch = RecordBatch(10)

    source.produce(None, 3, batch)

    assert len(batch) == 3


def test_unparseable_file_is_quarantined(tmp_path: Path) -> None:
    """A source-fatal error should report, quarantine and exhaust the file."""
    source_file = tmp_path / "a.json"
    source_file.write_text('{"x":1}\n{"x":', encoding="utf-8")
    spooler = _FakeSpooler([source_file])
    source = SpoolSource(SourceOptions(data_format="json"), spooler)
    batch = RecordBatch(10)

    offset = source.produce(None, 10, batch)

    assert offset == "a.json::-1" and spooler.quarantined == [source_file]
    assert [(error.code, error.position) for error in batch.errors] == [
        (ErrorCode.SPOOLDIR_01, 8)
    ]


def test_failed_quarantine_raises_stage_error(tmp_path: Path) -> None:
    """A quarantine failure should stop the stage with SPOOLDIR_00."""
    source_file = tmp_path / "a.json"
    source_file.write_text("{", encoding="utf-8")
    spooler = _FakeSpooler([source_file], quarantine_error=PermissionError("denied"))
    source = SpoolSource(SourceOptions(data_format="json"), spooler)

    with pytest.raises(SluiceStageError) as error_info:
        source.produce(None, 10, RecordBatch(10))

    assert error_info.value.code is ErrorCode.SPOOLDIR_00


def test_interrupted_poll_keeps_checkpoint() -> None:
    """An interrupted wait should end the cycle with the previous offset."""
    source = SpoolSource(_text_options(), _InterruptingSpooler([]))
    batch = RecordBatch(10)

    offset = source.produce("a.log::-1", 10, batch)

    assert (offset, len(batch)) == ("a.log::-1", 0)


def test_records_format_forces_spool_overrides() -> None:
    """The wrapped-record format should read its own numbered files."""
    options = SourceOptions(
        data_format="records",
        spool=SpoolOptions(file_pattern="*.log", initial_file="x", max_spool_files=3),
    )

    spool = resolve_spool_options(options)

    assert (spool.file_pattern, spool.initial_file, spool.max_spool_files) == (
        "records-??????.json",
        None,
        10000,
    )
