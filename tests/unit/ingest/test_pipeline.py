"""Unit tests for the spool pipeline runner."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import threading

from core.config import SluiceConfig
from core.types import SourceOptions, SpoolOptions, SpoolRunOptions
from ingest.offset_store import OffsetStore
from ingest.pipeline import SpoolPipelineRunner, run_spool_pipeline
from store.record_payload import read_records_jsonl


def _config(tmp_path: Path) -> SluiceConfig:
    return replace(
        SluiceConfig.from_env(),
        data_root=tmp_path / "state",
        spool_scan_interval_secs=0.01,
    )


def _source_options(spool_dir: Path, batch_size: int = 1000, **spool_fields: object) -> SourceOptions:
    return SourceOptions(
        data_format="text",
        batch_size=batch_size,
        poll_timeout_secs=0,
        spool=SpoolOptions(directory=str(spool_dir), file_pattern="*.log", **spool_fields),
    )


def test_run_until_idle_writes_all_records(tmp_path: Path, spool_dir: Path) -> None:
    """An idle-bounded run should drain every pending file."""
    (spool_dir / "a.log").write_text("1\n2\n", encoding="utf-8")
    (spool_dir / "b.log").write_text("3\n", encoding="utf-8")
    run_options = SpoolRunOptions(name="demo", output_dir=str(tmp_path / "out"), until_idle=True)

    result = run_spool_pipeline(_source_options(spool_dir), run_options, _config(tmp_path))

    written = [
        record.value["text"]
        for path in result.output_files
        for record in read_records_jsonl(Path(path))
    ]
    assert written == ["1", "2", "3"] and result.final_offset == "b.log::-1"


def test_run_commits_offset_after_each_cycle(tmp_path: Path, spool_dir: Path) -> None:
    """The stored offset should match the last cycle's offset."""
    (spool_dir / "a.log").write_text("1\n2\n3\n", encoding="utf-8")
    config = _config(tmp_path)
    run_options = SpoolRunOptions(name="demo", output_dir=str(tmp_path / "out"), max_cycles=1)

    run_spool_pipeline(_source_options(spool_dir, batch_size=2), run_options, config)

    assert OffsetStore(config.data_root, "demo").load() == "a.log::4"


def test_run_resumes_from_stored_offset(tmp_path: Path, spool_dir: Path) -> None:
    """A second run should continue where the first stopped."""
    (spool_dir / "a.log").write_text("1\n2\n3\n", encoding="utf-8")
    config = _config(tmp_path)
    options = _source_options(spool_dir, batch_size=2)
    first_run = SpoolRunOptions(name="demo", output_dir=str(tmp_path / "out"), max_cycles=1)
    run_spool_pipeline(options, first_run, config)
    second_run = replace(first_run, max_cycles=None, until_idle=True)

    result = run_spool_pipeline(options, second_run, config)

    assert result.record_count == 1 and result.final_offset == "a.log::-1"


def test_run_counts_quarantine_errors(tmp_path: Path, spool_dir: Path) -> None:
    """Quarantined files should be counted and moved to the error dir."""
    (spool_dir / "a.log").write_bytes(b"ok\n\xff\n")
    error_dir = tmp_path / "errors"
    options = _source_options(spool_dir, error_dir=str(error_dir))
    run_options = SpoolRunOptions(name="demo", output_dir=str(tmp_path / "out"), until_idle=True)

    result = run_spool_pipeline(options, run_options, _config(tmp_path))

    assert result.error_count == 1 and (error_dir / "a.log").exists()


def test_stop_event_prevents_further_cycles(tmp_path: Path, spool_dir: Path) -> None:
    """A set stop event should end the run before the next cycle."""
    stop_event = threading.Event()
    stop_event.set()
    run_options = SpoolRunOptions(name="demo", output_dir=str(tmp_path / "out"))
    runner = SpoolPipelineRunner(
        _source_options(spool_dir), run_options, _config(tmp_path), stop_event=stop_event
    )

    result = runner.run()

    assert result.cycles == 0 and result.final_offset is None
