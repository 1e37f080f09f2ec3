"""Unit tests for the line-text format."""

from __future__ import annotations

from pathlib import Path

from core.batch import RecordBatch
from core.types import ProduceFailure, ProduceSuccess, TextOptions
from formats.base import DataProducer
from formats.text_format import TextParser


def _produce(path: Path, offset: int, max_records: int, options: TextOptions | None = None):
    producer = DataProducer(TextParser(options or TextOptions()))
    batch = RecordBatch(max_records)
    return producer.produce(path, offset, max_records, batch), batch


def test_text_produces_one_record_per_line(tmp_path: Path) -> None:
    """Each line should become one record without its terminator."""
    source = tmp_path / "a.log"
    source.write_bytes(b"alpha\r\nbeta\n")

    _, batch = _produce(source, 0, 10)

    assert [record.value for record in batch.records] == [{"text": "alpha"}, {"text": "beta"}]


def test_text_returns_exhausted_when_last_line_ends_at_eof(tmp_path: Path) -> None:
    """A bound hit exactly on the last record should report exhaustion."""
    source = tmp_path / "a.log"
    source.write_bytes(b"one\ntwo\n")

    outcome, _ = _produce(source, 0, 2)

    assert outcome == ProduceSuccess(offset=-1)


def test_text_returns_resumable_offset_at_bound(tmp_path: Path) -> None:
    """Stopping early should report the byte after the last record."""
    source = tmp_path / "a.log"
    source.write_bytes(b"one\ntwo\nthree\n")

    outcome, _ = _produce(source, 0, 1)

    assert outcome == ProduceSuccess(offset=4)


def test_text_resumes_from_offset(tmp_path: Path) -> None:
    """Resuming at an offset should continue with the next line."""
    source = tmp_path / "a.log"
    source.write_bytes(b"one\ntwo\nthree\n")

    _, batch = _produce(source, 4, 10)

    assert [record.record_id for record in batch.records] == ["a.log::4", "a.log::8"]


def test_text_truncates_long_lines(tmp_path: Path) -> None:
    """Lines above the max length should be cut and flagged."""
    source = tmp_path / "a.log"
    source.write_bytes(b"abcdefghij\nxy\n")
    options = TextOptions(max_line_length=4, set_truncated=True)

    _, batch = _produce(source, 0, 10, options)

    assert [record.value for record in batch.records] == [
        {"text": "abcd", "truncated": True},
        {"text": "xy", "truncated": False},
    ]


def test_text_truncated_line_offset_skips_rest_of_line(tmp_path: Path) -> None:
    """The next record should start after the whole truncated line."""
    source = tmp_path / "a.log"
    source.write_bytes(b"a" * 100 + b"\nnext\n")
    options = TextOptions(max_line_length=3)

    _, batch = _produce(source, 0, 10, options)

    assert batch.records[1].attributes["offset"] == "101"


def test_text_invalid_utf8_fails_source(tmp_path: Path) -> None:
    """Undecodable bytes should fail the source at their position."""
    source = tmp_path / "a.log"
    source.write_bytes(b"ok\nbad \xff\n")

    outcome, _ = _produce(source, 0, 10)

    assert isinstance(outcome, ProduceFailure) and outcome.position == 7
