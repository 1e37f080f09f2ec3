"""Unit tests for record JSONL encoding."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.types import Record
from store.record_payload import (
    read_records_jsonl,
    record_from_line,
    record_to_line,
    write_records_jsonl,
)


def test_record_to_line_is_sorted_and_unescaped() -> None:
    """Encoded rows should be stable and keep non-ASCII text readable."""
    record = Record(record_id="a::0", value={"text": "é"}, attributes={"source": "a"})

    assert record_to_line(record) == (
        '{"attributes": {"source": "a"}, "record_id": "a::0", "value": {"text": "é"}}'
    )


def test_record_from_line_requires_record_id() -> None:
    """Rows without a record id should be rejected."""
    with pytest.raises(ValueError):
        record_from_line('{"value": 1}', 3)


def test_record_from_line_rejects_non_object_rows() -> None:
    """Rows that are not JSON objects should be rejected."""
    with pytest.raises(ValueError):
        record_from_line("[1, 2]", 1)


def test_read_records_skips_blank_lines(tmp_path: Path) -> None:
    """Blank lines between rows should be ignored."""
    records_path = tmp_path / "records.json"
    write_records_jsonl(records_path, [Record(record_id="a::0", value=None)])
    records_path.write_text(records_path.read_text(encoding="utf-8") + "\n\n", encoding="utf-8")

    assert [record.record_id for record in read_records_jsonl(records_path)] == ["a::0"]
