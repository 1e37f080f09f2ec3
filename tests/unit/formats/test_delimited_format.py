"""Unit tests for the delimited format."""

from __future__ import annotations

from pathlib import Path

from core.batch import RecordBatch
from core.types import DelimitedOptions, ProduceFailure, ProduceSuccess
from formats.base import DataProducer
from formats.delimited_format import DelimitedParser


def _produce(path: Path, offset: int, max_records: int, options: DelimitedOptions):
    producer = DataProducer(DelimitedParser(options))
    batch = RecordBatch(max_records)
    return producer.produce(path, offset, max_records, batch), batch


def test_header_rows_become_field_maps(tmp_path: Path) -> None:
    """Header names should key each row's fields."""
    source = tmp_path / "a.csv"
    source.write_text("a,b\n1,2\n3,4", encoding="utf-8")

    outcome, batch = _produce(source, 0, 10, DelimitedOptions())

    assert [record.value for record in batch.records] == [
        {"a": "1", "b": "2"},
        {"a": "3", "b": "4"},
    ]
    assert outcome == ProduceSuccess(offset=-1)


def test_resume_rereads_header(tmp_path: Path) -> None:
    """A resumed read should still key fields by the header."""
    source = tmp_path / "a.csv"
    source.write_text("a,b\n1,2\n3,4\n", encoding="utf-8")
    options = DelimitedOptions()

    first_outcome, _ = _produce(source, 0, 1, options)
    _, resumed = _produce(source, first_outcome.offset, 10, options)

    assert first_outcome == ProduceSuccess(offset=8)
    assert [record.value for record in resumed.records] == [{"a": "3", "b": "4"}]


def test_ignore_header_uses_positional_names(tmp_path: Path) -> None:
    """Ignored headers should be skipped and columns named by index."""
    source = tmp_path / "a.csv"
    source.write_text("a,b\n1,2\n", encoding="utf-8")

    _, batch = _produce(source, 0, 10, DelimitedOptions(header="ignore_header"))

    assert [record.value for record in batch.records] == [{"0": "1", "1": "2"}]


def test_no_header_list_values(tmp_path: Path) -> None:
    """Without map conversion each row should stay a field list."""
    source = tmp_path / "a.csv"
    source.write_text("a,b\n1,2\n", encoding="utf-8")
    options = DelimitedOptions(header="no_header", convert_to_map=False)

    _, batch = _produce(source, 0, 10, options)

    assert [record.value for record in batch.records] == [["a", "b"], ["1", "2"]]


def test_columns_beyond_header_use_index_names(tmp_path: Path) -> None:
    """Extra columns past the header width should be named by index."""
    source = tmp_path / "a.csv"
    source.write_text("a\n1,2\n", encoding="utf-8")

    _, batch = _produce(source, 0, 10, DelimitedOptions())

    assert batch.records[0].value == {"a": "1", "1": "2"}


def test_quoted_field_spans_lines(tmp_path: Path) -> None:
    """Quoted fields with newlines should stay inside one record."""
    source = tmp_path / "a.csv"
    source.write_text('a,b\n"x\ny",2\nz,3\n', encoding="utf-8")

    _, batch = _produce(source, 0, 10, DelimitedOptions())

    assert [record.attributes["offset"] for record in batch.records] == ["4", "12"]
    assert batch.records[0].value == {"a": "x\ny", "b": "2"}


def test_tdf_mode_splits_on_tabs(tmp_path: Path) -> None:
    """Tab-delimited mode should split fields on tabs."""
    source = tmp_path / "a.tsv"
    source.write_text("a\tb\n1\t2\n", encoding="utf-8")

    _, batch = _produce(source, 0, 10, DelimitedOptions(mode="tdf"))

    assert batch.records[0].value == {"a": "1", "b": "2"}


def test_blank_rows_are_skipped(tmp_path: Path) -> None:
    """Blank lines should not produce records."""
    source = tmp_path / "a.csv"
    source.write_text("a\n1\n\n2\n", encoding="utf-8")

    _, batch = _produce(source, 0, 10, DelimitedOptions())

    assert [record.value for record in batch.records] == [{"a": "1"}, {"a": "2"}]


def test_malformed_row_fails_source(tmp_path: Path) -> None:
    """A row violating the dialect should fail at the row start."""
    source = tmp_path / "a.csv"
    source.write_text('a,b\n"abc"d,1\n', encoding="utf-8")

    outcome, _ = _produce(source, 0, 10, DelimitedOptions())

    assert isinstance(outcome, ProduceFailure) and outcome.position == 4
