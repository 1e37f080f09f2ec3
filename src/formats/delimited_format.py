"""Delimited (CSV family) format parser.

Rows are read through ``csv.reader`` fed one physical line at a time, so
the byte position after each row is known even when quoted fields span
several lines.
"""

from __future__ import annotations

import csv
from typing import BinaryIO, Iterator

from core.errors import BadSourceError
from core.types import CsvMode, DelimitedOptions
from formats.base import ParsedItem


class _CsvDialect(csv.Dialect):
    delimiter = ","
    quotechar = '"'
    escapechar = None
    doublequote = True
    skipinitialspace = False
    lineterminator = "\n"
    quoting = csv.QUOTE_MINIMAL
    strict = True


class _Rfc4180Dialect(_CsvDialect):
    lineterminator = "\r\n"


class _MysqlDialect(_CsvDialect):
    delimiter = "\t"
    escapechar = "\\"
    doublequote = False
    quoting = csv.QUOTE_NONE


class _TdfDialect(_CsvDialect):
    delimiter = "\t"
    skipinitialspace = True


_DIALECTS: dict[CsvMode, type[csv.Dialect]] = {
    "csv": _CsvDialect,
    "excel": _CsvDialect,
    "rfc4180": _Rfc4180Dialect,
    "mysql": _MysqlDialect,
    "tdf": _TdfDialect,
}


class _TrackedLines:
    """Line iterator that records the byte position after each line."""

    def __init__(self, handle: BinaryIO, source_id: str) -> None:
        self._handle = handle
        self._source_id = source_id
        self.position = handle.tell()

    def __iter__(self) -> Iterator[str]:
        while True:
            raw_line = self._handle.readline()
            if not raw_line:
                return
            line_start = self.position
            self.position += len(raw_line)
            try:
                yield raw_line.decode("utf-8")
            except UnicodeDecodeError as error:
                raise BadSourceError(
                    self._source_id,
                    line_start + error.start,
                    f"Invalid UTF-8 data: {error.reason}",
                ) from error


class DelimitedParser:
    """Parse delimited rows into lists or field-name mappings."""

    def __init__(self, options: DelimitedOptions) -> None:
        self._options = options
        self._dialect = _DIALECTS[options.mode]

    def parse(self, handle: BinaryIO, start: int, source_id: str) -> Iterator[ParsedItem]:
        header_names: list[str] | None = None
        if self._options.header != "no_header":
            header = self._read_header(handle, source_id)
            if header is None:
                return
            header_row, header_end = header
            if self._options.header == "with_header":
                header_names = header_row
            start = max(start, header_end)
        handle.seek(start)
        lines = _TrackedLines(handle, source_id)
        reader = csv.reader(iter(lines), dialect=self._dialect)
        while True:
            row_start = lines.position
            row = _next_row(reader, source_id, row_start)
            if row is None:
                return
            if not row:
                continue
            yield ParsedItem(
                start=row_start,
                end=lines.position,
                value=self._row_value(row, header_names),
            )

    def _read_header(
        self,
        handle: BinaryIO,
        source_id: str,
    ) -> tuple[list[str], int] | None:
        """Read the first row and the byte position right after it."""
        handle.seek(0)
        lines = _TrackedLines(handle, source_id)
        reader = csv.reader(iter(lines), dialect=self._dialect)
        header_row = _next_row(reader, source_id, 0)
        if header_row is None:
            return None
        return header_row, lines.position

    def _row_value(self, row: list[str], header_names: list[str] | None) -> object:
        if not self._options.convert_to_map:
            return list(row)
        names = header_names or []
        return {
            names[index] if index < len(names) else str(index): field_value
            for index, field_value in enumerate(row)
        }


def _next_row(reader: Iterator[list[str]], source_id: str, row_start: int) -> list[str] | None:
    try:
        return next(reader)
    except StopIteration:
        return None
    except csv.Error as error:
        raise BadSourceError(source_id, row_start, f"Malformed delimited row: {error}") from error
