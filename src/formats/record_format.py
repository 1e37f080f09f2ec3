"""Wrapped-record format parser.

Reads files written in the pipeline's own JSONL record encoding and
returns each stored record verbatim.
"""

from __future__ import annotations

from typing import BinaryIO, Iterator

from core.errors import BadSourceError
from formats.base import ParsedItem
from store.record_payload import record_from_line


class RecordParser:
    """One stored record per non-blank line."""

    def parse(self, handle: BinaryIO, start: int, source_id: str) -> Iterator[ParsedItem]:
        handle.seek(start)
        position = start
        line_number = 0
        while True:
            raw_line = handle.readline()
            if not raw_line:
                return
            line_number += 1
            end = position + len(raw_line)
            line = _decode(raw_line, source_id, position)
            if line.strip():
                try:
                    record = record_from_line(line, line_number)
                except ValueError as error:
                    raise BadSourceError(source_id, position, str(error)) from error
                yield ParsedItem(start=position, end=end, value=record.value, record=record)
            position = end


def _decode(raw_line: bytes, source_id: str, position: int) -> str:
    try:
        return raw_line.decode("utf-8")
    except UnicodeDecodeError as error:
        raise BadSourceError(
            source_id, position + error.start, f"Invalid UTF-8 data: {error.reason}"
        ) from error
