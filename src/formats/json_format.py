"""JSON format parser.

Supports one object per source, a stream of concatenated objects, and
an array of objects. Objects longer than the configured max length fail
the whole source.
"""

from __future__ import annotations

import json
from typing import BinaryIO, Iterator

from core.errors import BadSourceError
from core.types import JsonOptions
from formats.base import ParsedItem
from formats.char_reader import CharReader

_DECODER = json.JSONDecoder()
# Longest literal token that can be cut at the buffer edge, "-Infinity".
_EDGE_TOKEN_LENGTH = 9


class JsonParser:
    """Streaming JSON parser with byte-accurate item positions."""

    def __init__(self, options: JsonOptions) -> None:
        self._options = options

    def parse(self, handle: BinaryIO, start: int, source_id: str) -> Iterator[ParsedItem]:
        reader = CharReader(handle, start, source_id)
        if self._options.content == "single_object":
            yield from self._parse_single(reader, source_id)
        elif self._options.content == "array_objects":
            yield from self._parse_array(reader, start, source_id)
        else:
            yield from self._parse_multiple(reader, source_id)

    def _parse_single(self, reader: CharReader, source_id: str) -> Iterator[ParsedItem]:
        item = self._next_value(reader, source_id)
        if item is None:
            return
        reader.skip_whitespace()
        if not reader.at_end():
            raise BadSourceError(
                source_id, reader.position, "Unexpected content after single JSON object"
            )
        yield ParsedItem(start=item.start, end=reader.position, value=item.value)

    def _parse_multiple(self, reader: CharReader, source_id: str) -> Iterator[ParsedItem]:
        while True:
            item = self._next_value(reader, source_id)
            if item is None:
                return
            reader.skip_whitespace()
            yield ParsedItem(start=item.start, end=reader.position, value=item.value)

    def _parse_array(
        self,
        reader: CharReader,
        start: int,
        source_id: str,
    ) -> Iterator[ParsedItem]:
        reader.skip_whitespace()
        if reader.at_end():
            return
        array_start = reader.position
        expect_separator = start > 0
        if not expect_separator:
            if reader.peek() != "[":
                raise BadSourceError(source_id, reader.position, "Expected a JSON array")
            reader.consume(1)
        collected: list[object] = []
        while True:
            reader.skip_whitespace()
            next_char = reader.peek()
            if next_char == "":
                raise BadSourceError(source_id, reader.position, "Unterminated JSON array")
            if next_char == "]":
                reader.consume(1)
                reader.skip_whitespace()
                break
            if expect_separator:
                if next_char != ",":
                    raise BadSourceError(
                        source_id, reader.position, "Expected ',' or ']' in JSON array"
                    )
                reader.consume(1)
            item = self._next_value(reader, source_id)
            if item is None:
                raise BadSourceError(source_id, reader.position, "Unterminated JSON array")
            expect_separator = True
            if self._options.produce_single_record:
                collected.append(item.value)
                continue
            reader.skip_whitespace()
            if reader.peek() == "]":
                reader.consume(1)
                reader.skip_whitespace()
            yield ParsedItem(start=item.start, end=reader.position, value=item.value)
            if reader.at_end():
                return
        if self._options.produce_single_record:
            yield ParsedItem(start=array_start, end=reader.position, value=collected)

    def _next_value(self, reader: CharReader, source_id: str) -> ParsedItem | None:
        """Decode the next JSON value, or return None at end of input."""
        reader.skip_whitespace()
        if reader.at_end():
            return None
        max_length = self._options.max_object_length
        item_start = reader.position
        while True:
            try:
                value, end_index = _DECODER.raw_decode(reader.buffer, reader.index)
            except json.JSONDecodeError as error:
                if reader.eof:
                    raise BadSourceError(
                        source_id, item_start, f"Invalid JSON: {error.msg}"
                    ) from error
                if reader.available > max_length:
                    # A valid object within the limit would have decoded already.
                    if _is_truncated(error, len(reader.buffer)):
                        raise _too_long(source_id, item_start, max_length) from error
                    raise BadSourceError(
                        source_id, item_start, f"Invalid JSON: {error.msg}"
                    ) from error
                reader.fill()
                continue
            if end_index == len(reader.buffer) and not reader.eof:
                # A number at the buffer edge may continue in the next chunk.
                reader.fill()
                continue
            length = end_index - reader.index
            if length > max_length:
                raise _too_long(source_id, item_start, max_length)
            reader.consume(length)
            return ParsedItem(start=item_start, end=reader.position, value=value)


def _too_long(source_id: str, position: int, max_length: int) -> BadSourceError:
    return BadSourceError(
        source_id, position, f"JSON object exceeds max length of {max_length} characters"
    )


def _is_truncated(error: json.JSONDecodeError, buffer_length: int) -> bool:
    """Return whether a decode error comes from input cut at the buffer end."""
    if error.msg.startswith("Unterminated string"):
        return True
    return error.pos + _EDGE_TOKEN_LENGTH >= buffer_length
