"""Line-delimited text format parser."""

from __future__ import annotations

import codecs
from typing import BinaryIO, Iterator

from core.constants import READ_CHUNK_SIZE
from core.errors import BadSourceError
from core.types import TextOptions
from formats.base import ParsedItem

# Worst case UTF-8 width, used to bound how many bytes one line may pull in.
_MAX_UTF8_BYTES = 4


class TextParser:
    """One record per line, truncating lines above the max length."""

    def __init__(self, options: TextOptions) -> None:
        self._options = options

    def parse(self, handle: BinaryIO, start: int, source_id: str) -> Iterator[ParsedItem]:
        handle.seek(start)
        position = start
        byte_limit = self._options.max_line_length * _MAX_UTF8_BYTES + 2
        while True:
            raw_line = handle.readline(byte_limit)
            if not raw_line:
                return
            complete = raw_line.endswith(b"\n") or len(raw_line) < byte_limit
            if not complete:
                _skip_rest_of_line(handle)
            end = handle.tell()
            text = _decode_line(_strip_terminator(raw_line), complete, source_id, position)
            yield ParsedItem(start=position, end=end, value=self._line_value(text))
            position = end

    def _line_value(self, text: str) -> dict[str, object]:
        max_length = self._options.max_line_length
        truncated = len(text) > max_length
        value: dict[str, object] = {"text": text[:max_length] if truncated else text}
        if self._options.set_truncated:
            value["truncated"] = truncated
        return value


def _strip_terminator(raw_line: bytes) -> bytes:
    if raw_line.endswith(b"\r\n"):
        return raw_line[:-2]
    if raw_line.endswith(b"\n"):
        return raw_line[:-1]
    return raw_line


def _skip_rest_of_line(handle: BinaryIO) -> None:
    while True:
        remainder = handle.readline(READ_CHUNK_SIZE)
        if not remainder or remainder.endswith(b"\n"):
            return


def _decode_line(raw: bytes, complete: bool, source_id: str, position: int) -> str:
    """Decode a line, tolerating a multi-byte character cut by truncation."""
    decoder = codecs.getincrementaldecoder("utf-8")("strict")
    try:
        return decoder.decode(raw, final=complete)
    except UnicodeDecodeError as error:
        raise BadSourceError(
            source_id, position + error.start, f"Invalid UTF-8 data: {error.reason}"
        ) from error
