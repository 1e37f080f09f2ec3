"""Byte-position tracking text reader.

Decodes UTF-8 incrementally from a binary handle while keeping the byte
position of the first unconsumed character, so parsers working on text
can still report exact byte offsets.
"""

from __future__ import annotations

import codecs
from typing import BinaryIO

from core.constants import READ_CHUNK_SIZE
from core.errors import BadSourceError


class CharReader:
    """Buffered character reader over a binary handle."""

    def __init__(
        self,
        handle: BinaryIO,
        start: int,
        source_id: str,
        chunk_size: int = READ_CHUNK_SIZE,
    ) -> None:
        handle.seek(start)
        self._handle = handle
        self._source_id = source_id
        self._chunk_size = chunk_size
        self._decoder = codecs.getincrementaldecoder("utf-8")("strict")
        self._buffer = ""
        self._index = 0
        self._position = start
        self._read_position = start
        self._eof = False

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def index(self) -> int:
        """Index of the first unconsumed character in ``buffer``."""
        return self._index

    @property
    def position(self) -> int:
        """Byte position of the first unconsumed character."""
        return self._position

    @property
    def eof(self) -> bool:
        return self._eof

    @property
    def available(self) -> int:
        return len(self._buffer) - self._index

    def fill(self) -> bool:
        """Read and decode one more chunk.

        Returns:
            True when characters were appended to the buffer.

        Raises:
            BadSourceError: If the bytes are not valid UTF-8.
        """
        if self._eof:
            return False
        chunk = self._handle.read(self._chunk_size)
        chunk_start = self._read_position
        self._read_position += len(chunk)
        try:
            text = self._decoder.decode(chunk, final=not chunk)
        except UnicodeDecodeError as error:
            raise BadSourceError(
                self._source_id,
                chunk_start + max(error.start, 0),
                f"Invalid UTF-8 data: {error.reason}",
            ) from error
        if not chunk:
            self._eof = True
        self._buffer += text
        return bool(text)

    def ensure(self, count: int) -> bool:
        """Fill until ``count`` characters are available or input ends."""
        while self.available < count:
            if not self.fill() and self._eof:
                return False
        return True

    def peek(self) -> str:
        """Return the next character, or an empty string at the end."""
        if not self.ensure(1):
            return ""
        return self._buffer[self._index]

    def consume(self, count: int) -> None:
        """Advance past ``count`` characters."""
        consumed = self._buffer[self._index : self._index + count]
        self._position += len(consumed.encode("utf-8"))
        self._index += len(consumed)
        if self._index >= self._chunk_size:
            self._buffer = self._buffer[self._index :]
            self._index = 0

    def skip_whitespace(self) -> None:
        """Consume whitespace, reading more input as needed."""
        while True:
            if not self.ensure(1):
                return
            text = self._buffer
            cursor = self._index
            while cursor < len(text) and text[cursor].isspace():
                cursor += 1
            if cursor > self._index:
                self.consume(cursor - self._index)
            if cursor < len(text):
                return

    def at_end(self) -> bool:
        """Return whether no characters remain."""
        return not self.ensure(1)
