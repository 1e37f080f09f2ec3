"""Format parser contract and the file data producer.

Every data format is a parser that yields parsed items from a binary
handle positioned at a byte offset. The producer turns those items into
records, stops at the batch bound, and reports the resumable offset.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import BinaryIO, Iterator, Protocol

from core.batch import RecordBatch
from core.constants import EXHAUSTED_POSITION, OFFSET_SEPARATOR
from core.errors import BadSourceError
from core.types import ProduceFailure, ProduceOutcome, ProduceSuccess, Record


@dataclass(frozen=True)
class ParsedItem:
    """One parsed unit of a source.

    Attributes:
        start: Byte position where the item begins.
        end: Byte position right after the item.
        value: Parsed value.
        record: Complete record when the format already carries one.
    """

    start: int
    end: int
    value: object
    record: Record | None = None


class FormatParser(Protocol):
    """Parser contract shared by file producers and transport creators."""

    def parse(self, handle: BinaryIO, start: int, source_id: str) -> Iterator[ParsedItem]: ...


class DataProducer:
    """Produce bounded record batches from a file using one parser."""

    def __init__(self, parser: FormatParser) -> None:
        self._parser = parser

    @property
    def parser(self) -> FormatParser:
        return self._parser

    def produce(
        self,
        file_path: Path,
        offset: int,
        max_records: int,
        batch: RecordBatch,
    ) -> ProduceOutcome:
        """Parse up to ``max_records`` records from ``file_path``.

        Args:
            file_path: Source file.
            offset: Byte position to resume from.
            max_records: Max records to add to the batch.
            batch: Batch sink.

        Returns:
            ``ProduceSuccess`` with the next offset, ``-1`` when the file
            is fully consumed, or ``ProduceFailure`` for unparseable input.
        """
        if max_records <= 0:
            return ProduceSuccess(offset=offset)
        source_id = file_path.name
        try:
            with file_path.open("rb") as handle:
                file_size = os.fstat(handle.fileno()).st_size
                next_offset = self._produce_from_handle(
                    handle, source_id, offset, max_records, batch, file_size
                )
        except BadSourceError as error:
            return ProduceFailure(
                source_id=error.source_id,
                position=error.position,
                reason=error.reason,
            )
        return ProduceSuccess(offset=next_offset)

    def _produce_from_handle(
        self,
        handle: BinaryIO,
        source_id: str,
        offset: int,
        max_records: int,
        batch: RecordBatch,
        file_size: int,
    ) -> int:
        emitted = 0
        for item in self._parser.parse(handle, offset, source_id):
            batch.add(item.record or build_file_record(source_id, item))
            emitted += 1
            if emitted >= max_records:
                return EXHAUSTED_POSITION if item.end >= file_size else item.end
        return EXHAUSTED_POSITION


def build_file_record(source_id: str, item: ParsedItem) -> Record:
    """Wrap a parsed item from a file into a record."""
    return Record(
        record_id=f"{source_id}{OFFSET_SEPARATOR}{item.start}",
        value=item.value,
        attributes={"source": source_id, "offset": str(item.start)},
    )
