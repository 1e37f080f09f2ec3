"""Shared typed models.

This module defines immutable data models used by format parsers,
sources, the spooler, and the pipeline runner to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping, Union

from core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_JSON_OBJECT_LENGTH,
    DEFAULT_MAX_LINE_LENGTH,
    DEFAULT_MAX_SPOOL_FILES,
    DEFAULT_MAX_XML_RECORD_LENGTH,
    DEFAULT_POLL_TIMEOUT_SECS,
    DEFAULT_RETENTION_MINUTES,
    DEFAULT_TRANSPORT_MAX_WAIT_SECS,
    OFFSET_SEPARATOR,
)
from core.errors import ErrorCode

DataFormat = Literal["text", "json", "delimited", "xml", "records"]
JsonMode = Literal["single_object", "multiple_objects", "array_objects"]
CsvMode = Literal["csv", "excel", "mysql", "rfc4180", "tdf"]
CsvHeader = Literal["with_header", "ignore_header", "no_header"]
PostProcessing = Literal["none", "delete", "archive"]
SourceState = Literal["no_source", "source_open", "source_exhausted"]


@dataclass(frozen=True)
class Record:
    """Structured output record.

    Attributes:
        record_id: Unique id derived from source, position and item index.
        value: Scalar, mapping, or list payload.
        attributes: Header attributes such as source and offset.
    """

    record_id: str
    value: object
    attributes: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StageErrorReport:
    """Pipeline-level error surfaced alongside a batch."""

    code: ErrorCode
    message: str
    source_id: str
    position: int


@dataclass(frozen=True)
class ProduceSuccess:
    """Producer outcome carrying the next resumable offset."""

    offset: int


@dataclass(frozen=True)
class ProduceFailure:
    """Producer outcome for a source that cannot be parsed."""

    source_id: str
    position: int
    reason: str


ProduceOutcome = Union[ProduceSuccess, ProduceFailure]


@dataclass(frozen=True)
class TransportMessage:
    """One message fetched from a partitioned log.

    Attributes:
        topic: Topic the message was read from.
        partition: Partition number within the topic.
        offset: Message position within the partition.
        payload: Raw message bytes.
        key: Optional message key.
    """

    topic: str
    partition: int
    offset: int
    payload: bytes
    key: bytes | None = None

    @property
    def message_id(self) -> str:
        """Return the topic/partition/offset descriptor."""
        return OFFSET_SEPARATOR.join((self.topic, str(self.partition), str(self.offset)))


@dataclass(frozen=True)
class TextOptions:
    """Line-text format options."""

    max_line_length: int = DEFAULT_MAX_LINE_LENGTH
    set_truncated: bool = False


@dataclass(frozen=True)
class JsonOptions:
    """JSON format options."""

    content: JsonMode = "multiple_objects"
    max_object_length: int = DEFAULT_MAX_JSON_OBJECT_LENGTH
    produce_single_record: bool = False


@dataclass(frozen=True)
class DelimitedOptions:
    """Delimited format options."""

    mode: CsvMode = "csv"
    header: CsvHeader = "with_header"
    convert_to_map: bool = True


@dataclass(frozen=True)
class XmlOptions:
    """XML format options."""

    record_element: str = "record"
    max_record_length: int = DEFAULT_MAX_XML_RECORD_LENGTH


@dataclass(frozen=True)
class TransportOptions:
    """Transport record creation options.

    Attributes:
        produce_single_record: Collapse all items of one message into one record.
        max_wait_time_secs: Max time one transport cycle waits for messages.
    """

    produce_single_record: bool = False
    max_wait_time_secs: float = DEFAULT_TRANSPORT_MAX_WAIT_SECS


@dataclass(frozen=True)
class SpoolOptions:
    """Spool directory options.

    Attributes:
        directory: Directory where input files accumulate.
        file_pattern: Glob selecting files to process.
        initial_file: First file name to process; earlier names are ignored.
        max_spool_files: Max pending files before the spooler fails.
        error_dir: Directory that receives quarantined files.
        post_processing: Action applied to fully processed files.
        archive_dir: Archive directory for ``archive`` post processing.
        retention_minutes: Archive retention, zero keeps files forever.
    """

    directory: str | None = None
    file_pattern: str | None = None
    initial_file: str | None = None
    max_spool_files: int = DEFAULT_MAX_SPOOL_FILES
    error_dir: str | None = None
    post_processing: PostProcessing = "none"
    archive_dir: str | None = None
    retention_minutes: int = DEFAULT_RETENTION_MINUTES


@dataclass(frozen=True)
class SourceOptions:
    """Complete source configuration.

    Attributes:
        data_format: Selected data format.
        batch_size: Configured max records per batch.
        poll_timeout_secs: Max wait for a new spool file per cycle.
        spool: Spool directory options.
        text: Line-text options.
        json: JSON options.
        delimited: Delimited options.
        xml: XML options.
        transport: Transport record creation options.
    """

    data_format: DataFormat
    batch_size: int = DEFAULT_BATCH_SIZE
    poll_timeout_secs: float = DEFAULT_POLL_TIMEOUT_SECS
    spool: SpoolOptions = field(default_factory=SpoolOptions)
    text: TextOptions = field(default_factory=TextOptions)
    json: JsonOptions = field(default_factory=JsonOptions)
    delimited: DelimitedOptions = field(default_factory=DelimitedOptions)
    xml: XmlOptions = field(default_factory=XmlOptions)
    transport: TransportOptions = field(default_factory=TransportOptions)


@dataclass(frozen=True)
class SpoolRunOptions:
    """Spool pipeline run options.

    Attributes:
        name: Pipeline name owning the stored offset.
        output_dir: Directory receiving numbered record files.
        max_cycles: Max produce cycles, None runs until stopped.
        until_idle: Stop after the first cycle that finds no file.
    """

    name: str
    output_dir: str
    max_cycles: int | None = None
    until_idle: bool = False


@dataclass(frozen=True)
class SpoolRunResult:
    """Summary of one spool pipeline run."""

    cycles: int
    record_count: int
    error_count: int
    final_offset: str | None
    output_files: tuple[str, ...] = ()
