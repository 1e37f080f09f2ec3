"""Transport message record creation.

A record creator runs the configured format parser over one complete
message payload. Depending on the single-record policy it returns one
record per parsed item or one record holding all of them.
"""

from __future__ import annotations

from dataclasses import replace
import io

from core.constants import OFFSET_SEPARATOR
from core.types import DataFormat, Record, SourceOptions, TransportMessage
from formats.base import FormatParser, ParsedItem
from formats.factory import build_format_parser


class RecordCreator:
    """Turn transport messages into records with one parser."""

    def __init__(
        self,
        parser: FormatParser,
        data_format: DataFormat,
        produce_single_record: bool = False,
        always_list: bool = False,
        plain_text: bool = False,
    ) -> None:
        self._parser = parser
        self._data_format = data_format
        self._produce_single_record = produce_single_record
        self._always_list = always_list
        self._plain_text = plain_text

    def create_records(self, message: TransportMessage) -> list[Record]:
        """Parse one message payload into records.

        Args:
            message: Complete transport message.

        Returns:
            Records for the message, empty when the payload holds no items.

        Raises:
            BadSourceError: If the payload cannot be parsed.
        """
        items = list(self._parser.parse(io.BytesIO(message.payload), 0, message.message_id))
        if not items:
            return []
        if self._data_format == "records":
            return [
                item.record or build_message_record(message, index, item.value)
                for index, item in enumerate(items)
            ]
        if not self._produce_single_record:
            return [
                build_message_record(message, index, self._item_value(item))
                for index, item in enumerate(items)
            ]
        return [build_message_record(message, 0, self._collapse(items))]

    def _collapse(self, items: list[ParsedItem]) -> object:
        if len(items) == 1 and not self._always_list:
            return self._item_value(items[0])
        return [self._item_value(item) for item in items]

    def _item_value(self, item: ParsedItem) -> object:
        if self._plain_text and isinstance(item.value, dict):
            return item.value["text"]
        return item.value


def build_record_creator(options: SourceOptions) -> RecordCreator:
    """Build the record creator for the configured data format.

    JSON array wrapping is applied by the creator, so the parser is built
    to yield array elements one by one. Text lines are delivered as plain
    strings unless truncation flags are requested.

    Args:
        options: Source options.

    Returns:
        Record creator bound to one parser.
    """
    parser_options = replace(options, json=replace(options.json, produce_single_record=False))
    always_list = options.data_format == "json" and options.json.content != "single_object"
    return RecordCreator(
        parser=build_format_parser(parser_options),
        data_format=options.data_format,
        produce_single_record=options.transport.produce_single_record,
        always_list=always_list,
        plain_text=options.data_format == "text" and not options.text.set_truncated,
    )


def build_message_record(message: TransportMessage, index: int, value: object) -> Record:
    """Wrap one parsed value from a message into a record."""
    return Record(
        record_id=f"{message.message_id}{OFFSET_SEPARATOR}{index}",
        value=value,
        attributes={
            "source": message.message_id,
            "topic": message.topic,
            "partition": str(message.partition),
            "offset": str(message.offset),
        },
    )
