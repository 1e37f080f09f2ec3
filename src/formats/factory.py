"""Data format dispatch.

Selects the single parser bound to a source for its whole lifetime.
"""

from __future__ import annotations

from core.errors import SluiceConfigError
from core.types import SourceOptions
from formats.base import DataProducer, FormatParser
from formats.delimited_format import DelimitedParser
from formats.json_format import JsonParser
from formats.record_format import RecordParser
from formats.text_format import TextParser
from formats.xml_format import XmlParser


def build_format_parser(options: SourceOptions) -> FormatParser:
    """Build the parser for the configured data format.

    Args:
        options: Source options.

    Returns:
        Parser instance for ``options.data_format``.

    Raises:
        SluiceConfigError: If the data format is unknown.
    """
    if options.data_format == "text":
        return TextParser(options.text)
    if options.data_format == "json":
        return JsonParser(options.json)
    if options.data_format == "delimited":
        return DelimitedParser(options.delimited)
    if options.data_format == "xml":
        return XmlParser(options.xml)
    if options.data_format == "records":
        return RecordParser()
    raise SluiceConfigError(f"Unsupported data format '{options.data_format}'.")


def build_data_producer(options: SourceOptions) -> DataProducer:
    """Build the file data producer for the configured data format."""
    return DataProducer(build_format_parser(options))
