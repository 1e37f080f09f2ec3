"""XML format parser.

A configured element name delimits records inside a streamed document.
Each delimiting element is cut out of the stream, parsed on its own, and
converted to plain Python values.
"""

from __future__ import annotations

import re
from typing import BinaryIO, Iterator, cast
from xml.etree import ElementTree

from core.errors import BadSourceError
from core.types import XmlOptions
from formats.base import ParsedItem
from formats.char_reader import CharReader


class XmlParser:
    """Stream records delimited by one element name."""

    def __init__(self, options: XmlOptions) -> None:
        self._options = options
        element = re.escape(options.record_element)
        self._start_pattern = re.compile(rf"<{element}(?=[\s/>])")
        self._tag_pattern = re.compile(rf"<{element}(?=[\s/>])[^>]*>|</{element}\s*>")

    def parse(self, handle: BinaryIO, start: int, source_id: str) -> Iterator[ParsedItem]:
        reader = CharReader(handle, start, source_id)
        while True:
            if not self._seek_record_start(reader):
                return
            item_start = reader.position
            fragment = self._read_fragment(reader, source_id, item_start)
            value = _fragment_value(fragment, source_id, item_start)
            reader.consume(len(fragment))
            yield ParsedItem(start=item_start, end=reader.position, value=value)

    def _seek_record_start(self, reader: CharReader) -> bool:
        """Consume input up to the next record start tag."""
        keep = len(self._options.record_element) + 2
        while True:
            match = self._start_pattern.search(reader.buffer, reader.index)
            if match is not None:
                reader.consume(match.start() - reader.index)
                return True
            if reader.eof:
                reader.consume(reader.available)
                return False
            if reader.available > keep:
                reader.consume(reader.available - keep)
            reader.fill()

    def _read_fragment(self, reader: CharReader, source_id: str, item_start: int) -> str:
        """Return the text of the element starting at the reader index."""
        max_length = self._options.max_record_length
        fragment_start = reader.index
        scan_from = fragment_start
        depth = 0
        while True:
            match = self._tag_pattern.search(reader.buffer, scan_from)
            if match is None:
                if reader.eof:
                    raise BadSourceError(
                        source_id,
                        item_start,
                        f"Unterminated <{self._options.record_element}> element",
                    )
                if len(reader.buffer) - fragment_start > max_length:
                    raise _too_long(source_id, item_start, max_length)
                reader.fill()
                continue
            tag = match.group(0)
            if tag.startswith("</"):
                depth -= 1
            elif not tag.endswith("/>"):
                depth += 1
            scan_from = match.end()
            if depth <= 0:
                break
        if scan_from - fragment_start > max_length:
            raise _too_long(source_id, item_start, max_length)
        return reader.buffer[fragment_start:scan_from]


def _fragment_value(fragment: str, source_id: str, position: int) -> object:
    try:
        element = ElementTree.fromstring(fragment)
    except ElementTree.ParseError as error:
        raise BadSourceError(source_id, position, f"Invalid XML record: {error}") from error
    return element_value(element)


def element_value(element: ElementTree.Element) -> object:
    """Convert an element into strings, mappings and lists.

    Attributes become ``@name`` keys, child elements become keys holding
    their value (a list when the tag repeats) and text goes under ``value``.
    A leaf element without attributes becomes its text.
    """
    children = list(element)
    if not children and not element.attrib:
        return element.text or ""
    value: dict[str, object] = {f"@{name}": text for name, text in element.attrib.items()}
    repeated: set[str] = set()
    for child in children:
        child_value = element_value(child)
        if child.tag not in value:
            value[child.tag] = child_value
        elif child.tag in repeated:
            cast(list, value[child.tag]).append(child_value)
        else:
            value[child.tag] = [value[child.tag], child_value]
            repeated.add(child.tag)
    text = (element.text or "").strip()
    if text:
        value["value"] = text
    return value


def _too_long(source_id: str, position: int, max_length: int) -> BadSourceError:
    return BadSourceError(
        source_id, position, f"XML record exceeds max length of {max_length} characters"
    )
