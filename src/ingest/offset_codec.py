"""Resumable offset encoding.

An offset string is ``<source_id>::<position>``. A missing offset means the
stream start. Position ``-1`` is reserved for a fully consumed source.
"""

from __future__ import annotations

from core.constants import EXHAUSTED_POSITION, OFFSET_SEPARATOR
from core.errors import SluiceOffsetError


def decode_offset(offset: str | None) -> tuple[str | None, int]:
    """Split an offset string into source id and byte position.

    Args:
        offset: Encoded offset or None at stream start.

    Returns:
        ``(None, 0)`` for a missing offset, else the source id and position.

    Raises:
        SluiceOffsetError: If the position is not an integer or is negative
            other than the exhausted sentinel.
    """
    if offset is None:
        return None, 0
    source_id, separator, raw_position = offset.partition(OFFSET_SEPARATOR)
    if not separator:
        return offset, 0
    try:
        position = int(raw_position)
    except ValueError as error:
        raise SluiceOffsetError(
            f"Invalid offset '{offset}': position '{raw_position}' is not an integer."
        ) from error
    _check_position(position, offset)
    return source_id, position


def encode_offset(source_id: str | None, position: int) -> str | None:
    """Build an offset string from source id and byte position.

    Args:
        source_id: Source identifier, None before any source was opened.
        position: Byte position or the exhausted sentinel.

    Returns:
        Encoded offset, or None when ``source_id`` is None.

    Raises:
        SluiceOffsetError: If the id contains the separator or the
            position is invalid.
    """
    if source_id is None:
        return None
    if OFFSET_SEPARATOR in source_id:
        raise SluiceOffsetError(
            f"Source id '{source_id}' contains the reserved offset separator "
            f"'{OFFSET_SEPARATOR}'. Rename the source before ingesting it."
        )
    _check_position(position, source_id)
    return f"{source_id}{OFFSET_SEPARATOR}{position}"


def is_exhausted(position: int) -> bool:
    """Return whether a position marks a fully consumed source."""
    return position == EXHAUSTED_POSITION


def _check_position(position: int, context: str) -> None:
    if position < 0 and position != EXHAUSTED_POSITION:
        raise SluiceOffsetError(
            f"Invalid offset position {position} for '{context}': only "
            f"{EXHAUSTED_POSITION} is allowed as a negative position."
        )
