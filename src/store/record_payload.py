"""Shared JSONL serialization for Record payloads.

This module centralizes the record wire encoding. It is reused by the
pipeline runner output files and by the wrapped-record format, which reads
that same encoding back verbatim.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from core.types import Record


def record_to_payload(record: Record) -> dict[str, object]:
    """Serialize Record into JSON-safe payload.

    Args:
        record: Record instance.

    Returns:
        Dictionary payload for JSON encoding.
    """
    return {
        "record_id": record.record_id,
        "value": record.value,
        "attributes": dict(record.attributes),
    }


def record_from_payload(payload: dict[str, Any]) -> Record:
    """Deserialize JSON payload into Record.

    Args:
        payload: Serialized record payload.

    Returns:
        Parsed Record.

    Raises:
        ValueError: If required fields are missing or mistyped.
    """
    record_id = payload.get("record_id")
    if not isinstance(record_id, str) or not record_id:
        raise ValueError("expected non-empty string field 'record_id'")
    if "value" not in payload:
        raise ValueError("expected field 'value'")
    attributes_payload = payload.get("attributes", {})
    if not isinstance(attributes_payload, dict):
        raise ValueError("expected object field 'attributes'")
    return Record(
        record_id=record_id,
        value=payload["value"],
        attributes={str(key): str(value) for key, value in attributes_payload.items()},
    )


def record_to_line(record: Record) -> str:
    """Encode one record as a JSONL row without trailing newline."""
    return json.dumps(record_to_payload(record), sort_keys=True, ensure_ascii=False)


def record_from_line(line: str, line_number: int) -> Record:
    """Decode one JSONL row into a Record.

    Raises:
        ValueError: If the row is not a valid record payload.
    """
    payload = _parse_payload_line(line, line_number)
    try:
        return record_from_payload(payload)
    except ValueError as error:
        raise ValueError(f"Invalid record at line {line_number}: {error}") from error


def write_records_jsonl(records_path: Path, records: Iterable[Record]) -> int:
    """Write records to a JSONL file.

    Args:
        records_path: Output JSONL file path.
        records: Records to serialize.

    Returns:
        Number of rows written.
    """
    lines = [record_to_line(record) for record in records]
    records_path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return len(lines)


def read_records_jsonl(records_path: Path) -> list[Record]:
    """Read records from a JSONL file.

    Args:
        records_path: Input JSONL file path.

    Returns:
        Parsed records.

    Raises:
        ValueError: If JSONL rows are invalid.
    """
    parsed_records: list[Record] = []
    for line_number, line in enumerate(records_path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip():
            continue
        parsed_records.append(record_from_line(line, line_number))
    return parsed_records


def _parse_payload_line(line: str, line_number: int) -> dict[str, Any]:
    """Parse and validate one JSONL payload row.

    Args:
        line: Raw JSONL line.
        line_number: One-based line number.

    Returns:
        Parsed payload dictionary.

    Raises:
        ValueError: If JSON row is invalid.
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as error:
        raise ValueError(f"Invalid JSON at line {line_number}: {error.msg}") from error
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid payload at line {line_number}: expected JSON object")
    return payload
