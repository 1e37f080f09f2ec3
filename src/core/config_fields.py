"""Type-safe field parsing helpers for source configuration.

This module centralizes primitive parsing so the source config loader
stays concise and produces consistent validation errors.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from core.errors import SluiceConfigError


def optional_string(args: Mapping[str, object], field_name: str) -> str | None:
    """Read an optional string field from a config section."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped if stripped else None
    raise SluiceConfigError(f"Source config field '{field_name}' must be a string when provided.")


def optional_int(args: Mapping[str, object], field_name: str) -> int | None:
    """Read an optional integer field from a config section."""
    value = args.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise SluiceConfigError(f"Source config field '{field_name}' must be an integer.")
    return value


def int_with_default(
    args: Mapping[str, object],
    field_name: str,
    default_value: int,
    minimum: int = 0,
) -> int:
    """Read an integer field while preserving explicit zero values."""
    value = optional_int(args, field_name)
    resolved = default_value if value is None else value
    if resolved < minimum:
        raise SluiceConfigError(
            f"Source config field '{field_name}' must be >= {minimum}, got {resolved}."
        )
    return resolved


def float_with_default(
    args: Mapping[str, object],
    field_name: str,
    default_value: float,
) -> float:
    """Read a non-negative numeric field."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SluiceConfigError(f"Source config field '{field_name}' must be numeric.")
    if value < 0:
        raise SluiceConfigError(
            f"Source config field '{field_name}' must be non-negative, got {value}."
        )
    return float(value)


def optional_bool(
    args: Mapping[str, object],
    field_name: str,
    default_value: bool,
) -> bool:
    """Read an optional boolean field from a config section."""
    value = args.get(field_name)
    if value is None:
        return default_value
    if isinstance(value, bool):
        return value
    raise SluiceConfigError(f"Source config field '{field_name}' must be true/false.")


def choice_with_default(
    args: Mapping[str, object],
    field_name: str,
    supported: Sequence[str],
    default_value: str,
) -> str:
    """Read a string field restricted to a fixed set of values."""
    value = optional_string(args, field_name)
    if value is None:
        return default_value
    normalized = value.lower()
    if normalized in supported:
        return normalized
    supported_rows = ", ".join(supported)
    raise SluiceConfigError(f"Invalid {field_name} '{value}'. Use one of: {supported_rows}.")
