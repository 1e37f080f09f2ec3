"""Sluice exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Stage error codes surfaced to the pipeline engine."""

    SPOOLDIR_00 = "Could not archive file '{}' in error directory: {}"
    SPOOLDIR_01 = "Error while processing file '{}' at position '{}': {}"
    TRANSPORT_01 = "Could not parse message '{}' at position '{}': {}"

    def format_message(self, *fields: object) -> str:
        """Render the message template with positional fields."""
        return self.value.format(*fields)


class SluiceError(Exception):
    """Base exception for all Sluice failures."""


class SluiceConfigError(SluiceError):
    """Raised for invalid runtime or source configuration."""


class SluiceDependencyError(SluiceError):
    """Raised when an optional runtime dependency is missing."""


class SluiceIngestError(SluiceError):
    """Raised for source parsing and ingest failures."""


class BadSourceError(SluiceIngestError):
    """Raised when a source holds bytes that cannot be turned into records."""

    def __init__(self, source_id: str, position: int, reason: str) -> None:
        super().__init__(f"{reason} (source '{source_id}', position {position})")
        self.source_id = source_id
        self.position = position
        self.reason = reason


class SluiceOffsetError(SluiceError):
    """Raised for offsets that cannot be encoded or decoded."""


class SluiceSpoolerError(SluiceError):
    """Raised by the directory spooler for unrecoverable spool conditions."""


class SluiceInterruptedError(SluiceError):
    """Raised when a blocking wait is interrupted by a stop request."""


class SluiceStageError(SluiceError):
    """Raised when a stage cannot make safe forward progress."""

    def __init__(self, code: ErrorCode, *fields: object) -> None:
        super().__init__(f"{code.name} - {code.format_message(*fields)}")
        self.code = code
        self.fields = fields
