"""Core constants used across Sluice modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".sluice")
OFFSETS_DIR_NAME = "offsets"
OFFSET_SEPARATOR = "::"
EXHAUSTED_POSITION = -1
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SPOOL_SCAN_INTERVAL_SECS = 0.5
READ_CHUNK_SIZE = 64 * 1024

DEFAULT_BATCH_SIZE = 1000
DEFAULT_POLL_TIMEOUT_SECS = 600.0
DEFAULT_MAX_SPOOL_FILES = 10
DEFAULT_RETENTION_MINUTES = 0
DEFAULT_MAX_LINE_LENGTH = 1024
DEFAULT_MAX_JSON_OBJECT_LENGTH = 4096
DEFAULT_MAX_XML_RECORD_LENGTH = 4096
DEFAULT_TRANSPORT_MAX_WAIT_SECS = 5.0

SUPPORTED_DATA_FORMATS = ("text", "json", "delimited", "xml", "records")
SUPPORTED_JSON_MODES = ("single_object", "multiple_objects", "array_objects")
SUPPORTED_CSV_MODES = ("csv", "excel", "mysql", "rfc4180", "tdf")
SUPPORTED_CSV_HEADERS = ("with_header", "ignore_header", "no_header")
SUPPORTED_POST_PROCESSING = ("none", "delete", "archive")

RECORDS_FILE_PATTERN = "records-??????.json"
RECORDS_FILE_TEMPLATE = "records-{:06d}.json"
RECORDS_MAX_SPOOL_FILES = 10000
