"""Public SDK surface for Sluice.

This module provides a stable import path for library users.
It re-exports the sources, runners and typed option models.
"""

from __future__ import annotations

from core.batch import RecordBatch
from core.config import SluiceConfig
from core.logging_config import configure_logging
from core.source_config import load_source_config, parse_source_config
from core.types import (
    Record,
    SourceOptions,
    SpoolRunOptions,
    SpoolRunResult,
    TransportMessage,
)
from formats.factory import build_data_producer
from ingest.offset_codec import decode_offset, encode_offset
from ingest.offset_store import OffsetStore
from ingest.pipeline import SpoolPipelineRunner, run_spool_pipeline
from ingest.spool_source import SpoolSource
from spool.directory_spooler import DirectorySpooler
from transport.record_creator import RecordCreator, build_record_creator
from transport.source import TransportSource

__all__ = [
    "DirectorySpooler",
    "OffsetStore",
    "Record",
    "RecordBatch",
    "RecordCreator",
    "SluiceConfig",
    "SourceOptions",
    "SpoolPipelineRunner",
    "SpoolRunOptions",
    "SpoolRunResult",
    "SpoolSource",
    "TransportMessage",
    "TransportSource",
    "build_data_producer",
    "configure_logging",
    "build_record_creator",
    "decode_offset",
    "encode_offset",
    "load_source_config",
    "parse_source_config",
    "run_spool_pipeline",
]
