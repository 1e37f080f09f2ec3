"""Parse-message command wiring for Sluice CLI."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from core.errors import BadSourceError
from core.source_config import load_source_config
from core.types import TransportMessage
from store.record_payload import record_to_line
from transport.record_creator import build_record_creator


def add_parse_message_command(subparsers: Any) -> None:
    """Register parse-message subcommand."""
    parser = subparsers.add_parser(
        "parse-message",
        help="Parse one transport message payload and print its records",
    )
    parser.add_argument("config_file", help="Path to YAML source config")
    parser.add_argument("payload_file", help="File holding the raw message payload")
    parser.add_argument("--topic", default="local", help="Topic name for record ids")
    parser.add_argument("--partition", type=int, default=0, help="Partition number")
    parser.add_argument("--offset", type=int, default=0, help="Message offset")


def run_parse_message_command(args: argparse.Namespace) -> int:
    """Run the record creator over one payload and print records as JSON lines."""
    options = load_source_config(args.config_file)
    message = TransportMessage(
        topic=args.topic,
        partition=args.partition,
        offset=args.offset,
        payload=Path(args.payload_file).read_bytes(),
    )
    creator = build_record_creator(options)
    try:
        records = creator.create_records(message)
    except BadSourceError as error:
        print(f"parse_error={error}")
        return 1
    for record in records:
        print(record_to_line(record))
    return 0
