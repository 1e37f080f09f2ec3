"""Sluice CLI entry points.
This module exposes spool pipeline runs, offset maintenance and one-off
message parsing. It maps argparse commands onto runner and store calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.parse_message_command import add_parse_message_command, run_parse_message_command
from core.config import SluiceConfig
from core.logging_config import configure_logging
from core.source_config import load_source_config
from core.types import SpoolRunOptions
from ingest.offset_store import OffsetStore
from ingest.pipeline import run_spool_pipeline


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="sluice", description="Sluice ingestion CLI")
    parser.add_argument("--data-root", help="Override SLUICE_DATA_ROOT for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_run_command(subparsers)
    _add_show_offset_command(subparsers)
    _add_reset_offset_command(subparsers)
    add_parse_message_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Sluice CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    config = _build_config(args.data_root)
    configure_logging(config.log_level)
    if args.command == "run":
        return _run_run_command(config, args)
    if args.command == "show-offset":
        return _run_show_offset_command(config, args)
    if args.command == "reset-offset":
        return _run_reset_offset_command(config, args)
    if args.command == "parse-message":
        return run_parse_message_command(args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(data_root: str | None) -> SluiceConfig:
    """Build runtime config with optional data-root override."""
    config = SluiceConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    return config


def _run_run_command(config: SluiceConfig, args: argparse.Namespace) -> int:
    """Handle run command.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    source_options = load_source_config(args.config_file)
    run_options = SpoolRunOptions(
        name=args.name,
        output_dir=args.output_dir,
        max_cycles=args.max_cycles,
        until_idle=args.until_idle,
    )
    result = run_spool_pipeline(source_options, run_options, config)
    print(f"cycles={result.cycles}")
    print(f"records={result.record_count}")
    print(f"errors={result.error_count}")
    print(f"offset={result.final_offset or '-'}")
    return 0


def _run_show_offset_command(config: SluiceConfig, args: argparse.Namespace) -> int:
    offset = OffsetStore(config.data_root, args.name).load()
    print(offset or "-")
    return 0


def _run_reset_offset_command(config: SluiceConfig, args: argparse.Namespace) -> int:
    removed = OffsetStore(config.data_root, args.name).clear()
    print("reset" if removed else "no offset stored")
    return 0


def _add_run_command(subparsers: Any) -> None:
    """Register run subcommand."""
    parser = subparsers.add_parser("run", help="Run the spool directory pipeline")
    parser.add_argument("config_file", help="Path to YAML source config")
    parser.add_argument("--name", required=True, help="Pipeline name owning the stored offset")
    parser.add_argument("--output-dir", required=True, help="Directory for record output files")
    parser.add_argument("--max-cycles", type=int, help="Stop after this many produce cycles")
    parser.add_argument(
        "--until-idle",
        action="store_true",
        help="Stop after the first cycle that finds no spool file",
    )


def _add_show_offset_command(subparsers: Any) -> None:
    """Register show-offset subcommand."""
    parser = subparsers.add_parser("show-offset", help="Print the stored pipeline offset")
    parser.add_argument("--name", required=True, help="Pipeline name")


def _add_reset_offset_command(subparsers: Any) -> None:
    """Register reset-offset subcommand."""
    parser = subparsers.add_parser("reset-offset", help="Clear the stored pipeline offset")
    parser.add_argument("--name", required=True, help="Pipeline name")
