"""Runtime configuration model for Sluice.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SPOOL_SCAN_INTERVAL_SECS,
)
from core.errors import SluiceConfigError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class SluiceConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for offsets and runner state.
        spool_scan_interval_secs: Delay between spool directory scans.
        log_level: Minimum log level name.
    """

    data_root: Path
    spool_scan_interval_secs: float
    log_level: str

    @classmethod
    def from_env(cls) -> "SluiceConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            SluiceConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("SLUICE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        scan_interval_value = os.getenv(
            "SLUICE_SPOOL_SCAN_INTERVAL_SECS", str(DEFAULT_SPOOL_SCAN_INTERVAL_SECS)
        )
        log_level_value = os.getenv("SLUICE_LOG_LEVEL", DEFAULT_LOG_LEVEL)
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            spool_scan_interval_secs=_parse_scan_interval(scan_interval_value),
            log_level=_parse_log_level(log_level_value),
        )


def _parse_scan_interval(raw_value: str) -> float:
    """Parse the spool scan interval environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive interval in seconds.

    Raises:
        SluiceConfigError: If value is not a positive number.
    """
    try:
        interval = float(raw_value)
    except ValueError as error:
        raise SluiceConfigError(
            "Invalid SLUICE_SPOOL_SCAN_INTERVAL_SECS value: "
            f"expected number, got '{raw_value}'. "
            "Set SLUICE_SPOOL_SCAN_INTERVAL_SECS to a positive number of seconds."
        ) from error
    if interval <= 0:
        raise SluiceConfigError(
            f"Invalid SLUICE_SPOOL_SCAN_INTERVAL_SECS value: {raw_value}. "
            "Use a value greater than zero."
        )
    return interval


def _parse_log_level(raw_value: str) -> str:
    level = raw_value.strip().upper()
    if level not in _LOG_LEVELS:
        raise SluiceConfigError(
            f"Invalid SLUICE_LOG_LEVEL value '{raw_value}'. "
            f"Use one of: {', '.join(_LOG_LEVELS)}."
        )
    return level
