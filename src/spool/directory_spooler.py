"""Local directory spooler.

This module offers files from a spool directory in ascending name order.
It applies post processing to drained files, purges expired archives, and
moves quarantined files to the error directory.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import Path
import shutil
import threading
import time
from typing import Callable

from core.constants import DEFAULT_SPOOL_SCAN_INTERVAL_SECS, OFFSET_SEPARATOR
from core.errors import SluiceConfigError, SluiceInterruptedError, SluiceSpoolerError
from core.logging_config import get_logger
from core.types import SpoolOptions

_LOGGER = get_logger(__name__)

_SECONDS_PER_MINUTE = 60


class DirectorySpooler:
    """Offer spool directory files one at a time.

    A file stays current until the next poll, at which point it is
    post processed. Only names sorting after the last offered name are
    considered, so each file is offered at most once per instance.
    """

    def __init__(
        self,
        options: SpoolOptions,
        scan_interval_secs: float = DEFAULT_SPOOL_SCAN_INTERVAL_SECS,
        stop_event: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Validate spool options and prepare side directories.

        Args:
            options: Spool directory options.
            scan_interval_secs: Delay between directory scans while waiting.
            stop_event: Event that interrupts a blocking poll when set.
            clock: Monotonic clock used for poll deadlines.

        Raises:
            SluiceConfigError: If the spool directory or pattern is invalid.
        """
        self._options = options
        self._directory = _require_directory(options.directory)
        if not options.file_pattern:
            raise SluiceConfigError(
                "Spool config missing 'file_pattern'. Set spool.file_pattern to a glob."
            )
        self._pattern = options.file_pattern
        self._error_dir = _ensure_directory(options.error_dir)
        self._archive_dir = _ensure_directory(options.archive_dir)
        if options.post_processing == "archive" and self._archive_dir is None:
            raise SluiceConfigError(
                "Spool post_processing 'archive' requires 'archive_dir'. "
                "Set spool.archive_dir or choose another post_processing action."
            )
        self._scan_interval_secs = scan_interval_secs
        self._stop_event = stop_event or threading.Event()
        self._clock = clock
        self._current_file: Path | None = None
        self._last_offered: str | None = None
        self._ignored_names: set[str] = set()

    @property
    def current_file(self) -> Path | None:
        return self._current_file

    def poll_for_file(self, timeout_secs: float) -> Path | None:
        """Wait up to ``timeout_secs`` for the next pending file.

        Args:
            timeout_secs: Max seconds to wait.

        Returns:
            Path of the next file, or None when nothing arrived in time.

        Raises:
            SluiceSpoolerError: If too many files are pending or post
                processing fails.
            SluiceInterruptedError: If the stop event is set while waiting.
        """
        self._finish_current_file()
        self._purge_expired_archives()
        deadline = self._clock() + timeout_secs
        while True:
            pending = self._pending_files()
            if pending:
                self._current_file = pending[0]
                self._last_offered = self._current_file.name
                _LOGGER.debug(
                    "spooler_file_offered",
                    file=self._current_file.name,
                    pending_count=len(pending),
                )
                return self._current_file
            remaining = deadline - self._clock()
            if remaining <= 0:
                return None
            if self._stop_event.wait(min(self._scan_interval_secs, remaining)):
                raise SluiceInterruptedError(
                    f"Spool poll on {self._directory} interrupted by stop request."
                )

    def skip_current_file(self) -> None:
        """Release the current file without post processing it."""
        self._current_file = None

    def handle_current_file_as_error(self) -> None:
        """Move the current file to the error directory.

        Raises:
            OSError: If the file cannot be moved.
        """
        current_file = self._current_file
        if current_file is None:
            return
        self._current_file = None
        if self._error_dir is None:
            _LOGGER.warning(
                "spooler_error_dir_missing",
                file=current_file.name,
                reason="file left in spool directory",
            )
            return
        target = self._error_dir / current_file.name
        shutil.move(str(current_file), str(target))
        _LOGGER.info("spooler_file_quarantined", file=current_file.name, target=str(target))

    def _pending_files(self) -> list[Path]:
        candidates = sorted(
            path
            for path in self._directory.iterdir()
            if path.is_file()
            and fnmatchcase(path.name, self._pattern)
            and self._is_new(path.name)
            and self._is_addressable(path.name)
        )
        if len(candidates) > self._options.max_spool_files:
            raise SluiceSpoolerError(
                f"Spool directory {self._directory} holds {len(candidates)} pending files, "
                f"above max_spool_files={self._options.max_spool_files}. "
                "Raise spool.max_spool_files or drain the directory."
            )
        return candidates

    def _is_new(self, file_name: str) -> bool:
        if self._last_offered is not None:
            return file_name > self._last_offered
        initial_file = self._options.initial_file
        return initial_file is None or file_name >= initial_file

    def _is_addressable(self, file_name: str) -> bool:
        # Offsets embed the file name, so it must not contain the separator.
        if OFFSET_SEPARATOR not in file_name:
            return True
        if file_name not in self._ignored_names:
            self._ignored_names.add(file_name)
            _LOGGER.warning(
                "spooler_file_ignored",
                file=file_name,
                reason=f"file name contains the offset separator '{OFFSET_SEPARATOR}'",
            )
        return False

    def _finish_current_file(self) -> None:
        current_file = self._current_file
        if current_file is None:
            return
        self._current_file = None
        action = self._options.post_processing
        if action == "none" or not current_file.exists():
            return
        try:
            if action == "delete":
                current_file.unlink()
                _LOGGER.info("spooler_file_deleted", file=current_file.name)
            elif self._archive_dir is not None:
                archived = self._archive_dir / current_file.name
                shutil.move(str(current_file), str(archived))
                archived.touch()
                _LOGGER.info("spooler_file_archived", file=current_file.name)
        except OSError as error:
            raise SluiceSpoolerError(
                f"Failed to post process spool file {current_file}: {error}. "
                "Check directory permissions and retry."
            ) from error

    def _purge_expired_archives(self) -> None:
        retention_minutes = self._options.retention_minutes
        if self._archive_dir is None or retention_minutes <= 0:
            return
        cutoff = time.time() - retention_minutes * _SECONDS_PER_MINUTE
        for archived in sorted(self._archive_dir.iterdir()):
            if not archived.is_file() or archived.stat().st_mtime >= cutoff:
                continue
            try:
                archived.unlink()
            except OSError as error:
                _LOGGER.warning("spooler_archive_purge_failed", file=archived.name, error=str(error))
                continue
            _LOGGER.info("spooler_archive_purged", file=archived.name)


def _require_directory(directory: str | None) -> Path:
    if directory is None:
        raise SluiceConfigError(
            "Spool config missing 'directory'. Set spool.directory to the input directory."
        )
    spool_dir = Path(directory).expanduser()
    if not spool_dir.is_dir():
        raise SluiceConfigError(
            f"Spool directory {spool_dir} does not exist. Create it or fix spool.directory."
        )
    return spool_dir


def _ensure_directory(directory: str | None) -> Path | None:
    if directory is None:
        return None
    resolved = Path(directory).expanduser()
    resolved.mkdir(parents=True, exist_ok=True)
    return resolved
