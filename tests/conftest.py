"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def spool_dir(tmp_path: Path) -> Path:
    """Empty spool input directory under the test's tmp path."""
    directory = tmp_path / "in"
    directory.mkdir()
    return directory


@pytest.fixture(autouse=True)
def default_log_level() -> Iterator[None]:
    """Restore the default log level after tests that change it."""
    yield
    from core.constants import DEFAULT_LOG_LEVEL
    from core.logging_config import configure_logging

    configure_logging(DEFAULT_LOG_LEVEL)
