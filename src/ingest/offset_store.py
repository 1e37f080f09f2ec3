"""Durable offset persistence.

This module stores the last committed offset of a named pipeline.
It enables resume behavior across process restarts.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
import json
import os
from pathlib import Path

from core.constants import OFFSETS_DIR_NAME
from core.errors import SluiceOffsetError
from ingest.offset_codec import decode_offset


@dataclass(frozen=True)
class OffsetState:
    """Committed offset metadata."""

    name: str
    offset: str | None
    committed_at: str


class OffsetStore:
    """Filesystem-backed offset store for one pipeline name."""

    def __init__(self, data_root: Path, name: str) -> None:
        if not name or "/" in name or name.startswith("."):
            raise SluiceOffsetError(
                f"Invalid pipeline name '{name}'. Use a plain name without path separators."
            )
        self._name = name
        self._offsets_dir = data_root / OFFSETS_DIR_NAME
        self._offsets_dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._offsets_dir / f"{self._name}.json"

    def load(self) -> str | None:
        """Return the committed offset, or None when nothing was committed.

        Raises:
            SluiceOffsetError: If the state file is unreadable or invalid.
        """
        state_path = self.path
        if not state_path.exists():
            return None
        try:
            payload = json.loads(state_path.read_text(encoding="utf-8"))
            offset = payload["offset"]
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as error:
            raise SluiceOffsetError(
                f"Failed to read offset state at {state_path}: {error}. "
                "Delete the file or run 'sluice reset-offset' and retry."
            ) from error
        if offset is not None and not isinstance(offset, str):
            raise SluiceOffsetError(
                f"Invalid offset state at {state_path}: offset must be a string or null. "
                "Run 'sluice reset-offset' and retry."
            )
        decode_offset(offset)
        return offset

    def commit(self, offset: str | None) -> None:
        """Persist an offset atomically.

        Args:
            offset: Offset returned by the last produce cycle.
        """
        state = OffsetState(
            name=self._name,
            offset=offset,
            committed_at=datetime.now(timezone.utc).isoformat(),
        )
        temp_path = self.path.with_suffix(".json.tmp")
        temp_path.write_text(json.dumps(asdict(state), indent=2) + "\n", encoding="utf-8")
        os.replace(temp_path, self.path)

    def clear(self) -> bool:
        """Remove the committed offset.

        Returns:
            True when a stored offset was removed.
        """
        if not self.path.exists():
            return False
        self.path.unlink()
        return True
