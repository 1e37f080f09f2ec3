"""Numbered record output files.

Each delivered batch is written as one ``records-NNNNNN.json`` JSONL file.
The same files can be consumed again by the wrapped-record format.
"""

from __future__ import annotations

import os
from pathlib import Path
import re
from typing import Sequence

from core.constants import RECORDS_FILE_TEMPLATE
from core.types import Record
from store.record_payload import write_records_jsonl

_RECORDS_FILE_NAME = re.compile(r"^records-(\d{6})\.json$")


class RecordFileWriter:
    """Write batches to sequentially numbered JSONL files."""

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = output_dir
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._next_index = _next_file_index(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def write_batch(self, records: Sequence[Record]) -> Path | None:
        """Write one batch to the next numbered file.

        Args:
            records: Records delivered by one produce cycle.

        Returns:
            Written file path, or None for an empty batch.
        """
        if not records:
            return None
        target = self._output_dir / RECORDS_FILE_TEMPLATE.format(self._next_index)
        temp_path = self._output_dir / f".{target.name}.tmp"
        write_records_jsonl(temp_path, records)
        os.replace(temp_path, target)
        self._next_index += 1
        return target


def _next_file_index(output_dir: Path) -> int:
    indexes = [
        int(match.group(1))
        for match in (_RECORDS_FILE_NAME.match(path.name) for path in output_dir.iterdir())
        if match is not None
    ]
    return max(indexes, default=0) + 1
