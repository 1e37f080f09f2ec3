"""Transport message source.

This module drains messages from a consumer within a bounded wait and
converts them to records. Records that do not fit the current batch are
held for the next cycle so the batch bound always holds.
"""

from __future__ import annotations

from collections import deque
import time
from typing import Callable, Protocol

from core.batch import RecordBatch
from core.errors import BadSourceError, ErrorCode
from core.logging_config import get_logger
from core.types import Record, SourceOptions, StageErrorReport, TransportMessage
from transport.record_creator import RecordCreator, build_record_creator

_LOGGER = get_logger(__name__)


class MessageConsumer(Protocol):
    """Partitioned log consumer used by the transport source."""

    def read(self, timeout_secs: float) -> TransportMessage | None: ...


class TransportSource:
    """Produce record batches from transport messages."""

    def __init__(
        self,
        options: SourceOptions,
        consumer: MessageConsumer,
        creator: RecordCreator | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._options = options
        self._consumer = consumer
        self._creator = creator or build_record_creator(options)
        self._clock = clock
        self._pending: deque[Record] = deque()

    @property
    def pending_count(self) -> int:
        """Return how many records are held for the next cycle."""
        return len(self._pending)

    def produce(
        self,
        last_offset: str | None,
        max_batch_size: int,
        batch: RecordBatch,
    ) -> None:
        """Fill the batch from held records and newly read messages.

        Message positions are tracked by the consumer, so ``last_offset``
        is accepted for interface symmetry and the returned offset is None.

        Args:
            last_offset: Ignored offset from the previous cycle.
            max_batch_size: Max records requested by the engine.
            batch: Batch sink for records and error reports.
        """
        batch_size = min(self._options.batch_size, max_batch_size, batch.remaining)
        emitted = self._drain_pending(batch, batch_size)
        deadline = self._clock() + self._options.transport.max_wait_time_secs
        while emitted < batch_size:
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            message = self._consumer.read(remaining)
            if message is None:
                break
            self._pending.extend(self._create_records(message, batch))
            emitted += self._drain_pending(batch, batch_size - emitted)

    def _create_records(self, message: TransportMessage, batch: RecordBatch) -> list[Record]:
        try:
            return self._creator.create_records(message)
        except BadSourceError as error:
            _LOGGER.error(
                "transport_message_failed",
                message_id=message.message_id,
                position=error.position,
                reason=error.reason,
            )
            batch.report_error(
                StageErrorReport(
                    code=ErrorCode.TRANSPORT_01,
                    message=ErrorCode.TRANSPORT_01.format_message(
                        message.message_id, error.position, error.reason
                    ),
                    source_id=message.message_id,
                    position=error.position,
                )
            )
            return []

    def _drain_pending(self, batch: RecordBatch, limit: int) -> int:
        drained = 0
        while self._pending and drained < limit:
            batch.add(self._pending.popleft())
            drained += 1
        return drained
