"""Unit tests for the transport message source."""

from __future__ import annotations

from core.batch import RecordBatch
from core.errors import ErrorCode
from core.types import SourceOptions, TransportMessage, TransportOptions
from transport.source import TransportSource


class _ListConsumer:
    """Consumer returning queued messages, then nothing."""

    def __init__(self, payloads: list[bytes]) -> None:
        self._messages = [
            TransportMessage(topic="t", partition=0, offset=index, payload=payload)
            for index, payload in enumerate(payloads)
        ]
        self.reads = 0

    def read(self, timeout_secs: float) -> TransportMessage | None:
        self.reads += 1
        return self._messages.pop(0) if self._messages else None


def _options(batch_size: int = 10) -> SourceOptions:
    return SourceOptions(
        data_format="text",
        batch_size=batch_size,
        transport=TransportOptions(max_wait_time_secs=5),
    )


def test_produce_reads_until_consumer_is_empty() -> None:
    """Messages should be converted until the consumer has nothing left."""
    source = TransportSource(_options(), _ListConsumer([b"a\n", b"b\n"]))
    batch = RecordBatch(10)

    offset = source.produce(None, 10, batch)

    assert offset is None and [record.value for record in batch.records] == [
        "a",
        "b",
    ]


def test_records_beyond_bound_carry_over() -> None:
    """Records that do not fit are delivered in the next cycle."""
    source = TransportSource(_options(batch_size=2), _ListConsumer([b"a\nb\nc\n"]))
    first = RecordBatch(2)
    second = RecordBatch(2)

    source.produce(None, 2, first)
    source.produce(None, 2, second)

    assert (len(first), [record.value for record in second.records]) == (2, ["c"])


def test_full_batch_stops_reading_messages() -> None:
    """No more messages should be read once the bound is reached."""
    consumer = _ListConsumer([b"a\n", b"b\n", b"c\n"])
    source = TransportSource(_options(batch_size=1), consumer)

    source.produce(None, 10, RecordBatch(10))

    assert consumer.reads == 1


def test_unparseable_message_is_reported_and_skipped() -> None:
    """A bad message should surface TRANSPORT_01 and not stop the cycle."""
    options = SourceOptions(data_format="json", transport=TransportOptions(max_wait_time_secs=5))
    source = TransportSource(options, _ListConsumer([b"{", b'{"ok":true}']))
    batch = RecordBatch(10)

    source.produce(None, 10, batch)

    assert [error.code for error in batch.errors] == [ErrorCode.TRANSPORT_01]
    assert [record.value for record in batch.records] == [{"ok": True}]


def test_max_wait_bounds_the_cycle() -> None:
    """An elapsed max wait should end the cycle without reading."""
    ticks = iter([0.0, 10.0])
    consumer = _ListConsumer([b"a\n"])
    source = TransportSource(_options(), consumer, clock=lambda: next(ticks))

    source.produce(None, 10, RecordBatch(10))

    assert consumer.reads == 0 and source.pending_count == 0
