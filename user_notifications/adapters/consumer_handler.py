"""Consumer-handler adapter functions (Kafka-like flow without Kafka).

Mental model refresher:
- This is the controller-like entrypoint for event processing.
- Real Kafka code calls this after polling a record.
- Flow:
  record -> decode adapter -> consumption use case -> commit
- An undecodable value is handed on as a missing envelope, so it fails
  validation and is committed like any other message.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..application.consume import ConsumptionResult, EventConsumer
from ..domain.events import EventEnvelope
from ..types import Record
from .payload import decode_envelope

logger = logging.getLogger(__name__)

CommitFn = Callable[[Record], None]


def handle_message(
    record: Record,
    *,
    consumer: EventConsumer,
    commit: CommitFn,
) -> ConsumptionResult:
    """Handle one incoming record. The record is always committed."""
    envelope = _decode_record_value(record)

    def ack() -> None:
        commit(record)

    return consumer.consume(
        envelope,
        ack,
        topic=record.get("topic"),
        partition=record.get("partition"),
        offset=record.get("offset"),
    )


def handle_batch(
    records: Sequence[Record],
    *,
    consumer: EventConsumer,
    commit: CommitFn,
) -> list[ConsumptionResult]:
    """Handle a batch of records sequentially using `handle_message`."""
    results: list[ConsumptionResult] = []
    for record in records:
        results.append(handle_message(record, consumer=consumer, commit=commit))
    return results


def _decode_record_value(record: Record) -> EventEnvelope | None:
    value = record.get("value")
    if value is None:
        return None
    try:
        return decode_envelope(value)
    except Exception as exc:
        logger.warning(
            "[DECODE FAILED] topic=%s partition=%s offset=%s error=%s",
            record.get("topic"),
            record.get("partition"),
            record.get("offset"),
            exc,
        )
        return None
