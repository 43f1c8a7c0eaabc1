"""Kafka transport adapters for publishing and consuming user events.

Mental model refresher:
- This module is transport glue to Kafka itself.
- The producer side is fire-and-forget: the persistence layer calls
  `publish` after its commit and never hears about broker trouble.
- The consumer side maps Kafka records into the consumer-handler flow and
  commits each offset once the handler acknowledges it, which it always does.
- Business logic still lives in domain/application layers.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from ..application.consume import EventConsumer
from ..config import DEFAULT_TOPIC, Settings
from ..domain.events import EventEnvelope, EventKind
from ..errors import PublishError
from ..types import Record
from .consumer_handler import handle_message
from .payload import encode_envelope, encode_key

logger = logging.getLogger(__name__)


class EventProducer:
    """Publish user lifecycle envelopes without blocking on the broker.

    `client` is anything shaped like kafka-python's `KafkaProducer`:
    `send(topic, key=..., value=...)` returning a future that supports
    `add_callback` and `add_errback`.

    Delivery is at most once. A broker that is down or rejects the message
    means the notification is lost; the committed user mutation stays.
    """

    def __init__(self, client: Any, *, topic: str = DEFAULT_TOPIC) -> None:
        self._client = client
        self._topic = topic

    @property
    def topic(self) -> str:
        return self._topic

    def publish(self, email: str, event_kind: EventKind) -> None:
        envelope = EventEnvelope(email=email, event_kind=event_kind)
        try:
            future = self._client.send(
                self._topic,
                key=encode_key(envelope.email),
                value=encode_envelope(envelope),
            )
            future.add_callback(self._on_send_success, envelope)
            future.add_errback(self._on_send_error, envelope)
        except Exception as exc:
            self._on_send_error(envelope, exc)

    def publish_user_created(self, email: str) -> None:
        self.publish(email, EventKind.USER_CREATED)

    def publish_user_deleted(self, email: str) -> None:
        self.publish(email, EventKind.USER_DELETED)

    def close(self, timeout_seconds: float = 10.0) -> None:
        try:
            self._client.flush(timeout=timeout_seconds)
        except Exception as exc:
            logger.warning("[PRODUCER FLUSH ERROR] topic=%s error=%s", self._topic, exc)
        try:
            self._client.close()
        except Exception as exc:
            logger.warning("[PRODUCER CLOSE ERROR] topic=%s error=%s", self._topic, exc)

    def _on_send_success(self, envelope: EventEnvelope, metadata: Any) -> None:
        logger.info(
            "[PUBLISHED] topic=%s partition=%s offset=%s email=%s event=%s",
            getattr(metadata, "topic", self._topic),
            getattr(metadata, "partition", None),
            getattr(metadata, "offset", None),
            envelope.email,
            _kind_value(envelope),
        )

    def _on_send_error(self, envelope: EventEnvelope, exc: BaseException) -> None:
        error = PublishError(
            f"publish to {self._topic} failed for {envelope.email} "
            f"({_kind_value(envelope)}): {exc}"
        )
        error.__cause__ = exc
        logger.error("[PUBLISH ERROR] %s", error, exc_info=error)


def create_kafka_producer(settings: Settings) -> Any:
    """Build the process-wide kafka-python producer from settings."""
    _KafkaConsumer, KafkaProducer, _TopicPartition, _OffsetAndMetadata = _import_kafka_python()
    return KafkaProducer(
        bootstrap_servers=list(settings.bootstrap_servers),
        acks=_producer_acks(settings.producer_acks),
        max_block_ms=settings.producer_max_block_ms,
    )


def run_consumer_forever(
    settings: Settings,
    consumer: EventConsumer,
    *,
    stop_event: threading.Event | None = None,
) -> int:
    """Run `settings.concurrency` Kafka worker threads until stopped.

    Each worker owns its own `KafkaConsumer` in the group, so the group
    coordinator splits partitions between workers and every partition is
    processed by exactly one thread, in offset order.
    """
    kafka_types = _import_kafka_python()
    stop = stop_event or threading.Event()
    failures: list[BaseException] = []

    logger.info(
        "[WORKER START] topic=%s group_id=%s concurrency=%s auto_offset_reset=%s "
        "dispatch_timeout=%ss",
        settings.topic,
        settings.group_id,
        settings.concurrency,
        settings.auto_offset_reset,
        settings.dispatch_timeout_seconds,
    )

    workers = [
        threading.Thread(
            target=_run_worker,
            args=(index, settings, consumer, kafka_types, stop, failures),
            name=f"user-events-worker-{index}",
            daemon=True,
        )
        for index in range(settings.concurrency)
    ]
    for worker in workers:
        worker.start()

    try:
        while any(worker.is_alive() for worker in workers):
            for worker in workers:
                worker.join(timeout=0.5)
    except KeyboardInterrupt:
        logger.info("[WORKER STOP] received keyboard interrupt")
        stop.set()
        for worker in workers:
            worker.join()

    return 1 if failures else 0


def _run_worker(
    index: int,
    settings: Settings,
    consumer: EventConsumer,
    kafka_types: tuple[Any, Any, Any, Any],
    stop: threading.Event,
    failures: list[BaseException],
) -> None:
    KafkaConsumer, _KafkaProducer, TopicPartition, OffsetAndMetadata = kafka_types
    kafka_consumer: Any = None

    def commit(record: Record) -> None:
        offsets = {
            TopicPartition(record["topic"], record["partition"]): _offset_and_metadata(
                OffsetAndMetadata, int(record["offset"]) + 1
            )
        }
        kafka_consumer.commit(offsets=offsets)
        logger.info(
            "[COMMIT] worker=%s topic=%s partition=%s offset=%s",
            index,
            record["topic"],
            record["partition"],
            record["offset"],
        )

    try:
        kafka_consumer = KafkaConsumer(
            settings.topic,
            bootstrap_servers=list(settings.bootstrap_servers),
            group_id=settings.group_id,
            client_id=f"{settings.group_id}-{index}",
            enable_auto_commit=False,
            auto_offset_reset=settings.auto_offset_reset,
        )
        while not stop.is_set():
            batches = kafka_consumer.poll(
                timeout_ms=settings.poll_timeout_ms,
                max_records=settings.max_records_per_poll,
            )
            for _topic_partition, messages in batches.items():
                for message in messages:
                    record = {
                        "topic": message.topic,
                        "partition": int(message.partition),
                        "offset": int(message.offset),
                        "key": message.key,
                        "value": message.value,
                    }
                    result = handle_message(record, consumer=consumer, commit=commit)
                    logger.info(
                        "[RESULT] worker=%s topic=%s partition=%s offset=%s "
                        "outcome=%s acknowledged=%s error=%s",
                        index,
                        record["topic"],
                        record["partition"],
                        record["offset"],
                        result.outcome.value,
                        result.acknowledged,
                        result.error,
                    )
    except Exception as exc:
        logger.exception("[WORKER ERROR] worker=%s error=%s", index, exc)
        failures.append(exc)
        stop.set()
    finally:
        if kafka_consumer is not None:
            try:
                kafka_consumer.close()
            except Exception as exc:
                logger.warning("[WORKER CLOSE ERROR] worker=%s error=%s", index, exc)


def _import_kafka_python() -> tuple[Any, Any, Any, Any]:
    try:
        from kafka import KafkaConsumer, KafkaProducer, TopicPartition
        from kafka.structs import OffsetAndMetadata
    except Exception as exc:
        raise RuntimeError(
            "Kafka support requires `kafka-python`. Install with: pip install kafka-python"
        ) from exc
    return KafkaConsumer, KafkaProducer, TopicPartition, OffsetAndMetadata


def _producer_acks(raw: str) -> int | str:
    text = raw.strip().lower()
    if text == "all":
        return "all"
    return int(text)


def _kind_value(envelope: EventEnvelope) -> str | None:
    return envelope.event_kind.value if envelope.event_kind is not None else None


def _offset_and_metadata(offset_and_metadata_type: Any, offset: int) -> Any:
    """Build kafka-python OffsetAndMetadata across version signatures."""
    try:
        return offset_and_metadata_type(offset, "", -1)
    except TypeError:
        try:
            return offset_and_metadata_type(offset, "", None)
        except TypeError:
            return offset_and_metadata_type(offset, "")
