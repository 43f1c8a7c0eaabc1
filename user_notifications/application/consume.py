"""Consumption use case: validate, dispatch, acknowledge.

Mental model refresher:
- Application layer coordinates the flow for one delivered envelope.
- Acknowledgment policy: every message is acknowledged, whatever happened.
  The outcome is recorded as one of three tags so callers and tests can see
  what happened without the policy hiding inside exception handling.
- There is no retry and no dead-letter stream. A failed notification is
  logged and lost.
- There is no idempotency key either. If a worker dies after dispatching but
  before acknowledging, the broker redelivers and the email goes out twice.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
import logging

from ..domain.email import NotificationDispatcher
from ..domain.events import EventEnvelope, EventKind
from ..domain.validation import validate_envelope
from ..errors import ValidationError
from ..types import AckFn, RecordMeta

logger = logging.getLogger(__name__)


class ConsumptionOutcome(str, Enum):
    DELIVERED = "delivered"
    VALIDATION_FAILED = "validation_failed"
    DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True)
class ConsumptionResult:
    outcome: ConsumptionOutcome
    envelope: EventEnvelope | None
    record_meta: RecordMeta
    error: str | None
    acknowledged: bool


class DispatchTimeout(Exception):
    pass


class EventConsumer:
    """Apply the acknowledge-always policy to one envelope at a time.

    `dispatch_timeout_seconds > 0` bounds each dispatch call. Calls run on a
    pool of `dispatch_workers` threads owned by this consumer. A transport
    that stalls past the bound counts as a delivery failure and the message
    is acknowledged. A call still queued at that point is cancelled. A call
    already running cannot be interrupted: it keeps its pool thread until the
    transport returns, so the email may still go out after the message was
    logged as failed. Stalled calls therefore occupy at most
    `dispatch_workers` threads; later dispatches wait in the queue and time
    out in turn. `0` means wait for the transport however long it takes, on
    the calling thread.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        *,
        dispatch_timeout_seconds: float = 0.0,
        dispatch_workers: int = 4,
    ) -> None:
        if dispatch_workers < 1:
            raise ValueError("dispatch_workers must be >= 1")
        self._dispatcher = dispatcher
        self._dispatch_timeout = dispatch_timeout_seconds
        self._executor: ThreadPoolExecutor | None = None
        if dispatch_timeout_seconds > 0:
            self._executor = ThreadPoolExecutor(
                max_workers=dispatch_workers,
                thread_name_prefix="notification-dispatch",
            )

    def consume(
        self,
        envelope: EventEnvelope | None,
        ack: AckFn,
        *,
        topic: str | None = None,
        partition: int | None = None,
        offset: int | None = None,
    ) -> ConsumptionResult:
        record_meta = {"topic": topic, "partition": partition, "offset": offset}
        logger.info(
            "[RECEIVED] topic=%s partition=%s offset=%s envelope=%s",
            topic,
            partition,
            offset,
            envelope,
        )

        error: str | None = None
        try:
            email, event_kind = validate_envelope(envelope)
        except ValidationError as exc:
            outcome = ConsumptionOutcome.VALIDATION_FAILED
            error = str(exc)
            logger.warning(
                "[VALIDATION FAILED] topic=%s partition=%s offset=%s error=%s",
                topic,
                partition,
                offset,
                error,
            )
        else:
            try:
                self._dispatch(email, event_kind)
            except Exception as exc:
                outcome = ConsumptionOutcome.DELIVERY_FAILED
                error = str(exc) or type(exc).__name__
                logger.error(
                    "[DELIVERY FAILED] topic=%s partition=%s offset=%s email=%s error=%s",
                    topic,
                    partition,
                    offset,
                    email,
                    error,
                )
            else:
                outcome = ConsumptionOutcome.DELIVERED

        acknowledged = self._acknowledge(ack, record_meta)
        return ConsumptionResult(
            outcome=outcome,
            envelope=envelope,
            record_meta=record_meta,
            error=error,
            acknowledged=acknowledged,
        )

    def close(self) -> None:
        """Stop accepting timed dispatches. Calls already running are not waited for."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _dispatch(self, email: str, event_kind: EventKind) -> None:
        if self._executor is None:
            self._dispatcher.deliver(email, event_kind)
            return
        future = self._executor.submit(self._dispatcher.deliver, email, event_kind)
        try:
            future.result(timeout=self._dispatch_timeout)
        except FutureTimeout:
            future.cancel()
            raise DispatchTimeout(
                f"dispatch timed out after {self._dispatch_timeout:g}s"
            ) from None

    def _acknowledge(self, ack: AckFn, record_meta: RecordMeta) -> bool:
        try:
            ack()
        except Exception as exc:
            logger.error(
                "[ACK ERROR] topic=%s partition=%s offset=%s error=%s",
                record_meta["topic"],
                record_meta["partition"],
                record_meta["offset"],
                exc,
            )
            return False
        return True

