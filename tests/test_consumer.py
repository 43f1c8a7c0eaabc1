from __future__ import annotations

import threading
import unittest

from user_notifications.application.consume import ConsumptionOutcome, EventConsumer
from user_notifications.domain.events import EventEnvelope, EventKind
from user_notifications.errors import DeliveryError


class RecordingDispatcher:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, EventKind]] = []
        self.error = error

    def deliver(self, email: str, event_kind: EventKind) -> None:
        self.calls.append((email, event_kind))
        if self.error is not None:
            raise self.error


class AckCounter:
    def __init__(self) -> None:
        self.count = 0

    def __call__(self) -> None:
        self.count += 1


class EventConsumerTests(unittest.TestCase):
    def test_valid_envelope_dispatches_once_then_acks_once(self) -> None:
        dispatcher = RecordingDispatcher()
        ack = AckCounter()
        consumer = EventConsumer(dispatcher)  # type: ignore[arg-type]
        envelope = EventEnvelope("person@example.com", EventKind.USER_CREATED)

        result = consumer.consume(envelope, ack, topic="user-events", partition=0, offset=7)

        self.assertEqual(result.outcome, ConsumptionOutcome.DELIVERED)
        self.assertEqual(dispatcher.calls, [("person@example.com", EventKind.USER_CREATED)])
        self.assertEqual(ack.count, 1)
        self.assertTrue(result.acknowledged)
        self.assertIsNone(result.error)
        self.assertEqual(
            result.record_meta, {"topic": "user-events", "partition": 0, "offset": 7}
        )

    def test_invalid_envelopes_never_dispatch_but_always_ack(self) -> None:
        invalid = {
            "null envelope": None,
            "none email": EventEnvelope(None, EventKind.USER_CREATED),
            "blank email": EventEnvelope("   ", EventKind.USER_CREATED),
            "no at sign": EventEnvelope("person.example.com", EventKind.USER_DELETED),
            "none kind": EventEnvelope("person@example.com", None),
        }
        for label, envelope in invalid.items():
            with self.subTest(label):
                dispatcher = RecordingDispatcher()
                ack = AckCounter()
                consumer = EventConsumer(dispatcher)  # type: ignore[arg-type]

                result = consumer.consume(envelope, ack)

                self.assertEqual(result.outcome, ConsumptionOutcome.VALIDATION_FAILED)
                self.assertEqual(dispatcher.calls, [])
                self.assertEqual(ack.count, 1)
                self.assertTrue(result.error)

    def test_validation_error_names_the_violated_rule(self) -> None:
        consumer = EventConsumer(RecordingDispatcher())  # type: ignore[arg-type]

        blank = consumer.consume(EventEnvelope("", EventKind.USER_CREATED), AckCounter())
        malformed = consumer.consume(EventEnvelope("nope", EventKind.USER_CREATED), AckCounter())
        missing_kind = consumer.consume(EventEnvelope("a@b.c", None), AckCounter())

        self.assertIn("blank", blank.error or "")
        self.assertIn("malformed", malformed.error or "")
        self.assertIn("eventType", missing_kind.error or "")

    def test_dispatcher_failure_is_acked_and_not_raised(self) -> None:
        error = DeliveryError("person@example.com", EventKind.USER_CREATED, "provider down")
        dispatcher = RecordingDispatcher(error=error)
        ack = AckCounter()
        consumer = EventConsumer(dispatcher)  # type: ignore[arg-type]

        result = consumer.consume(EventEnvelope("person@example.com", EventKind.USER_CREATED), ack)

        self.assertEqual(result.outcome, ConsumptionOutcome.DELIVERY_FAILED)
        self.assertEqual(len(dispatcher.calls), 1)
        self.assertEqual(ack.count, 1)
        self.assertIn("provider down", result.error or "")

    def test_unexpected_dispatcher_exception_is_also_acked(self) -> None:
        dispatcher = RecordingDispatcher(error=KeyError("boom"))
        ack = AckCounter()
        consumer = EventConsumer(dispatcher)  # type: ignore[arg-type]

        result = consumer.consume(EventEnvelope("person@example.com", EventKind.USER_DELETED), ack)

        self.assertEqual(result.outcome, ConsumptionOutcome.DELIVERY_FAILED)
        self.assertEqual(ack.count, 1)

    def test_ack_failure_is_reported_not_raised(self) -> None:
        dispatcher = RecordingDispatcher()
        consumer = EventConsumer(dispatcher)  # type: ignore[arg-type]

        def broken_ack() -> None:
            raise RuntimeError("commit failed: rebalance in progress")

        result = consumer.consume(
            EventEnvelope("person@example.com", EventKind.USER_CREATED), broken_ack
        )

        self.assertEqual(result.outcome, ConsumptionOutcome.DELIVERED)
        self.assertFalse(result.acknowledged)

    def test_redelivery_of_unacked_envelope_dispatches_again(self) -> None:
        dispatcher = RecordingDispatcher()
        consumer = EventConsumer(dispatcher)  # type: ignore[arg-type]
        envelope = EventEnvelope("person@example.com", EventKind.USER_CREATED)

        def crash_before_commit() -> None:
            raise SystemExit("worker killed")

        # First delivery: dispatched, then the worker dies before the commit lands.
        with self.assertRaises(SystemExit):
            consumer.consume(envelope, crash_before_commit, partition=0, offset=3)

        # The broker redelivers the same offset after restart.
        ack = AckCounter()
        result = consumer.consume(envelope, ack, partition=0, offset=3)

        self.assertEqual(result.outcome, ConsumptionOutcome.DELIVERED)
        self.assertEqual(len(dispatcher.calls), 2)
        self.assertEqual(ack.count, 1)


class StalledDispatcher:
    def __init__(self, release: threading.Event) -> None:
        self.release = release
        self.calls: list[str] = []

    def deliver(self, email: str, event_kind: EventKind) -> None:
        self.calls.append(email)
        self.release.wait(5)


class DispatchTimeoutTests(unittest.TestCase):
    def setUp(self) -> None:
        self.release = threading.Event()
        self.addCleanup(self.release.set)

    def test_stalled_dispatch_times_out_and_is_acked(self) -> None:
        dispatcher = StalledDispatcher(self.release)
        ack = AckCounter()
        consumer = EventConsumer(dispatcher, dispatch_timeout_seconds=0.2)  # type: ignore[arg-type]
        self.addCleanup(consumer.close)

        result = consumer.consume(EventEnvelope("person@example.com", EventKind.USER_CREATED), ack)

        self.assertEqual(result.outcome, ConsumptionOutcome.DELIVERY_FAILED)
        self.assertIn("timed out", result.error or "")
        self.assertEqual(dispatcher.calls, ["person@example.com"])
        self.assertEqual(ack.count, 1)

    def test_stalled_transport_holds_at_most_the_configured_threads(self) -> None:
        dispatcher = StalledDispatcher(self.release)
        consumer = EventConsumer(
            dispatcher,  # type: ignore[arg-type]
            dispatch_timeout_seconds=0.2,
            dispatch_workers=1,
        )
        self.addCleanup(consumer.close)

        results = [
            consumer.consume(EventEnvelope(f"user{n}@example.com", EventKind.USER_CREATED), AckCounter())
            for n in range(3)
        ]

        self.assertEqual(
            [result.outcome for result in results], [ConsumptionOutcome.DELIVERY_FAILED] * 3
        )
        self.assertTrue(all(result.acknowledged for result in results))
        self.assertEqual(len(consumer._executor._threads), 1)

        # queued calls were cancelled, so only the first one ever reaches the transport
        self.release.set()
        consumer._executor.shutdown(wait=True)
        self.assertEqual(dispatcher.calls, ["user0@example.com"])

    def test_dispatch_workers_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            EventConsumer(RecordingDispatcher(), dispatch_timeout_seconds=1, dispatch_workers=0)  # type: ignore[arg-type]

    def test_timeout_bound_passes_through_fast_results_and_errors(self) -> None:
        ok = RecordingDispatcher()
        failing = RecordingDispatcher(error=RuntimeError("nope"))
        ok_consumer = EventConsumer(ok, dispatch_timeout_seconds=5)  # type: ignore[arg-type]
        failing_consumer = EventConsumer(failing, dispatch_timeout_seconds=5)  # type: ignore[arg-type]
        self.addCleanup(ok_consumer.close)
        self.addCleanup(failing_consumer.close)

        delivered = ok_consumer.consume(
            EventEnvelope("a@example.com", EventKind.USER_CREATED), AckCounter()
        )
        failed = failing_consumer.consume(
            EventEnvelope("a@example.com", EventKind.USER_CREATED), AckCounter()
        )

        self.assertEqual(delivered.outcome, ConsumptionOutcome.DELIVERED)
        self.assertEqual(failed.outcome, ConsumptionOutcome.DELIVERY_FAILED)
        self.assertIn("nope", failed.error or "")


if __name__ == "__main__":
    unittest.main()
