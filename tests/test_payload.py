from __future__ import annotations

import json
import unittest
from datetime import UTC, datetime

from user_notifications.adapters.payload import (
    decode_envelope,
    encode_envelope,
    encode_key,
    envelope_to_payload,
)
from user_notifications.domain.events import EventEnvelope, EventKind


class PayloadEncodingTests(unittest.TestCase):
    def test_envelope_to_payload_uses_wire_field_names(self) -> None:
        envelope = EventEnvelope(
            "person@example.com",
            EventKind.USER_DELETED,
            datetime(2026, 2, 20, 15, 0, tzinfo=UTC),
        )

        payload = envelope_to_payload(envelope)

        self.assertEqual(
            payload,
            {
                "email": "person@example.com",
                "eventType": "USER_DELETED",
                "timestamp": "2026-02-20T15:00:00+00:00",
            },
        )

    def test_encode_envelope_is_compact_json(self) -> None:
        envelope = EventEnvelope("a@example.com", EventKind.USER_CREATED)
        raw = encode_envelope(envelope)

        self.assertNotIn(b" ", raw)
        self.assertEqual(json.loads(raw)["eventType"], "USER_CREATED")

    def test_encode_key_is_utf8_email(self) -> None:
        self.assertEqual(encode_key("josé@example.com"), "josé@example.com".encode("utf-8"))
        self.assertIsNone(encode_key(None))


class PayloadDecodingTests(unittest.TestCase):
    def test_decode_envelope_accepts_bytes_str_and_mapping(self) -> None:
        raw = '{"email":"person@example.com","eventType":"USER_CREATED","timestamp":"2026-02-20T15:00:00Z"}'
        for value in (raw.encode("utf-8"), raw, json.loads(raw)):
            with self.subTest(type(value).__name__):
                envelope = decode_envelope(value)
                self.assertEqual(envelope.email, "person@example.com")
                self.assertEqual(envelope.event_kind, EventKind.USER_CREATED)
                self.assertEqual(envelope.occurred_at, datetime(2026, 2, 20, 15, 0, tzinfo=UTC))

    def test_decode_envelope_accepts_event_kind_alias_and_naive_timestamp(self) -> None:
        envelope = decode_envelope(
            b'{"email":"person@example.com","eventKind":"USER_DELETED","timestamp":"2026-02-20T15:00:00"}'
        )
        self.assertEqual(envelope.event_kind, EventKind.USER_DELETED)
        self.assertEqual(envelope.occurred_at, datetime(2026, 2, 20, 15, 0))

    def test_decode_envelope_keeps_missing_fields_for_validation(self) -> None:
        envelope = decode_envelope(b"{}")

        self.assertIsNone(envelope.email)
        self.assertIsNone(envelope.event_kind)
        self.assertIsInstance(envelope.occurred_at, datetime)

    def test_decode_envelope_rejects_unknown_event_type(self) -> None:
        with self.assertRaises(ValueError) as ctx:
            decode_envelope(b'{"email":"a@example.com","eventType":"USER_RENAMED"}')
        self.assertIn("USER_RENAMED", str(ctx.exception))

    def test_decode_envelope_rejects_non_object_json(self) -> None:
        with self.assertRaises(ValueError):
            decode_envelope(b'["not","an","object"]')

    def test_decode_envelope_rejects_unsupported_raw_type(self) -> None:
        with self.assertRaises(ValueError):
            decode_envelope(12345)  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
