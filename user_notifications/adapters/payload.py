"""Wire codec for user lifecycle envelopes.

Mental model refresher:
- This is an adapter/edge module.
- It translates between Kafka message bytes and `EventEnvelope`.
- It checks that the payload has the right shape, but it does not decide
  whether an envelope is acceptable for delivery; the consumer does that.

Wire shape: {"email": str, "eventType": "USER_CREATED", "timestamp": ISO-8601}
"""

from __future__ import annotations

from datetime import datetime
import json
from typing import Any, Mapping

from ..domain.events import EventEnvelope, EventKind
from ..types import WirePayload


def envelope_to_payload(envelope: EventEnvelope) -> WirePayload:
    return {
        "email": envelope.email,
        "eventType": envelope.event_kind.value if envelope.event_kind is not None else None,
        "timestamp": envelope.occurred_at.isoformat(),
    }


def encode_envelope(envelope: EventEnvelope) -> bytes:
    return serialize_json_object(envelope_to_payload(envelope))


def encode_key(email: str | None) -> bytes | None:
    if email is None:
        return None
    return email.encode("utf-8")


def decode_envelope(raw: bytes | str | Mapping[str, Any]) -> EventEnvelope:
    """Build an envelope from a raw Kafka value.

    Raises ValueError when the value is not a JSON object, names an unknown
    event type, or carries an unparseable timestamp.
    """
    payload = deserialize_json_object(raw)
    return parse_envelope_payload(payload)


def parse_envelope_payload(payload: Mapping[str, Any]) -> EventEnvelope:
    kind_raw = payload.get("eventType", payload.get("eventKind"))
    return EventEnvelope(
        email=_as_optional_str(payload.get("email")),
        event_kind=_as_event_kind(kind_raw),
        occurred_at=_as_timestamp(payload.get("timestamp")),
    )


def serialize_json_object(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def deserialize_json_object(raw: bytes | str | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)

    if isinstance(raw, bytes):
        text = raw.decode("utf-8")
    elif isinstance(raw, str):
        text = raw
    else:
        raise ValueError(f"Unsupported Kafka payload type: {type(raw).__name__}")

    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError("Kafka payload must decode to a JSON object")
    return parsed


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _as_event_kind(value: Any) -> EventKind | None:
    if value is None:
        return None
    try:
        return EventKind(str(value).strip())
    except ValueError:
        raise ValueError(f"Unknown eventType: {value!r}") from None


def _as_timestamp(value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be an ISO-8601 string, got {type(value).__name__}")
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp: {value!r}") from exc
