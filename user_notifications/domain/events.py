"""User lifecycle event model.

Mental model refresher:
- An envelope is one "user X was created/deleted" fact travelling through
  the broker. It is a value object: built once, never mutated.
- A notification request is the synchronous counterpart used by the gateway.
  It carries no timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


class EventKind(str, Enum):
    USER_CREATED = "USER_CREATED"
    USER_DELETED = "USER_DELETED"


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class EventEnvelope:
    """One user lifecycle occurrence.

    `email` and `event_kind` may be None here: deciding whether an envelope
    is acceptable belongs to the consumer's validation step, not to
    construction.
    """

    email: str | None
    event_kind: EventKind | None
    occurred_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if self.occurred_at is None:
            object.__setattr__(self, "occurred_at", _utc_now())


@dataclass(frozen=True)
class NotificationRequest:
    email: str | None
    event_kind: EventKind | None
