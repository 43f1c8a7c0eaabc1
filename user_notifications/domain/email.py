"""Email content and delivery for user lifecycle events.

Mental model refresher:
- Domain modules hold the business rules: which subject and body a given
  event kind produces.
- Sending goes through an injected transport function; this module does not
  know whether that is Mailgun, SMTP, or the console.
- It does not parse Kafka records or acknowledge offsets.
"""

from __future__ import annotations

import logging

from ..errors import DeliveryError
from ..types import SendEmailFn
from .events import EventKind

logger = logging.getLogger(__name__)

# kind -> (subject, body template)
EMAIL_TEMPLATES: dict[EventKind, tuple[str, str]] = {
    EventKind.USER_CREATED: (
        "Welcome!",
        "Hello! Your account on {site_name} has been created successfully.",
    ),
    EventKind.USER_DELETED: (
        "Account removed",
        "Hello! Your account has been deleted.",
    ),
}

_missing = set(EventKind) - set(EMAIL_TEMPLATES)
if _missing:
    raise RuntimeError(f"EMAIL_TEMPLATES has no entry for: {sorted(k.value for k in _missing)}")


def render_email(event_kind: EventKind, *, site_name: str) -> tuple[str, str]:
    """Return `(subject, body)` for one event kind."""
    subject, body_template = EMAIL_TEMPLATES[event_kind]
    return subject, body_template.format(site_name=site_name)


class NotificationDispatcher:
    """Send the email that corresponds to a user lifecycle event.

    Holds only immutable configuration, so one instance can be shared by
    every consumer worker and by the gateway.
    """

    def __init__(self, send_email: SendEmailFn, *, site_name: str) -> None:
        self._send_email = send_email
        self._site_name = site_name

    @property
    def site_name(self) -> str:
        return self._site_name

    def deliver(self, email: str, event_kind: EventKind) -> None:
        subject, body = render_email(event_kind, site_name=self._site_name)
        try:
            self._send_email(to_email=email, subject=subject, body=body)
        except Exception as exc:
            logger.error(
                "[SEND ERROR] to=%s event=%s error=%s", email, event_kind.value, exc
            )
            raise DeliveryError(email, event_kind, str(exc) or type(exc).__name__) from exc
        logger.info("[SENT] to=%s event=%s", email, event_kind.value)
