"""Validation rules for envelopes and gateway requests.

The two entry points check different things on purpose:
- envelopes get the weak consumer check (non-blank, contains "@")
- gateway requests get a syntactic email check via `email-validator`
"""

from __future__ import annotations

import email_validator
from email_validator import EmailNotValidError, validate_email

from ..errors import ValidationError
from .events import EventEnvelope, EventKind, NotificationRequest

BLANK_EMAIL = "email: must not be blank"
MALFORMED_EMAIL = "email: malformed email address"
MISSING_EVENT_TYPE = "eventType: must not be null"
MISSING_ENVELOPE = "envelope: must not be null"

# Internal mail hosts live under `.local`; the library rejects it by default.
if "local" in email_validator.SPECIAL_USE_DOMAIN_NAMES:
    email_validator.SPECIAL_USE_DOMAIN_NAMES.remove("local")


def validate_envelope(envelope: EventEnvelope | None) -> tuple[str, EventKind]:
    """Return `(email, event_kind)` of an acceptable envelope or raise `ValidationError`.

    Checks run in order and stop at the first failure.
    """
    if envelope is None:
        raise ValidationError([MISSING_ENVELOPE])
    if envelope.email is None or not envelope.email.strip():
        raise ValidationError([BLANK_EMAIL])
    if envelope.event_kind is None:
        raise ValidationError([MISSING_EVENT_TYPE])
    if "@" not in envelope.email:
        raise ValidationError([f"{MALFORMED_EMAIL}: {envelope.email}"])
    return envelope.email, envelope.event_kind


def request_violations(request: NotificationRequest) -> list[str]:
    """Collect every violated constraint of a gateway request."""
    violations: list[str] = []
    email = request.email
    if email is None or not email.strip():
        violations.append(BLANK_EMAIL)
    elif not is_email_shaped(email):
        violations.append(MALFORMED_EMAIL)
    if request.event_kind is None:
        violations.append(MISSING_EVENT_TYPE)
    return violations


def is_email_shaped(value: str) -> bool:
    try:
        validate_email(
            value,
            check_deliverability=False,
            globally_deliverable=False,
            test_environment=True,
        )
    except EmailNotValidError:
        return False
    return True
