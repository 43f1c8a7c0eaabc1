"""Domain layer: event model, validation, and email rules."""

from .email import EMAIL_TEMPLATES, NotificationDispatcher, render_email
from .events import EventEnvelope, EventKind, NotificationRequest
from .validation import request_violations, validate_envelope

__all__ = [
    "EMAIL_TEMPLATES",
    "EventEnvelope",
    "EventKind",
    "NotificationDispatcher",
    "NotificationRequest",
    "render_email",
    "request_violations",
    "validate_envelope",
]
