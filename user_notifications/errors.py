"""Error taxonomy for the notification pipeline.

None of these is fatal to a running process: the consumer logs and
acknowledges, the producer logs, the gateway turns them into results.
"""

from __future__ import annotations

from typing import Any, Sequence


class NotificationError(Exception):
    """Base class for notification pipeline errors."""


class ConfigError(NotificationError, RuntimeError):
    """Missing or invalid environment configuration."""


class ValidationError(NotificationError, ValueError):
    def __init__(self, violations: Sequence[str]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(self.violations) or "invalid input")


class DeliveryError(NotificationError):
    """Mail transport failed to deliver a notification."""

    def __init__(self, email: str, event_kind: Any, cause: str) -> None:
        self.email = email
        self.event_kind = event_kind
        self.cause = cause
        super().__init__(f"Failed to send email to {email}: {cause}")


class PublishError(NotificationError):
    """Broker rejected or never received a published envelope."""
