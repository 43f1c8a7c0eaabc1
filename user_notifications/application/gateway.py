"""Synchronous notification use case.

The gateway calls the dispatcher directly, without the broker. It is used
for manual retries and for testing delivery end to end. Nothing raised
inside it reaches the transport layer: every call returns a `GatewayResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
import logging
from typing import Any

from ..domain.email import NotificationDispatcher
from ..domain.events import NotificationRequest
from ..domain.validation import request_violations

logger = logging.getLogger(__name__)

HEALTH_STATUS = "Notification Service is running"

STATUS_DELIVERED = "delivered"
STATUS_VALIDATION_FAILED = "validation_failed"
STATUS_DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True)
class GatewayResult:
    success: bool
    status: str
    email: str | None
    message: str
    errors: tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "status": self.status,
            "email": self.email,
            "message": self.message,
            "errors": list(self.errors),
            "timestamp": self.timestamp.isoformat(),
        }


class NotificationGateway:
    def __init__(self, dispatcher: NotificationDispatcher) -> None:
        self._dispatcher = dispatcher

    def dispatch(self, request: NotificationRequest) -> GatewayResult:
        logger.info("[GATEWAY REQUEST] email=%s event=%s", request.email, request.event_kind)

        violations = request_violations(request)
        if violations:
            logger.warning(
                "[GATEWAY INVALID] email=%s errors=%s", request.email, violations
            )
            return validation_failure(request.email, violations)

        try:
            self._dispatcher.deliver(request.email, request.event_kind)  # type: ignore[arg-type]
        except Exception as exc:
            cause = str(exc) or type(exc).__name__
            logger.error("[GATEWAY FAILED] email=%s error=%s", request.email, cause)
            return GatewayResult(
                success=False,
                status=STATUS_DELIVERY_FAILED,
                email=request.email,
                message=f"Failed to send email: {cause}",
            )

        logger.info("[GATEWAY SENT] email=%s", request.email)
        return GatewayResult(
            success=True,
            status=STATUS_DELIVERED,
            email=request.email,
            message="Email notification sent successfully",
        )

    def health(self) -> str:
        return HEALTH_STATUS


def validation_failure(email: str | None, violations: list[str]) -> GatewayResult:
    return GatewayResult(
        success=False,
        status=STATUS_VALIDATION_FAILED,
        email=email,
        message="Validation failed: " + "; ".join(violations),
        errors=tuple(violations),
    )
