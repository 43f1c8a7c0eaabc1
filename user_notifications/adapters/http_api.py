"""FastAPI surface for the synchronous notification gateway.

Endpoints:
- POST /api/v1/notifications/email   {"email": ..., "eventType": ...}
- GET  /api/v1/notifications/health  plain-text liveness string

Status codes: 200 delivered, 400 validation failure (including body that
does not parse), 500 mail transport failure.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from ..application.gateway import (
    STATUS_DELIVERED,
    STATUS_VALIDATION_FAILED,
    GatewayResult,
    NotificationGateway,
    validation_failure,
)
from ..domain.events import EventKind, NotificationRequest

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/notifications"


class EmailRequestBody(BaseModel):
    """Body of a direct notification request.

    Both fields are optional at this layer so that missing values reach the
    gateway and come back as field-level violations.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    event_type: Optional[EventKind] = Field(default=None, alias="eventType")


class EmailResponseBody(BaseModel):
    success: bool
    status: str
    email: Optional[str] = None
    message: str
    errors: list[str] = Field(default_factory=list)
    timestamp: datetime


def create_app(gateway: NotificationGateway) -> FastAPI:
    app = FastAPI(
        title="User Notification Service",
        description="Direct email notifications for user lifecycle events",
        version="1.0.0",
    )
    app.state.gateway = gateway

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        violations = [_format_violation(error) for error in exc.errors()]
        logger.warning("[HTTP INVALID] path=%s errors=%s", request.url.path, violations)
        result = validation_failure(_email_from_body(getattr(exc, "body", None)), violations)
        return JSONResponse(status_code=400, content=result.to_dict())

    @app.post(
        f"{API_PREFIX}/email",
        response_model=EmailResponseBody,
        responses={400: {"model": EmailResponseBody}, 500: {"model": EmailResponseBody}},
        tags=["Notifications"],
    )
    def send_email(body: EmailRequestBody) -> JSONResponse:
        """Send the email for one lifecycle event, bypassing the broker."""
        result = gateway.dispatch(
            NotificationRequest(email=body.email, event_kind=body.event_type)
        )
        return JSONResponse(status_code=_status_code(result), content=result.to_dict())

    @app.get(f"{API_PREFIX}/health", response_class=PlainTextResponse, tags=["Health"])
    def health() -> str:
        return gateway.health()

    return app


def _status_code(result: GatewayResult) -> int:
    if result.status == STATUS_DELIVERED:
        return 200
    if result.status == STATUS_VALIDATION_FAILED:
        return 400
    return 500


def _format_violation(error: dict[str, Any]) -> str:
    location = [str(part) for part in error.get("loc", ()) if part != "body"]
    field_name = ".".join(location) or "body"
    return f"{field_name}: {error.get('msg', 'invalid value')}"


def _email_from_body(body: Any) -> str | None:
    if isinstance(body, dict):
        email = body.get("email")
        if isinstance(email, str):
            return email
    return None
