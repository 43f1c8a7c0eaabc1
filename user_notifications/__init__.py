"""Email notifications for user lifecycle events.

Module layout by abstraction layer:
- domain: event model, validation, email content and dispatcher
- application: consumption policy and the synchronous gateway
- adapters: wire codec, Kafka producer/worker, mail transports, HTTP API
"""

from .adapters.consumer_handler import handle_batch, handle_message
from .adapters.kafka_runtime import EventProducer, run_consumer_forever
from .application.consume import ConsumptionOutcome, ConsumptionResult, EventConsumer
from .application.gateway import GatewayResult, NotificationGateway
from .domain.email import NotificationDispatcher
from .domain.events import EventEnvelope, EventKind, NotificationRequest
from .errors import (
    ConfigError,
    DeliveryError,
    NotificationError,
    PublishError,
    ValidationError,
)

__all__ = [
    "ConfigError",
    "ConsumptionOutcome",
    "ConsumptionResult",
    "DeliveryError",
    "EventConsumer",
    "EventEnvelope",
    "EventKind",
    "EventProducer",
    "GatewayResult",
    "NotificationDispatcher",
    "NotificationError",
    "NotificationGateway",
    "NotificationRequest",
    "PublishError",
    "ValidationError",
    "handle_batch",
    "handle_message",
    "run_consumer_forever",
]
