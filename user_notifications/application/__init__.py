"""Application layer: consumption and synchronous gateway use cases."""

from .consume import ConsumptionOutcome, ConsumptionResult, EventConsumer
from .gateway import GatewayResult, NotificationGateway

__all__ = [
    "ConsumptionOutcome",
    "ConsumptionResult",
    "EventConsumer",
    "GatewayResult",
    "NotificationGateway",
]
