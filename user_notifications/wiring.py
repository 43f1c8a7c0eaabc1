"""Process-level construction of the pipeline components.

Broker and mail clients are built once per process here and handed to the
components that use them; nothing reads them from module globals.
"""

from __future__ import annotations

from .adapters.http_api import create_app
from .adapters.kafka_runtime import EventProducer, create_kafka_producer
from .adapters.mail_senders import select_mail_transport
from .application.consume import EventConsumer
from .application.gateway import NotificationGateway
from .config import Settings
from .domain.email import NotificationDispatcher


def build_dispatcher(settings: Settings) -> NotificationDispatcher:
    return NotificationDispatcher(
        select_mail_transport(settings.mail_transport),
        site_name=settings.site_name,
    )


def build_consumer(settings: Settings) -> EventConsumer:
    return EventConsumer(
        build_dispatcher(settings),
        dispatch_timeout_seconds=settings.dispatch_timeout_seconds,
        dispatch_workers=settings.dispatch_workers,
    )


def build_producer(settings: Settings) -> EventProducer:
    return EventProducer(create_kafka_producer(settings), topic=settings.topic)


def build_gateway_app(settings: Settings):
    return create_app(NotificationGateway(build_dispatcher(settings)))
