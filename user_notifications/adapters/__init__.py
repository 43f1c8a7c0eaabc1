"""Adapter layer: wire codec, Kafka runtime, mail transports, HTTP surface."""

from .consumer_handler import handle_batch, handle_message
from .http_api import create_app
from .kafka_runtime import EventProducer, create_kafka_producer, run_consumer_forever
from .mail_senders import (
    select_mail_transport,
    send_email_via_console,
    send_email_via_mailgun_from_env,
    send_email_via_smtp_from_env,
)
from .payload import decode_envelope, encode_envelope

__all__ = [
    "EventProducer",
    "create_app",
    "create_kafka_producer",
    "decode_envelope",
    "encode_envelope",
    "handle_batch",
    "handle_message",
    "run_consumer_forever",
    "select_mail_transport",
    "send_email_via_console",
    "send_email_via_mailgun_from_env",
    "send_email_via_smtp_from_env",
]
