#!/usr/bin/env python3
"""Publish one user lifecycle event to Kafka for local testing."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from user_notifications.config import load_env_file, load_settings  # noqa: E402
from user_notifications.domain.events import EventKind  # noqa: E402
from user_notifications.wiring import build_producer  # noqa: E402


def main() -> int:
    load_env_file(REPO_ROOT / ".env")
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(name)-40s | %(levelname)-5s | %(message)s",
    )
    args = parse_args()
    settings = load_settings()
    producer = build_producer(settings)
    try:
        producer.publish(args.email, EventKind(args.event_type))
    finally:
        # close() flushes, so the delivery callback has logged by the time we exit
        producer.close()
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Publish one user lifecycle event for Kafka testing."
    )
    parser.add_argument(
        "--email",
        required=True,
        help="Recipient email for the event.",
    )
    parser.add_argument(
        "--event-type",
        choices=[kind.value for kind in EventKind],
        default=EventKind.USER_CREATED.value,
        help="Event type. Default: USER_CREATED.",
    )
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(main())
