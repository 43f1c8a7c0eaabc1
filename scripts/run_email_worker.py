#!/usr/bin/env python3
"""Run the Kafka email worker.

This worker consumes `user-events` and emails the affected user through the
transport named by MAIL_TRANSPORT. Every message is committed, including
ones that fail validation or delivery.
"""

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

from user_notifications.adapters.kafka_runtime import run_consumer_forever  # noqa: E402
from user_notifications.config import load_env_file, load_settings  # noqa: E402
from user_notifications.wiring import build_consumer  # noqa: E402


def main() -> int:
    parse_args()
    load_env_file(REPO_ROOT / ".env")
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(threadName)-20s | %(name)-40s | %(levelname)-5s | %(message)s",
    )
    settings = load_settings()
    consumer = build_consumer(settings)
    try:
        return run_consumer_forever(settings, consumer)
    finally:
        consumer.close()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run Kafka consumer loop for user lifecycle email notifications."
    )
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(main())
