#!/usr/bin/env python3
"""Run a Kafka-like consumer flow without Kafka."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from user_notifications.adapters.consumer_handler import handle_batch  # noqa: E402
from user_notifications.adapters.mail_senders import send_email_via_console  # noqa: E402
from user_notifications.application.consume import EventConsumer  # noqa: E402
from user_notifications.domain.email import NotificationDispatcher  # noqa: E402


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)-5s | %(message)s")
    records = sample_records()
    committed_offsets: list[tuple[int, int]] = []

    def commit(record: dict[str, Any]) -> None:
        partition = int(record.get("partition", -1))
        offset = int(record.get("offset", -1))
        committed_offsets.append((partition, offset))

    dispatcher = NotificationDispatcher(send_email_maybe_fail, site_name="Demo Site")
    results = handle_batch(records, consumer=EventConsumer(dispatcher), commit=commit)

    print("")
    print("[BATCH SUMMARY]")
    for result in results:
        meta = result.record_meta
        print(
            f"offset={meta['offset']} outcome={result.outcome.value} "
            f"acknowledged={result.acknowledged} error={result.error}"
        )

    print("")
    print("[OFFSETS]")
    print(f"committed={committed_offsets}")
    return 0


def send_email_maybe_fail(*, to_email: str, subject: str, body: str) -> None:
    if to_email == "fail-email@example.com":
        raise RuntimeError("email provider unavailable")
    send_email_via_console(to_email=to_email, subject=subject, body=body)


def sample_records() -> list[dict[str, Any]]:
    return [
        {
            "topic": "user-events",
            "partition": 0,
            "offset": 100,
            "key": b"person@example.com",
            "value": b'{"email":"person@example.com","eventType":"USER_CREATED",'
            b'"timestamp":"2026-02-20T15:00:00+00:00"}',
        },
        {
            "topic": "user-events",
            "partition": 0,
            "offset": 101,
            "key": b"no-at-sign.example.com",
            "value": b'{"email":"no-at-sign.example.com","eventType":"USER_CREATED"}',
        },
        {
            "topic": "user-events",
            "partition": 0,
            "offset": 102,
            "key": None,
            "value": b"not json at all",
        },
        {
            "topic": "user-events",
            "partition": 0,
            "offset": 103,
            "key": b"fail-email@example.com",
            "value": b'{"email":"fail-email@example.com","eventType":"USER_DELETED"}',
        },
        {
            "topic": "user-events",
            "partition": 0,
            "offset": 104,
            "key": b"person@example.com",
            "value": b'{"email":"person@example.com","eventType":"USER_DELETED"}',
        },
    ]


if __name__ == "__main__":
    sys.exit(main())
