#!/usr/bin/env python3
"""Serve the synchronous notification gateway over HTTP.

Then visit http://localhost:8080/docs for interactive API documentation.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from user_notifications.config import load_env_file, load_settings  # noqa: E402
from user_notifications.wiring import build_gateway_app  # noqa: E402


def main() -> int:
    load_env_file(REPO_ROOT / ".env")
    args = parse_args()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(name)-40s | %(levelname)-5s | %(message)s",
    )
    app = build_gateway_app(load_settings(require_kafka=False))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the notification HTTP gateway.")
    parser.add_argument(
        "--host",
        default=os.getenv("GATEWAY_HOST", "127.0.0.1"),
        help="Bind address. Default: GATEWAY_HOST or 127.0.0.1.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("GATEWAY_PORT", "8080")),
        help="Bind port. Default: GATEWAY_PORT or 8080.",
    )
    return parser.parse_args()


if __name__ == "__main__":
    sys.exit(main())
