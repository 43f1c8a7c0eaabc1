"""Environment-variable configuration.

Every runtime knob is read from the process environment. Entry-point scripts
may seed the environment from a `.env` file first; values already exported
always win over the file.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from .errors import ConfigError

DEFAULT_TOPIC = "user-events"
DEFAULT_GROUP_ID = "notification-service"
DEFAULT_SITE_NAME = "User Service"


@dataclass(frozen=True)
class Settings:
    bootstrap_servers: tuple[str, ...]
    topic: str = DEFAULT_TOPIC
    group_id: str = DEFAULT_GROUP_ID
    auto_offset_reset: str = "earliest"
    concurrency: int = 1
    poll_timeout_ms: int = 1000
    max_records_per_poll: int = 50
    producer_acks: str = "all"
    producer_max_block_ms: int = 5000
    site_name: str = DEFAULT_SITE_NAME
    dispatch_timeout_seconds: float = 30.0
    dispatch_workers: int = 4
    mail_transport: str = "console"


def load_settings(*, require_kafka: bool = True) -> Settings:
    """Build `Settings` from the environment.

    `require_kafka=False` lets the HTTP gateway start without broker config.
    """
    if require_kafka:
        bootstrap_servers = tuple(bootstrap_servers_from_env())
    else:
        bootstrap_servers = tuple(_csv(os.getenv("KAFKA_BOOTSTRAP_SERVERS", "")))

    concurrency = _env_int("KAFKA_CONSUMER_CONCURRENCY", 1)
    if concurrency < 1:
        raise ConfigError("KAFKA_CONSUMER_CONCURRENCY must be >= 1")

    max_records = _env_int("KAFKA_MAX_RECORDS_PER_POLL", 50)
    if max_records < 1:
        raise ConfigError("KAFKA_MAX_RECORDS_PER_POLL must be >= 1")

    dispatch_timeout = _env_float("NOTIFICATION_DISPATCH_TIMEOUT_SECONDS", 30.0)
    if dispatch_timeout < 0:
        raise ConfigError("NOTIFICATION_DISPATCH_TIMEOUT_SECONDS must be >= 0")

    dispatch_workers = _env_int("NOTIFICATION_DISPATCH_WORKERS", 4)
    if dispatch_workers < 1:
        raise ConfigError("NOTIFICATION_DISPATCH_WORKERS must be >= 1")

    producer_acks = os.getenv("KAFKA_PRODUCER_ACKS", "all").strip().lower()
    if producer_acks not in {"all", "0", "1"}:
        raise ConfigError(f"KAFKA_PRODUCER_ACKS must be all, 0 or 1, got {producer_acks!r}")

    # send() may block this long waiting for metadata before failing
    producer_max_block_ms = _env_int("KAFKA_PRODUCER_MAX_BLOCK_MS", 5000)
    if producer_max_block_ms < 0:
        raise ConfigError("KAFKA_PRODUCER_MAX_BLOCK_MS must be >= 0")

    mail_transport = os.getenv("MAIL_TRANSPORT", "console").strip().lower()
    if mail_transport not in {"console", "mailgun", "smtp"}:
        raise ConfigError(f"Unsupported MAIL_TRANSPORT: {mail_transport!r}")

    return Settings(
        bootstrap_servers=bootstrap_servers,
        topic=os.getenv("KAFKA_TOPIC_USER_EVENTS", DEFAULT_TOPIC),
        group_id=os.getenv("KAFKA_GROUP_ID", DEFAULT_GROUP_ID),
        auto_offset_reset=os.getenv("KAFKA_AUTO_OFFSET_RESET", "earliest"),
        concurrency=concurrency,
        poll_timeout_ms=poll_timeout_ms_from_env(),
        max_records_per_poll=max_records,
        producer_acks=producer_acks,
        producer_max_block_ms=producer_max_block_ms,
        site_name=os.getenv("NOTIFICATION_SITE_NAME", DEFAULT_SITE_NAME),
        dispatch_timeout_seconds=dispatch_timeout,
        dispatch_workers=dispatch_workers,
        mail_transport=mail_transport,
    )


def required_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        raise ConfigError(f"Missing required environment variable: {name}")
    return value.strip()


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ConfigError(f"Invalid boolean value for {name}: {raw!r}")


def bootstrap_servers_from_env() -> list[str]:
    servers = _csv(required_env("KAFKA_BOOTSTRAP_SERVERS"))
    if not servers:
        raise ConfigError("KAFKA_BOOTSTRAP_SERVERS must include at least one host:port")
    return servers


def poll_timeout_ms_from_env() -> int:
    timeout_seconds = _env_float("KAFKA_POLL_TIMEOUT_SECONDS", 1.0)
    timeout_ms = int(timeout_seconds * 1000)
    if timeout_ms <= 0:
        raise ConfigError("KAFKA_POLL_TIMEOUT_SECONDS must be > 0")
    return timeout_ms


def load_env_file(path: Path) -> None:
    """Seed `os.environ` from a simple KEY=VALUE file, if it exists."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#") or "=" not in text:
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if value.startswith(("'", '"')) and value.endswith(("'", '"')) and len(value) >= 2:
            value = value[1:-1]
        os.environ.setdefault(key, value)


def _csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid integer value for {name}: {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"Invalid number value for {name}: {raw!r}") from exc
