"""Mail transport adapters.

Mental model refresher:
- This module is an outbound adapter.
- Each transport is a plain function `send(*, to_email, subject, body)`.
  The dispatcher only sees that callable, never the provider.
- Provider config comes from environment variables and is read per call,
  so nothing here holds shared mutable state and every sender is safe to
  call from several worker threads at once.
- Transports raise on failure and never retry.
"""

from __future__ import annotations

import base64
from email.message import EmailMessage
import logging
import os
import smtplib
import urllib.error
import urllib.parse
import urllib.request

from ..config import env_bool, required_env
from ..errors import ConfigError
from ..types import SendEmailFn

logger = logging.getLogger(__name__)


def send_email_via_console(*, to_email: str, subject: str, body: str) -> None:
    logger.info("[EMAIL] to=%s subject=%s body=%s", to_email, subject, body)


def send_email_via_mailgun_from_env(*, to_email: str, subject: str, body: str) -> None:
    """Send email via Mailgun REST API using environment-variable config."""
    api_key = required_env("MAILGUN_API_KEY")
    domain = required_env("MAILGUN_DOMAIN")
    from_email = required_env("MAILGUN_FROM_EMAIL")
    base_url = os.getenv("MAILGUN_API_BASE_URL", "https://api.mailgun.net").rstrip("/")
    timeout_seconds = float(os.getenv("MAILGUN_TIMEOUT_SECONDS", "10"))

    encoded_domain = urllib.parse.quote(domain, safe="")
    endpoint = f"{base_url}/v3/{encoded_domain}/messages"
    payload = urllib.parse.urlencode(
        {"from": from_email, "to": to_email, "subject": subject, "text": body}
    ).encode("utf-8")

    request = urllib.request.Request(endpoint, data=payload, method="POST")
    request.add_header("Authorization", _basic_auth_header("api", api_key))
    request.add_header("Content-Type", "application/x-www-form-urlencoded")

    try:
        with urllib.request.urlopen(request, timeout=timeout_seconds) as response:
            status = int(response.getcode())
            if status < 200 or status >= 300:
                raise RuntimeError(f"Mailgun email send failed with status {status}")
            response.read()
    except urllib.error.HTTPError as exc:
        details = exc.read().decode("utf-8", errors="replace")
        raise RuntimeError(
            f"Mailgun email send failed HTTP {exc.code}: {details[:300]}"
        ) from exc
    except urllib.error.URLError as exc:
        raise RuntimeError(f"Mailgun email send failed: {exc.reason}") from exc


def send_email_via_smtp_from_env(*, to_email: str, subject: str, body: str) -> None:
    """Send a plain-text email through an SMTP relay."""
    host = required_env("SMTP_HOST")
    from_email = required_env("SMTP_FROM_EMAIL")
    port = int(os.getenv("SMTP_PORT", "587"))
    username = os.getenv("SMTP_USERNAME")
    password = os.getenv("SMTP_PASSWORD")
    use_tls = env_bool("SMTP_USE_TLS", default=True)
    timeout_seconds = float(os.getenv("SMTP_TIMEOUT_SECONDS", "10"))

    message = EmailMessage()
    message["From"] = from_email
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=timeout_seconds) as client:
            if use_tls:
                client.starttls()
            if username:
                client.login(username, password or "")
            client.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise RuntimeError(f"SMTP email send failed: {exc}") from exc


def select_mail_transport(name: str) -> SendEmailFn:
    transports: dict[str, SendEmailFn] = {
        "console": send_email_via_console,
        "mailgun": send_email_via_mailgun_from_env,
        "smtp": send_email_via_smtp_from_env,
    }
    try:
        return transports[name]
    except KeyError:
        raise ConfigError(f"Unsupported MAIL_TRANSPORT: {name!r}") from None


def _basic_auth_header(username: str, password: str) -> str:
    token = f"{username}:{password}".encode("utf-8")
    encoded = base64.b64encode(token).decode("ascii")
    return f"Basic {encoded}"
