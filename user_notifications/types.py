"""Shared type aliases for the notification package."""

from __future__ import annotations

from typing import Any, Callable, Mapping

Record = Mapping[str, Any]
RecordMeta = dict[str, Any]
WirePayload = dict[str, Any]

SendEmailFn = Callable[..., None]
AckFn = Callable[[], None]
