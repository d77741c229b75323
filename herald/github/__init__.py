"""GitHub webhook decoding for installation lifecycle events."""

from __future__ import annotations

from .errors import WebhookPayloadError, WebhookSignatureError
from .events import (
    INSTALLATION_EVENT,
    INSTALLATION_REPOSITORIES_EVENT,
    parse_lifecycle_event,
    sign_payload,
    verify_signature,
)

__all__ = [
    "INSTALLATION_EVENT",
    "INSTALLATION_REPOSITORIES_EVENT",
    "WebhookPayloadError",
    "WebhookSignatureError",
    "parse_lifecycle_event",
    "sign_payload",
    "verify_signature",
]
