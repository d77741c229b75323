"""Webhook decoding and verification errors."""

from __future__ import annotations


class WebhookPayloadError(ValueError):
    """Raised when a webhook body cannot be mapped onto a lifecycle event."""

    @classmethod
    def malformed(cls, detail: object) -> WebhookPayloadError:
        """Return an error for bodies that fail schema decoding."""
        return cls(f"Malformed webhook payload: {detail}")

    @classmethod
    def invalid_repository(cls, full_name: str) -> WebhookPayloadError:
        """Return an error for repository names not in owner/name form."""
        return cls(f"Invalid repository full name in payload: {full_name!r}")


class WebhookSignatureError(RuntimeError):
    """Raised when the ``X-Hub-Signature-256`` header does not verify."""

    @classmethod
    def missing(cls) -> WebhookSignatureError:
        """Return an error when the signature header is absent."""
        return cls("X-Hub-Signature-256 header is required")

    @classmethod
    def mismatch(cls) -> WebhookSignatureError:
        """Return an error when the digest does not match the body."""
        return cls("Webhook signature does not match payload")
