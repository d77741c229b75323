"""``POST /webhooks/github`` resource for installation lifecycle deliveries.

Signature verification runs first when a secret is configured. Deliveries
that do not affect installation coverage are acknowledged and ignored.
Consistency violations and reconciliation failures propagate to the error
handlers in :mod:`herald.api.errors`.
"""

from __future__ import annotations

import typing as typ

import falcon

from herald.github.events import parse_lifecycle_event, verify_signature
from herald.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from herald.reconciler.service import ModeReconciler, ReconciliationResult

__all__ = ["GitHubWebhookResource"]

logger = get_logger(__name__)


def _serialize_result(result: ReconciliationResult) -> dict[str, typ.Any]:
    event = result.event
    media: dict[str, typ.Any] = {
        "status": "ignored" if result.ignored else "processed",
        "kind": event.kind,
        "installation_id": event.installation_id,
        "notifications": len(result.notifications),
        "delivered": result.dispatch.delivered,
        "failed_channels": list(result.dispatch.failed_channels),
    }
    if result.ignored_reason is not None:
        media["reason"] = result.ignored_reason
    return media


class GitHubWebhookResource:
    """Feed GitHub App installation webhooks into the reconciler."""

    def __init__(
        self, reconciler: ModeReconciler, *, webhook_secret: str | None = None
    ) -> None:
        """Configure the resource.

        Parameters
        ----------
        reconciler
            Reconciler that applies decoded lifecycle events.
        webhook_secret
            GitHub App webhook secret; ``None`` disables verification.

        """
        self._reconciler = reconciler
        self._webhook_secret = webhook_secret

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle a webhook delivery."""
        body = await req.stream.read()
        if self._webhook_secret is not None:
            verify_signature(
                self._webhook_secret, body, req.get_header("X-Hub-Signature-256")
            )

        event_name = req.get_header("X-GitHub-Event") or ""
        event = parse_lifecycle_event(event_name, body)
        if event is None:
            log_info(
                logger,
                "Ignoring webhook event=%s delivery=%s",
                event_name,
                req.get_header("X-GitHub-Delivery"),
            )
            resp.media = {"status": "ignored", "event": event_name}
            resp.status = falcon.HTTP_200
            return

        result = await self._reconciler.handle(event)
        resp.media = _serialize_result(result)
        resp.status = falcon.HTTP_202
