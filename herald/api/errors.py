"""API exceptions and the Falcon error handlers that map domain failures.

Usage
-----
Register error handlers on the Falcon app::

    from herald.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from herald.errors import DataConsistencyViolationError, ReconciliationFailedError
from herald.github.errors import WebhookPayloadError, WebhookSignatureError

if typ.TYPE_CHECKING:
    import falcon.asgi
    from falcon.asgi import Request, Response

__all__ = [
    "InstallationNotFoundError",
    "handle_consistency_violation",
    "handle_installation_not_found",
    "handle_invalid_payload",
    "handle_invalid_signature",
    "handle_reconciliation_failed",
    "register_error_handlers",
]


class InstallationNotFoundError(Exception):
    """Raised when a status query names an unknown installation."""

    def __init__(self, installation_id: int) -> None:
        """Initialise with the missing installation id."""
        self.installation_id = installation_id
        super().__init__(f"No installation with id {installation_id} exists.")


async def handle_installation_not_found(
    _req: Request,
    resp: Response,
    ex: InstallationNotFoundError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InstallationNotFoundError`` to HTTP 404."""
    resp.status = falcon.HTTP_404
    resp.media = {"title": "Installation not found", "description": str(ex)}


async def handle_invalid_signature(
    _req: Request,
    resp: Response,
    ex: WebhookSignatureError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``WebhookSignatureError`` to HTTP 401."""
    resp.status = falcon.HTTP_401
    resp.media = {"title": "Invalid signature", "description": str(ex)}


async def handle_invalid_payload(
    _req: Request,
    resp: Response,
    ex: WebhookPayloadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``WebhookPayloadError`` to HTTP 400."""
    resp.status = falcon.HTTP_400
    resp.media = {"title": "Invalid payload", "description": str(ex)}


async def handle_consistency_violation(
    _req: Request,
    resp: Response,
    ex: DataConsistencyViolationError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``DataConsistencyViolationError`` to HTTP 409.

    The response names the repository and both installations so operators
    can resolve the conflict; it is never resolved automatically.
    """
    resp.status = falcon.HTTP_409
    resp.media = {
        "title": "Repository coverage conflict",
        "description": str(ex),
        "repository": ex.repo_full_name,
        "existing_installation_id": ex.existing_installation_id,
        "conflicting_installation_id": ex.conflicting_installation_id,
    }


async def handle_reconciliation_failed(
    _req: Request,
    resp: Response,
    ex: ReconciliationFailedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``ReconciliationFailedError`` to HTTP 503 so GitHub redelivers."""
    resp.status = falcon.HTTP_503
    resp.media = {
        "title": "Reconciliation failed",
        "description": str(ex),
        "installation_id": ex.installation_id,
    }


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Attach every Herald error handler to *app*."""
    app.add_error_handler(InstallationNotFoundError, handle_installation_not_found)
    app.add_error_handler(WebhookSignatureError, handle_invalid_signature)
    app.add_error_handler(WebhookPayloadError, handle_invalid_payload)
    app.add_error_handler(DataConsistencyViolationError, handle_consistency_violation)
    app.add_error_handler(ReconciliationFailedError, handle_reconciliation_failed)
