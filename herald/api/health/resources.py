"""Liveness and readiness probe resources.

``/health`` only reports that the process is up. ``/ready`` runs an optional
readiness probe; when the app is wired to a database the probe counts
installations, so a lost database connection turns the service unready.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from sqlalchemy.exc import SQLAlchemyError

from herald.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon.asgi import Request, Response

    type ReadinessProbe = cabc.Callable[[], cabc.Awaitable[object]]

__all__ = ["HealthResource", "ReadyResource"]

logger = get_logger(__name__)


class HealthResource:
    """Liveness probe returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe returning ``{"status": "ready"}`` once storage answers.

    Parameters
    ----------
    probe
        Awaitable check run per request; ``None`` means always ready.

    """

    def __init__(self, probe: ReadinessProbe | None = None) -> None:
        """Store the readiness probe."""
        self._probe = probe

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready, answering 503 while the database is unreachable."""
        if self._probe is not None:
            try:
                await self._probe()
            except SQLAlchemyError as exc:
                log_warning(logger, "Readiness probe failed: %s", exc, exc_info=exc)
                resp.media = {"status": "unavailable"}
                resp.status = HTTPStatus.SERVICE_UNAVAILABLE
                return

        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
