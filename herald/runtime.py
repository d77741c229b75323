"""Herald runtime entrypoint.

``herald.runtime:create_app`` is the Granian factory target. When
``HERALD_DATABASE_URL`` is set the runtime wires the webhook and status
endpoints; otherwise it starts in health-only mode.

Configuration is read through :meth:`herald.config.HeraldConfig.from_env`.

Run the service directly with ``python -m herald.runtime``.
"""

from __future__ import annotations

import typing as typ

from herald.config import HeraldConfig
from herald.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)


def _load_config() -> HeraldConfig:
    try:
        return HeraldConfig.from_env()
    except ValueError as exc:
        log_error(logger, "Invalid Herald configuration: %s", exc)
        raise SystemExit(1) from exc


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from environment configuration."""
    from herald.api.app import create_app as _create_api_app

    config = _load_config()
    if config.database_url is None:
        return _create_api_app()

    from herald.api.factory import build_dependencies

    try:
        deps, lifespan = build_dependencies(config)
    except ValueError as exc:
        log_error(logger, "Invalid Herald configuration: %s", exc)
        raise SystemExit(1) from exc
    return _create_api_app(deps, middleware=[lifespan])


def main() -> None:
    """Start the Herald server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    config = _load_config()

    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid HERALD_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting Herald on %s:%d (log_level=%s, database=%s)",
        config.host,
        config.port,
        normalized_level,
        "configured" if config.database_url else "none",
    )

    server = Granian(
        "herald.runtime:create_app",
        address=config.host,
        port=config.port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
