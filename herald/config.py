"""Runtime configuration for Herald.

Usage
-----
Create a configuration with defaults:

>>> config = HeraldConfig()
>>> config.port
8080

Or load from environment variables:

>>> import os
>>> os.environ["HERALD_PORT"] = "9000"
>>> HeraldConfig.from_env().port
9000

"""

from __future__ import annotations

import dataclasses as dc
import os

from herald.installations.registry import DEFAULT_APP_SLUG

_MIN_PORT = 1
_MAX_PORT = 65535


def _optional(env_var: str) -> str | None:
    raw = os.environ.get(env_var, "").strip()
    return raw or None


def _parse_port(env_var: str, default: int) -> int:
    """Read a TCP port env var, falling back to *default* when unset."""
    raw = os.environ.get(env_var, "").strip()
    if not raw:
        return default
    try:
        port = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if not (_MIN_PORT <= port <= _MAX_PORT):
        msg = f"{env_var} must be between {_MIN_PORT} and {_MAX_PORT}, got: {port}"
        raise ValueError(msg)
    return port


@dc.dataclass(frozen=True, slots=True)
class HeraldConfig:
    """Settings for the Herald webhook service.

    Attributes
    ----------
    database_url
        Async SQLAlchemy URL. When ``None`` the service runs health-only.
    host
        Bind address for the ASGI server.
    port
        Listen port for the ASGI server.
    log_level
        Raw femtologging level name; normalised at startup.
    chat_api_url
        Base URL of the chat relay API used to send notifications.
    webhook_secret
        GitHub App webhook secret. When set, deliveries must carry a valid
        ``X-Hub-Signature-256`` header.
    default_app_slug
        App slug recorded for installations whose payload omits one.

    """

    database_url: str | None = None
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080
    log_level: str = "INFO"
    chat_api_url: str | None = None
    webhook_secret: str | None = None
    default_app_slug: str = DEFAULT_APP_SLUG

    @classmethod
    def from_env(cls) -> HeraldConfig:
        """Create configuration from ``HERALD_*`` environment variables.

        Reads ``HERALD_DATABASE_URL``, ``HERALD_HOST``, ``HERALD_PORT``,
        ``HERALD_LOG_LEVEL``, ``HERALD_CHAT_API_URL``,
        ``HERALD_WEBHOOK_SECRET`` and ``HERALD_DEFAULT_APP_SLUG``.

        Raises
        ------
        ValueError
            If ``HERALD_PORT`` is not an integer in 1-65535.

        """
        defaults = cls()
        return cls(
            database_url=_optional("HERALD_DATABASE_URL"),
            host=_optional("HERALD_HOST") or defaults.host,
            port=_parse_port("HERALD_PORT", defaults.port),
            log_level=_optional("HERALD_LOG_LEVEL") or defaults.log_level,
            chat_api_url=_optional("HERALD_CHAT_API_URL"),
            webhook_secret=_optional("HERALD_WEBHOOK_SECRET"),
            default_app_slug=_optional("HERALD_DEFAULT_APP_SLUG")
            or defaults.default_app_slug,
        )
