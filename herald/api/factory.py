"""Build Herald's domain dependencies from configuration.

Usage
-----
Wire a full app from a :class:`~herald.config.HeraldConfig`::

    deps, lifespan = build_dependencies(config)
    app = create_app(deps, middleware=[lifespan])

"""

from __future__ import annotations

import typing as typ

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from herald.api.app import AppDependencies
from herald.installations.registry import InstallationRegistry
from herald.logging import get_logger, log_info
from herald.notifications.dispatcher import NotificationDispatcher
from herald.notifications.http_sender import ChatApiConfig, HttpMessageSender
from herald.reconciler.service import ModeReconciler
from herald.storage import init_storage
from herald.subscriptions.store import SubscriptionStore

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from herald.config import HeraldConfig

__all__ = ["StorageLifespan", "build_dependencies"]

logger = get_logger(__name__)


class StorageLifespan:
    """ASGI lifespan middleware creating tables and releasing resources."""

    def __init__(self, engine: AsyncEngine, sender: HttpMessageSender) -> None:
        """Hold the engine and sender owned by the running app."""
        self._engine = engine
        self._sender = sender

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Create any missing tables before serving requests."""
        await init_storage(self._engine)
        log_info(logger, "Herald storage initialised")

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Close the chat client and dispose of the engine."""
        await self._sender.aclose()
        await self._engine.dispose()


def build_dependencies(
    config: HeraldConfig,
) -> tuple[AppDependencies, StorageLifespan]:
    """Construct the reconciler and its collaborators.

    Raises
    ------
    ValueError
        If the database URL or chat API URL is missing.

    """
    if config.database_url is None:
        msg = "HERALD_DATABASE_URL is required to build domain dependencies"
        raise ValueError(msg)
    if config.chat_api_url is None:
        msg = "HERALD_CHAT_API_URL is required when HERALD_DATABASE_URL is set"
        raise ValueError(msg)

    engine = create_async_engine(config.database_url)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    registry = InstallationRegistry(
        session_factory, default_app_slug=config.default_app_slug
    )
    subscriptions = SubscriptionStore(session_factory)
    sender = HttpMessageSender(ChatApiConfig(base_url=config.chat_api_url))
    reconciler = ModeReconciler(
        registry, subscriptions, NotificationDispatcher(sender)
    )

    deps = AppDependencies(
        reconciler=reconciler,
        registry=registry,
        subscriptions=subscriptions,
        webhook_secret=config.webhook_secret,
    )
    return deps, StorageLifespan(engine, sender)
