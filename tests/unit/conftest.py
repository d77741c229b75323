"""Unit-test fixtures for the registry, store, dispatcher and reconciler."""

from __future__ import annotations

import typing as typ

import pytest

from herald.installations import InstallationRegistry
from herald.notifications import NotificationDispatcher
from herald.reconciler import ModeReconciler
from herald.subscriptions import SubscriptionStore
from tests.helpers.lifecycle import RecordingSender

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class SubscribeFn(typ.Protocol):
    """Callable fixture subscribing channels to a repository."""

    async def __call__(self, repo_full_name: str, *channel_ids: str) -> None:
        """Subscribe every channel in *channel_ids* to *repo_full_name*."""
        ...


@pytest.fixture
def registry(
    session_factory: async_sessionmaker[AsyncSession],
) -> InstallationRegistry:
    """Return an InstallationRegistry bound to the test database."""
    return InstallationRegistry(session_factory)


@pytest.fixture
def subscription_store(
    session_factory: async_sessionmaker[AsyncSession],
) -> SubscriptionStore:
    """Return a SubscriptionStore bound to the test database."""
    return SubscriptionStore(session_factory)


@pytest.fixture
def subscribe(subscription_store: SubscriptionStore) -> SubscribeFn:
    """Return a helper that seeds subscriptions."""

    async def _subscribe(repo_full_name: str, *channel_ids: str) -> None:
        for channel_id in channel_ids:
            await subscription_store.subscribe(channel_id, repo_full_name)

    return _subscribe


@pytest.fixture
def sender() -> RecordingSender:
    """Return a recording message sender."""
    return RecordingSender()


@pytest.fixture
def reconciler(
    registry: InstallationRegistry,
    subscription_store: SubscriptionStore,
    sender: RecordingSender,
) -> ModeReconciler:
    """Return a reconciler wired to the test database and recording sender."""
    return ModeReconciler(
        registry, subscription_store, NotificationDispatcher(sender)
    )
