"""Subscriber-side repository store.

The reconciler reads subscribers through :class:`SubscriberLookup` only. The
mutation helpers on :class:`SubscriptionStore` serve the chat command layer
and the status surface.
"""

from __future__ import annotations

import typing as typ

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from herald.storage import Subscription

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    type SessionFactory = async_sessionmaker[AsyncSession]


@typ.runtime_checkable
class SubscriberLookup(typ.Protocol):
    """Capability that answers which channels follow a repository."""

    async def subscribers_of(self, repo_full_name: str) -> frozenset[str]:
        """Return the deduplicated channel ids subscribed to a repository."""
        ...


class SubscriptionStore:
    """SQL-backed subscriptions keyed by (channel id, repository full name)."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Store the session factory used for every query."""
        self._session_factory = session_factory

    async def subscribers_of(self, repo_full_name: str) -> frozenset[str]:
        """Return the channel ids subscribed to *repo_full_name*."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(Subscription.channel_id).where(
                    Subscription.repo_full_name == repo_full_name
                )
            )
            return frozenset(rows)

    async def subscribe(self, channel_id: str, repo_full_name: str) -> bool:
        """Subscribe a channel; return False if it was already subscribed."""
        async with self._session_factory() as session:
            session.add(
                Subscription(channel_id=channel_id, repo_full_name=repo_full_name)
            )
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
            return True

    async def unsubscribe(self, channel_id: str, repo_full_name: str) -> bool:
        """Remove a subscription; return False if none existed."""
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(Subscription).where(
                    Subscription.channel_id == channel_id,
                    Subscription.repo_full_name == repo_full_name,
                )
            )
            return bool(result.rowcount)

    async def is_subscribed(self, channel_id: str, repo_full_name: str) -> bool:
        """Return True when the channel follows the repository."""
        async with self._session_factory() as session:
            found = await session.scalar(
                select(Subscription.id).where(
                    Subscription.channel_id == channel_id,
                    Subscription.repo_full_name == repo_full_name,
                )
            )
            return found is not None

    async def channel_subscriptions(self, channel_id: str) -> list[str]:
        """Return the repositories a channel follows, sorted by name."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(Subscription.repo_full_name)
                .where(Subscription.channel_id == channel_id)
                .order_by(Subscription.repo_full_name)
            )
            return list(rows)

    async def all_subscribed_repositories(self) -> list[str]:
        """Return every repository with at least one subscriber."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(Subscription.repo_full_name)
                .distinct()
                .order_by(Subscription.repo_full_name)
            )
            return list(rows)
