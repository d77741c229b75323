"""Delivery-mode reconciliation for installation lifecycle events.

For each event the reconciler applies the matching registry mutation, takes
the :class:`CoverageDelta` the registry reports, and fans every repository in
that delta out to its subscribers. Notifications are derived from what was
actually committed, so a redelivered event yields none.
"""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import typing as typ
import weakref

from sqlalchemy.exc import SQLAlchemyError

from herald.errors import (
    DataConsistencyViolationError,
    DuplicateInstallationError,
    ReconciliationFailedError,
    UnknownInstallationError,
)
from herald.logging import get_logger, log_error, log_info, log_warning
from herald.notifications.dispatcher import DispatchReport
from herald.notifications.messages import render_mode_notification
from herald.notifications.models import (
    ModeNotification,
    OutboundMessage,
    Transition,
    TransitionCause,
)
from herald.reconciler.events import (
    InstallationCreated,
    InstallationDeleted,
    InstallationSuspended,
    InstallationUnsuspended,
    RepositoriesAdded,
    RepositoriesRemoved,
)

if typ.TYPE_CHECKING:
    from herald.errors import DeliveryFailedError
    from herald.installations.models import CoverageDelta
    from herald.installations.registry import InstallationRegistry
    from herald.notifications.dispatcher import NotificationDispatcher
    from herald.notifications.messages import NotificationRenderer
    from herald.reconciler.events import LifecycleEvent
    from herald.subscriptions.store import SubscriberLookup

logger = get_logger(__name__)


class ReconcileEventType(enum.StrEnum):
    """Structured log event types for lifecycle reconciliation."""

    RECEIVED = "reconcile.event.received"
    IGNORED = "reconcile.event.ignored"
    COMPLETED = "reconcile.event.completed"
    CONSISTENCY_VIOLATION = "reconcile.consistency.violation"
    FAILED = "reconcile.event.failed"


_TRANSITIONS: dict[TransitionCause, Transition] = {
    TransitionCause.INSTALLED: Transition.ENABLED,
    TransitionCause.REPOSITORIES_ADDED: Transition.ENABLED,
    TransitionCause.UNSUSPENDED: Transition.ENABLED,
    TransitionCause.UNINSTALLED: Transition.DISABLED,
    TransitionCause.REPOSITORIES_REMOVED: Transition.DISABLED,
    TransitionCause.SUSPENDED: Transition.DISABLED,
}


@dataclasses.dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """What one lifecycle event changed and who was told about it."""

    event: LifecycleEvent
    delta: CoverageDelta | None
    notifications: tuple[ModeNotification, ...] = ()
    dispatch: DispatchReport = dataclasses.field(default_factory=DispatchReport)
    ignored_reason: str | None = None

    @property
    def ignored(self) -> bool:
        """Return True when a benign condition turned the event into a no-op."""
        return self.ignored_reason is not None

    @property
    def delivery_failures(self) -> tuple[DeliveryFailedError, ...]:
        """Return the non-fatal per-channel send failures."""
        return tuple(self.dispatch.failures)


class ModeReconciler:
    """Turn lifecycle events into exactly one notice per (channel, repository).

    Parameters
    ----------
    registry:
        Installation registry the events are applied to.
    subscribers:
        Read-only subscriber lookup.
    dispatcher:
        Dispatcher holding the message-sending capability.
    renderer:
        Produces message text; defaults to :func:`render_mode_notification`.

    """

    def __init__(
        self,
        registry: InstallationRegistry,
        subscribers: SubscriberLookup,
        dispatcher: NotificationDispatcher,
        *,
        renderer: NotificationRenderer = render_mode_notification,
    ) -> None:
        """Wire the reconciler to its collaborators."""
        self._registry = registry
        self._subscribers = subscribers
        self._dispatcher = dispatcher
        self._renderer = renderer
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    async def handle_installation_created(
        self, event: InstallationCreated
    ) -> ReconciliationResult:
        """Reconcile an installation-created event."""
        return await self.handle(event)

    async def handle_installation_deleted(
        self, event: InstallationDeleted
    ) -> ReconciliationResult:
        """Reconcile an installation-deleted event."""
        return await self.handle(event)

    async def handle_repositories_added(
        self, event: RepositoriesAdded
    ) -> ReconciliationResult:
        """Reconcile a repositories-added event."""
        return await self.handle(event)

    async def handle_repositories_removed(
        self, event: RepositoriesRemoved
    ) -> ReconciliationResult:
        """Reconcile a repositories-removed event."""
        return await self.handle(event)

    async def handle_installation_suspended(
        self, event: InstallationSuspended
    ) -> ReconciliationResult:
        """Reconcile an installation-suspend event."""
        return await self.handle(event)

    async def handle_installation_unsuspended(
        self, event: InstallationUnsuspended
    ) -> ReconciliationResult:
        """Reconcile an installation-unsuspend event."""
        return await self.handle(event)

    async def handle(self, event: LifecycleEvent) -> ReconciliationResult:
        """Apply *event*, compute notifications and dispatch them.

        Events for the same installation are serialised. A lock lives only while
        some event for its installation is being handled or waiting.

        Raises
        ------
        DataConsistencyViolationError
            If the event would put a repository under two installations.
        ReconciliationFailedError
            If the registry write or subscriber lookup fails; nothing is
            dispatched in that case.

        """
        lock = self._locks.get(event.installation_id)
        if lock is None:
            lock = self._locks[event.installation_id] = asyncio.Lock()
        async with lock:
            return await self._reconcile(event)

    async def _reconcile(self, event: LifecycleEvent) -> ReconciliationResult:
        log_info(
            logger,
            "[%s] kind=%s installation_id=%d account=%s",
            ReconcileEventType.RECEIVED,
            event.kind,
            event.installation_id,
            event.account.login,
        )

        try:
            delta, cause = await self._apply(event)
        except (DuplicateInstallationError, UnknownInstallationError) as exc:
            log_warning(
                logger,
                "[%s] kind=%s installation_id=%d reason=%s",
                ReconcileEventType.IGNORED,
                event.kind,
                event.installation_id,
                exc,
            )
            return ReconciliationResult(
                event=event, delta=None, ignored_reason=str(exc)
            )
        except DataConsistencyViolationError as exc:
            log_error(
                logger,
                "[%s] kind=%s installation_id=%d repository=%s "
                "existing_installation_id=%s",
                ReconcileEventType.CONSISTENCY_VIOLATION,
                event.kind,
                event.installation_id,
                exc.repo_full_name,
                exc.existing_installation_id,
                exc_info=exc,
            )
            raise
        except SQLAlchemyError as exc:
            raise self._failed(event, "registry write failed", exc) from exc

        try:
            notifications = await self._notifications_for(delta, cause)
        except SQLAlchemyError as exc:
            raise self._failed(event, "subscriber lookup failed", exc) from exc

        report = DispatchReport()
        if notifications:
            report = await self._dispatcher.dispatch(
                [
                    OutboundMessage(notice.channel_id, self._renderer(notice))
                    for notice in notifications
                ]
            )

        log_info(
            logger,
            "[%s] kind=%s installation_id=%d repositories_changed=%d "
            "notifications=%d delivered=%d failed=%d",
            ReconcileEventType.COMPLETED,
            event.kind,
            event.installation_id,
            len(delta.repositories) if delta.changes_mode else 0,
            len(notifications),
            report.delivered,
            len(report.failures),
        )
        return ReconciliationResult(
            event=event,
            delta=delta,
            notifications=notifications,
            dispatch=report,
        )

    async def _apply(
        self, event: LifecycleEvent
    ) -> tuple[CoverageDelta, TransitionCause]:
        registry = self._registry
        match event:
            case InstallationCreated():
                delta = await registry.record_installation_created(
                    event.installation_id,
                    event.account,
                    event.repositories,
                    app_slug=event.app_slug,
                )
                return delta, TransitionCause.INSTALLED
            case InstallationDeleted():
                delta = await registry.record_installation_deleted(
                    event.installation_id
                )
                return delta, TransitionCause.UNINSTALLED
            case RepositoriesAdded():
                delta = await registry.add_repositories(
                    event.installation_id, event.repositories
                )
                return delta, TransitionCause.REPOSITORIES_ADDED
            case RepositoriesRemoved():
                delta = await registry.remove_repositories(
                    event.installation_id, event.repositories
                )
                return delta, TransitionCause.REPOSITORIES_REMOVED
            case InstallationSuspended():
                delta = await registry.set_suspended(
                    event.installation_id, event.suspended_at
                )
                return delta, TransitionCause.SUSPENDED
            case InstallationUnsuspended():
                delta = await registry.set_suspended(event.installation_id, None)
                return delta, TransitionCause.UNSUSPENDED
            case _:
                typ.assert_never(event)

    async def _notifications_for(
        self, delta: CoverageDelta, cause: TransitionCause
    ) -> tuple[ModeNotification, ...]:
        """Fan the delta out to subscribers, one notice per pair."""
        if delta.is_empty:
            return ()

        transition = _TRANSITIONS[cause]
        notices: dict[tuple[str, str], ModeNotification] = {}
        for repo in delta.repositories:
            channels = await self._subscribers.subscribers_of(repo)
            for channel_id in sorted(channels):
                notice = ModeNotification(channel_id, repo, transition, cause)
                notices.setdefault(notice.key, notice)
        return tuple(notices.values())

    @staticmethod
    def _failed(
        event: LifecycleEvent, reason: str, exc: BaseException
    ) -> ReconciliationFailedError:
        log_error(
            logger,
            "[%s] kind=%s installation_id=%d reason=%s error_type=%s",
            ReconcileEventType.FAILED,
            event.kind,
            event.installation_id,
            reason,
            type(exc).__name__,
            exc_info=exc,
        )
        return ReconciliationFailedError(event.kind, event.installation_id, reason)
