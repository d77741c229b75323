"""Delivery-mode reconciliation for GitHub App installation lifecycle events.

Usage
-----
Wire the reconciler once at startup and feed it decoded events::

    from herald.reconciler import InstallationCreated, ModeReconciler

    reconciler = ModeReconciler(registry, subscription_store, dispatcher)
    result = await reconciler.handle(
        InstallationCreated(42, account, ("octo/repo",))
    )
    [n.channel_id for n in result.notifications]

"""

from herald.reconciler.events import (
    InstallationCreated,
    InstallationDeleted,
    InstallationSuspended,
    InstallationUnsuspended,
    LifecycleEvent,
    RepositoriesAdded,
    RepositoriesRemoved,
)
from herald.reconciler.service import ModeReconciler, ReconciliationResult

__all__ = [
    "InstallationCreated",
    "InstallationDeleted",
    "InstallationSuspended",
    "InstallationUnsuspended",
    "LifecycleEvent",
    "ModeReconciler",
    "ReconciliationResult",
    "RepositoriesAdded",
    "RepositoriesRemoved",
]
