"""Application factory for the Herald Falcon ASGI application.

Usage
-----
Create a health-only app (no database)::

    app = create_app()

Create a full app with webhook and status endpoints::

    from herald.api.app import AppDependencies, create_app

    deps = AppDependencies(
        reconciler=reconciler,
        registry=registry,
        subscriptions=subscription_store,
        webhook_secret="s3cret",
    )
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from herald.api.errors import register_error_handlers
from herald.api.health.resources import HealthResource, ReadyResource

if typ.TYPE_CHECKING:
    from herald.installations.registry import InstallationRegistry
    from herald.reconciler.service import ModeReconciler
    from herald.subscriptions.store import SubscriptionStore

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Collaborators for the domain endpoints.

    Attributes
    ----------
    reconciler
        Applies decoded webhook events.
    registry
        Installation registry backing the status queries.
    subscriptions
        Subscription store backing ``/status``.
    webhook_secret
        GitHub App webhook secret; ``None`` disables signature checks.

    """

    reconciler: ModeReconciler
    registry: InstallationRegistry
    subscriptions: SubscriptionStore
    webhook_secret: str | None = None


def create_app(
    dependencies: AppDependencies | None = None,
    *,
    middleware: typ.Sequence[object] = (),
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/health`` and ``/ready`` are always registered; ``/ready`` probes the
    registry when *dependencies* is provided. The webhook and status
    routes are added only when *dependencies* is provided.
    """
    app = falcon.asgi.App(middleware=list(middleware))  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route(
        "/ready",
        ReadyResource(
            dependencies.registry.count_installations if dependencies else None
        ),
    )

    if dependencies is not None:
        from herald.api.status.resources import (
            InstallationRepositoriesResource,
            RepositoryCoverageResource,
            StatusResource,
        )
        from herald.api.webhooks.resources import GitHubWebhookResource

        app.add_route(
            "/webhooks/github",
            GitHubWebhookResource(
                dependencies.reconciler,
                webhook_secret=dependencies.webhook_secret,
            ),
        )
        app.add_route(
            "/installations/{installation_id:int}/repositories",
            InstallationRepositoriesResource(dependencies.registry),
        )
        app.add_route(
            "/repositories/{owner}/{name}/coverage",
            RepositoryCoverageResource(dependencies.registry),
        )
        app.add_route(
            "/status",
            StatusResource(dependencies.registry, dependencies.subscriptions),
        )

    register_error_handlers(app)
    return app
