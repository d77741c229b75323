"""Status resources exposing installation coverage to operators.

Routes
------
``GET /installations/{installation_id}/repositories``
    Repositories covered by an installation.
``GET /repositories/{owner}/{name}/coverage``
    Covering installation and current delivery mode of a repository.
``GET /status``
    Installation count and subscribed repositories split by delivery mode.
"""

from __future__ import annotations

import typing as typ

import falcon

from herald.api.errors import InstallationNotFoundError
from herald.common.slug import repo_slug

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from herald.installations.registry import InstallationRegistry
    from herald.subscriptions.store import SubscriptionStore

__all__ = [
    "InstallationRepositoriesResource",
    "RepositoryCoverageResource",
    "StatusResource",
]


class InstallationRepositoriesResource:
    """List the repositories an installation covers."""

    def __init__(self, registry: InstallationRegistry) -> None:
        """Bind the registry used for lookups."""
        self._registry = registry

    async def on_get(
        self, _req: Request, resp: Response, *, installation_id: int
    ) -> None:
        """Handle GET for one installation's coverage."""
        installation = await self._registry.get_installation(installation_id)
        if installation is None:
            raise InstallationNotFoundError(installation_id)

        repositories = await self._registry.installation_repos(installation_id)
        resp.media = {
            "installation_id": installation_id,
            "account": installation.account_login,
            "suspended": not installation.is_active,
            "repositories": repositories,
        }
        resp.status = falcon.HTTP_200


class RepositoryCoverageResource:
    """Report which installation covers a repository."""

    def __init__(self, registry: InstallationRegistry) -> None:
        """Bind the registry used for lookups."""
        self._registry = registry

    async def on_get(
        self, _req: Request, resp: Response, *, owner: str, name: str
    ) -> None:
        """Handle GET for one repository's coverage."""
        slug = repo_slug(owner, name)
        resp.media = {
            "repository": slug,
            "installation_id": await self._registry.coverage_of(slug),
            "mode": str(await self._registry.delivery_mode_of(slug)),
        }
        resp.status = falcon.HTTP_200


class StatusResource:
    """Summarise installations and subscribed repositories by delivery mode."""

    def __init__(
        self, registry: InstallationRegistry, subscriptions: SubscriptionStore
    ) -> None:
        """Bind the registry and subscription store."""
        self._registry = registry
        self._subscriptions = subscriptions

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /status."""
        subscribed = await self._subscriptions.all_subscribed_repositories()
        partition = await self._registry.partition_by_mode(subscribed)
        resp.media = {
            "status": "ok",
            "installations": await self._registry.count_installations(),
            "subscribed_repos": len(subscribed),
            "push_repos": list(partition.push),
            "poll_repos": list(partition.poll),
        }
        resp.status = falcon.HTTP_200
