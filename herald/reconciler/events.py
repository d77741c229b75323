"""Installation lifecycle events as a closed set of variants.

Every variant carries the installation id and account; the repository-bearing
variants also carry the repository full names named by the webhook. The
reconciler matches over :data:`LifecycleEvent` exhaustively.
"""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import datetime as dt

    from herald.installations.models import InstallationAccount


@dataclasses.dataclass(frozen=True, slots=True)
class InstallationCreated:
    """The app was installed with an initial set of repositories."""

    kind: typ.ClassVar[str] = "installation.created"

    installation_id: int
    account: InstallationAccount
    repositories: tuple[str, ...]
    app_slug: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class InstallationDeleted:
    """The app was uninstalled."""

    kind: typ.ClassVar[str] = "installation.deleted"

    installation_id: int
    account: InstallationAccount


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoriesAdded:
    """Repositories were granted to an existing installation."""

    kind: typ.ClassVar[str] = "installation_repositories.added"

    installation_id: int
    account: InstallationAccount
    repositories: tuple[str, ...]


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoriesRemoved:
    """Repositories were withdrawn from an existing installation."""

    kind: typ.ClassVar[str] = "installation_repositories.removed"

    installation_id: int
    account: InstallationAccount
    repositories: tuple[str, ...]


@dataclasses.dataclass(frozen=True, slots=True)
class InstallationSuspended:
    """The installation was suspended; its coverage stops delivering."""

    kind: typ.ClassVar[str] = "installation.suspend"

    installation_id: int
    account: InstallationAccount
    suspended_at: dt.datetime


@dataclasses.dataclass(frozen=True, slots=True)
class InstallationUnsuspended:
    """A suspended installation was reinstated."""

    kind: typ.ClassVar[str] = "installation.unsuspend"

    installation_id: int
    account: InstallationAccount


type LifecycleEvent = (
    InstallationCreated
    | InstallationDeleted
    | RepositoriesAdded
    | RepositoriesRemoved
    | InstallationSuspended
    | InstallationUnsuspended
)
