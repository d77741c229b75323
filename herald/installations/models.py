"""Data transfer objects for the installation registry."""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

if typ.TYPE_CHECKING:
    import datetime as dt


class DeliveryMode(enum.StrEnum):
    """How repository activity reaches subscribers.

    Derived from installation coverage on every lookup and never stored.
    """

    PUSH = "push"
    POLL = "poll"


@dataclasses.dataclass(frozen=True, slots=True)
class InstallationAccount:
    """Account a GitHub App is installed on."""

    login: str
    type: str


@dataclasses.dataclass(frozen=True, slots=True)
class InstallationInfo:
    """Read-only view of a recorded installation."""

    installation_id: int
    account_login: str
    account_type: str
    app_slug: str
    installed_at: dt.datetime
    suspended_at: dt.datetime | None

    @property
    def is_active(self) -> bool:
        """Return True when the installation is not suspended."""
        return self.suspended_at is None


@dataclasses.dataclass(frozen=True, slots=True)
class CoverageDelta:
    """Coverage rows actually written or removed by one registry mutation.

    ``repositories`` lists only the edges that changed, so replaying an event
    that is already applied yields an empty delta. ``changes_mode`` is False
    when the installation is suspended, because its repositories were in poll
    mode before the mutation and remain so afterwards.
    """

    installation_id: int
    repositories: tuple[str, ...] = ()
    changes_mode: bool = True

    @classmethod
    def empty(cls, installation_id: int) -> CoverageDelta:
        """Return a delta that changed nothing."""
        return cls(installation_id=installation_id, repositories=(), changes_mode=False)

    @property
    def is_empty(self) -> bool:
        """Return True when no repository changed delivery mode."""
        return not self.repositories or not self.changes_mode


@dataclasses.dataclass(frozen=True, slots=True)
class ModePartition:
    """Repositories split by their current delivery mode."""

    push: tuple[str, ...] = ()
    poll: tuple[str, ...] = ()
