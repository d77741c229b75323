"""Notification value types shared by the reconciler and dispatcher."""

from __future__ import annotations

import dataclasses
import enum

from herald.installations.models import DeliveryMode


class Transition(enum.StrEnum):
    """Direction of a delivery-mode change."""

    ENABLED = "enabled"
    DISABLED = "disabled"

    @property
    def target_mode(self) -> DeliveryMode:
        """Return the delivery mode a repository is in after this transition."""
        return DeliveryMode.PUSH if self is Transition.ENABLED else DeliveryMode.POLL


class TransitionCause(enum.StrEnum):
    """Lifecycle change that triggered a transition."""

    INSTALLED = "installed"
    REPOSITORIES_ADDED = "repositories_added"
    UNSUSPENDED = "unsuspended"
    UNINSTALLED = "uninstalled"
    REPOSITORIES_REMOVED = "repositories_removed"
    SUSPENDED = "suspended"


@dataclasses.dataclass(frozen=True, slots=True)
class ModeNotification:
    """One subscriber's notice that a repository changed delivery mode."""

    channel_id: str
    repo_full_name: str
    transition: Transition
    cause: TransitionCause

    @property
    def key(self) -> tuple[str, str]:
        """Return the (channel, repository) pair this notice is unique on."""
        return (self.channel_id, self.repo_full_name)


@dataclasses.dataclass(frozen=True, slots=True)
class OutboundMessage:
    """Rendered text addressed to a chat channel."""

    channel_id: str
    text: str
