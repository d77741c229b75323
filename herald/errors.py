"""Error taxonomy for installation lifecycle handling.

Benign conditions (``DuplicateInstallationError``, ``UnknownInstallationError``)
are absorbed by the reconciler. ``DataConsistencyViolationError`` and
``ReconciliationFailedError`` propagate to the webhook handler.
``DeliveryFailedError`` never leaves the dispatcher.
"""

from __future__ import annotations


class HeraldError(Exception):
    """Base class for Herald domain errors."""


class DuplicateInstallationError(HeraldError):
    """Raised when an installation id is recorded twice with different content."""

    def __init__(self, installation_id: int, reason: str) -> None:
        """Record the clashing installation id and what differed."""
        self.installation_id = installation_id
        self.reason = reason
        super().__init__(f"Installation {installation_id} already exists: {reason}")


class UnknownInstallationError(HeraldError):
    """Raised when an operation names an installation that is not recorded."""

    def __init__(self, installation_id: int) -> None:
        """Record the missing installation id."""
        self.installation_id = installation_id
        super().__init__(f"Installation not found: {installation_id}")


class DataConsistencyViolationError(HeraldError):
    """Raised when a repository would be covered by two installations at once.

    The violation is never resolved automatically; operators must decide which
    installation legitimately owns the repository.
    """

    def __init__(
        self,
        repo_full_name: str,
        *,
        existing_installation_id: int | None,
        conflicting_installation_id: int,
    ) -> None:
        """Record the repository and both installation ids involved."""
        self.repo_full_name = repo_full_name
        self.existing_installation_id = existing_installation_id
        self.conflicting_installation_id = conflicting_installation_id
        owner = (
            "another installation"
            if existing_installation_id is None
            else f"installation {existing_installation_id}"
        )
        super().__init__(
            f"Repository {repo_full_name} is already covered by {owner}; "
            f"refusing to add it to installation {conflicting_installation_id}"
        )


class ReconciliationFailedError(HeraldError):
    """Raised when a lifecycle event cannot be applied to the registry."""

    def __init__(self, event_kind: str, installation_id: int, reason: str) -> None:
        """Record the event being reconciled and the failure reason."""
        self.event_kind = event_kind
        self.installation_id = installation_id
        self.reason = reason
        super().__init__(
            f"Reconciliation of {event_kind} for installation "
            f"{installation_id} failed: {reason}"
        )


class DeliveryFailedError(HeraldError):
    """Describes a failed send to one chat channel."""

    def __init__(self, channel_id: str, reason: str) -> None:
        """Record the channel and a short description of the failure."""
        self.channel_id = channel_id
        self.reason = reason
        super().__init__(f"Delivery to channel {channel_id} failed: {reason}")

    @classmethod
    def from_exception(cls, channel_id: str, exc: BaseException) -> DeliveryFailedError:
        """Build an error describing *exc* raised while sending to *channel_id*."""
        detail = str(exc) or type(exc).__name__
        return cls(channel_id, f"{type(exc).__name__}: {detail}")
