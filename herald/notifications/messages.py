"""Default wording for delivery-mode notifications."""

from __future__ import annotations

import typing as typ

from herald.notifications.models import TransitionCause

if typ.TYPE_CHECKING:
    from herald.notifications.models import ModeNotification

_PUSH_SUFFIX = "Switching to real-time webhook delivery."
_POLL_SUFFIX = "Falling back to polling mode."

_TEMPLATES: dict[TransitionCause, str] = {
    TransitionCause.INSTALLED: f"✅ GitHub App installed for {{repo}}! {_PUSH_SUFFIX}",
    TransitionCause.REPOSITORIES_ADDED: (
        f"✅ GitHub App enabled for {{repo}}! {_PUSH_SUFFIX}"
    ),
    TransitionCause.UNSUSPENDED: (
        f"✅ GitHub App unsuspended for {{repo}}! {_PUSH_SUFFIX}"
    ),
    TransitionCause.UNINSTALLED: (
        f"⚠️ GitHub App uninstalled for {{repo}}. {_POLL_SUFFIX}"
    ),
    TransitionCause.REPOSITORIES_REMOVED: (
        f"⚠️ GitHub App disabled for {{repo}}. {_POLL_SUFFIX}"
    ),
    TransitionCause.SUSPENDED: (
        f"⚠️ GitHub App suspended for {{repo}}. {_POLL_SUFFIX}"
    ),
}


class NotificationRenderer(typ.Protocol):
    """Turns a mode notification into chat text."""

    def __call__(self, notification: ModeNotification) -> str:
        """Return the message text for *notification*."""
        ...


def render_mode_notification(notification: ModeNotification) -> str:
    """Render *notification* with the default templates.

    Examples
    --------
    >>> from herald.notifications.models import ModeNotification, Transition
    >>> render_mode_notification(
    ...     ModeNotification(
    ...         "C1", "octo/repo", Transition.DISABLED, TransitionCause.UNINSTALLED
    ...     )
    ... )
    '⚠️ GitHub App uninstalled for octo/repo. Falling back to polling mode.'

    """
    return _TEMPLATES[notification.cause].format(repo=notification.repo_full_name)
